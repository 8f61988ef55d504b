"""Which pill category is expected next on a line (advisory only)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .token_types import Category, PlacedToken, TokenSpec


@dataclass
class CallContext:
    """A callable pill whose argument slots are not all filled yet."""

    token: PlacedToken | TokenSpec
    remaining: List[Category]

    @property
    def next_slot(self) -> Category:
        return self.remaining[0]


class ExpectationResolver:
    """
    Stack of open call contexts, fed one token at a time.

    Each incoming token fills the next slot of the innermost open call
    (popping it once saturated), then opens its own context if it is a
    callable pill with declared arguments.
    """

    def __init__(self, fallback: Optional[Category] = None):
        self.fallback = fallback
        self.stack: List[CallContext] = []
        self.last: Optional[PlacedToken | TokenSpec] = None
        self.count = 0

    def push(self, token: PlacedToken | TokenSpec) -> None:
        if self.stack:
            top = self.stack[-1]
            top.remaining.pop(0)
            if not top.remaining:
                self.stack.pop()

        if token.is_callable:
            self.stack.append(CallContext(token, list(token.expects)))

        self.last = token
        self.count += 1

    def feed(self, tokens: Iterable[PlacedToken | TokenSpec]) -> ExpectationResolver:
        for token in tokens:
            self.push(token)
        return self

    @property
    def open_contexts(self) -> Tuple[CallContext, ...]:
        return tuple(self.stack)

    def expected(self) -> Optional[Category]:
        if self.count == 0:
            return Category.KEYWORD

        if self.stack:
            return self.stack[-1].next_slot

        if self.last is not None and self.last.is_terminal:
            return None

        return self.fallback


def next_expected(
    sequence: Iterable[PlacedToken | TokenSpec],
    fallback: Optional[Category] = None,
) -> Optional[Category]:
    """Category valid to append to *sequence*, or None when nothing is anticipated."""
    return ExpectationResolver(fallback=fallback).feed(sequence).expected()
