"""Serialize lines of placed pills into Racket source text."""

from __future__ import annotations

from typing import Iterable, Sequence, Union

from .expression import Expression
from .token_types import BOOLEAN_LABELS, Category, PlacedToken, TokenSpec

Token = Union[PlacedToken, TokenSpec]

_ATOM_CATEGORIES = (Category.VARIABLE, Category.LIST_VALUE)


def is_atom_token(token: Token) -> bool:
    if token.category in _ATOM_CATEGORIES:
        return True
    return token.category is Category.KEYWORD and token.label in BOOLEAN_LABELS


def _sexpr(labels: Iterable[str]) -> str:
    return "(" + " ".join(labels) + ")"


def generate_define(tokens: Sequence[Token]) -> str:
    """(define name), (define name value) or (define name (rest ...))"""
    head, name, *rest = tokens

    if not rest:
        return _sexpr([head.label, name.label])

    if len(rest) == 1:
        return _sexpr([head.label, name.label, rest[0].label])

    return _sexpr([head.label, name.label, _sexpr(t.label for t in rest)])


def generate_line(tokens: Sequence[Token]) -> str:
    if not tokens:
        return ""

    if len(tokens) == 1:
        token = tokens[0]
        return token.label if is_atom_token(token) else _sexpr([token.label])

    if tokens[0].id == "define":
        return generate_define(tokens)

    return _sexpr(token.label for token in tokens)


def generate(expression: Union[Expression, Iterable[Sequence[Token]]]) -> str:
    """Render every non-empty line, joined by newlines."""
    rendered = (generate_line(tuple(line)) for line in expression)
    return "\n".join(line for line in rendered if line)
