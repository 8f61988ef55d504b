"""
Arity and shape rules for catalog heads.

Each rule is a pure function ``(head, args, spec) -> RuleOutcome`` keyed by
catalog id. ``args`` are the top-level forms after the head: atoms as-is,
parenthesized sub-forms as one string each.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

from .token_types import TokenSpec
from .tokenizer import tokenize

NUMBER_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")
STRING_RE = re.compile(r'^".*"$', re.DOTALL)
IDENT_RE = re.compile(r"^[a-zA-Z_?!+\-*/<>=][\w?!+\-*/<>=.]*$")
BOOLEAN_ATOMS = frozenset({"#t", "#f", "#true", "#false"})


def is_number(token: str) -> bool:
    return bool(NUMBER_RE.match(token))


def is_string(token: str) -> bool:
    return len(token) >= 2 and bool(STRING_RE.match(token))


def is_identifier(token: str) -> bool:
    return bool(IDENT_RE.match(token)) and not token[0].isdigit()


def is_atom(token: str) -> bool:
    return is_number(token) or is_string(token) or is_identifier(token) or token in BOOLEAN_ATOMS


@dataclass(frozen=True)
class RuleOutcome:
    ok: bool
    message: str = ""

    @classmethod
    def passed(cls) -> RuleOutcome:
        return cls(True)

    @classmethod
    def fail(cls, message: str) -> RuleOutcome:
        return cls(False, message)


Rule = Callable[[str, Sequence[str], TokenSpec], RuleOutcome]

RULES: Dict[str, Rule] = {}


def register_rule(*spec_ids: str):
    def dec(fn: Rule) -> Rule:
        for spec_id in spec_ids:
            RULES[spec_id] = fn
        return fn

    return dec


def rule_for(spec: TokenSpec) -> Rule:
    return RULES.get(spec.id, min_arity_rule)


def min_arity_rule(head: str, args: Sequence[str], spec: TokenSpec) -> RuleOutcome:
    """Default: at least as many arguments as the catalog declares."""
    expected = len(spec.expects)
    if len(args) < expected:
        return RuleOutcome.fail(f"Not enough arguments for '{head}'. Expected {expected}, got {len(args)}.")
    return RuleOutcome.passed()


@register_rule("list", "+", "-", "=")
def variadic_rule(head: str, args: Sequence[str], spec: TokenSpec) -> RuleOutcome:
    # Racket accepts these with any argument count, including zero.
    return RuleOutcome.passed()


def single_form(tokens: Sequence[str]) -> bool:
    """True when the outer parenthesis closes exactly at the last token."""
    depth = 0
    for i, tok in enumerate(tokens):
        if tok == "(":
            depth += 1
        elif tok == ")":
            depth -= 1
            if depth == 0 and i < len(tokens) - 1:
                return False
    return depth == 0


def _signature_ok(signature: str) -> bool:
    # (name params...) with a symbol in name position
    tokens = tokenize(signature)

    if len(tokens) < 3 or tokens[0] != "(" or tokens[-1] != ")":
        return False

    return single_form(tokens) and is_identifier(tokens[1])


@register_rule("define")
def define_rule(head: str, args: Sequence[str], spec: TokenSpec) -> RuleOutcome:
    if not args:
        return RuleOutcome.fail("'define' needs at least a name and a value/body. Example: (define x 10).")

    name = args[0]

    if name.startswith("("):
        if not _signature_ok(name):
            return RuleOutcome.fail(
                "Malformed function definition in 'define'. Expected (define (func-name args...) body)."
            )
        if len(args) < 2:
            return RuleOutcome.fail("Function definition in 'define' is missing a body.")
        return RuleOutcome.passed()

    if len(args) < 2:
        return RuleOutcome.fail("'define' expects a variable and a value. Example: (define x 10).")

    if not is_identifier(name):
        return RuleOutcome.fail(f"Invalid variable name '{name}' in define.")

    return RuleOutcome.passed()


def apply_rule(head: str, args: Sequence[str], spec: Optional[TokenSpec]) -> RuleOutcome:
    """Check a call against its catalog entry; unknown or argument-less heads pass."""
    if spec is None or not spec.expects:
        return RuleOutcome.passed()
    return rule_for(spec)(head, args, spec)
