"""
Local syntax validator

Best-effort structural check run before code is sent to an evaluator.
Checks, stopping at the first failure:
1. emptiness
2. global parenthesis balance
3. per-line shape (atom or a single (head args...) form) and head rules
It never claims semantic correctness.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .catalog import DEFAULT_CATALOG, Catalog
from .rules import apply_rule, is_atom, is_number, is_string, single_form
from .tokenizer import tokenize

EMPTY_MESSAGE = "Expression is empty."
EMPTY_EVALUATION = "// Expression is empty"
PLAUSIBLE_MESSAGE = "Syntax appears plausible."

_EXCERPT_LIMIT = 60


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: str
    error_line_index: Optional[int] = None
    simulated_evaluation: Optional[str] = None

    @classmethod
    def error(cls, message: str, line_index: Optional[int] = None) -> ValidationResult:
        return cls(False, message, error_line_index=line_index)


def excerpt(line: str) -> str:
    line = line.strip()
    if len(line) <= _EXCERPT_LIMIT:
        return line
    return line[:_EXCERPT_LIMIT - 3] + "..."


def join_form(tokens: Sequence[str]) -> str:
    """Rebuild text for a parenthesized group of tokens."""
    out = ""
    prev = None
    for tok in tokens:
        if out and prev != "(" and tok != ")":
            out += " "
        out += tok
        prev = tok
    return out


def group_forms(tokens: Sequence[str]) -> List[str]:
    """Collapse a flat token run into top-level forms."""
    forms: List[str] = []
    group: List[str] = []
    depth = 0

    for tok in tokens:
        if tok == "(":
            depth += 1
        if depth > 0:
            group.append(tok)
        else:
            forms.append(tok)
        if tok == ")":
            depth -= 1
            if depth == 0:
                forms.append(join_form(group))
                group = []

    if group:
        forms.append(join_form(group))

    return forms


# ============================================================================
# Checks
# ============================================================================

def check_balance(lines: Sequence[str]) -> Optional[ValidationResult]:
    open_lines: List[int] = []

    for index, line in enumerate(lines):
        for ch in line:
            if ch == "(":
                open_lines.append(index)
            elif ch == ")":
                if not open_lines:
                    return ValidationResult.error(
                        f"Syntax Error: Unmatched closing parenthesis on line {index + 1}. "
                        f"Check: {excerpt(line)}",
                        index,
                    )
                open_lines.pop()

    if open_lines:
        index = open_lines[-1]
        return ValidationResult.error(
            f"Syntax Error: Unmatched opening parenthesis. Possible issue around line {index + 1}: "
            f"{excerpt(lines[index])}",
            index,
        )

    return None


def check_line(index: int, line: str, catalog: Catalog) -> Optional[ValidationResult]:
    tokens = tokenize(line)
    number = index + 1

    if len(tokens) == 1 and is_atom(tokens[0]):
        return None

    if tokens[0] != "(":
        return ValidationResult.error(
            f"Syntax Error on line {number}: Expected expression to start with '('. Found: '{tokens[0]}...'",
            index,
        )

    if tokens[-1] != ")":
        return ValidationResult.error(
            f"Syntax Error on line {number}: Expected expression to end with ')'. Line: {excerpt(line)}",
            index,
        )

    if not single_form(tokens):
        return ValidationResult.error(
            f"Syntax Error on line {number}: Expected a single balanced expression. Line: {excerpt(line)}",
            index,
        )

    body = group_forms(tokens[1:-1])
    if not body:
        return None

    head, args = body[0], body[1:]

    if args and (is_number(head) or is_string(head)):
        return ValidationResult.error(
            f"Syntax Error on line {number}: Operator/function expected. "
            f"Found value '{head}' at the start of an expression.",
            index,
        )

    outcome = apply_rule(head, args, catalog.by_label(head))
    if not outcome.ok:
        return ValidationResult.error(f"Syntax Error on line {number}: {outcome.message}", index)

    return None


def check_syntax(source: str, catalog: Catalog = DEFAULT_CATALOG) -> ValidationResult:
    """Local, pre-evaluation syntax check of generated or typed source."""
    lines = source.split("\n")

    if all(not line.strip() for line in lines):
        return ValidationResult(True, EMPTY_MESSAGE, simulated_evaluation=EMPTY_EVALUATION)

    failure = check_balance(lines)
    if failure is not None:
        return failure

    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or stripped == "()":
            continue

        failure = check_line(index, stripped, catalog)
        if failure is not None:
            return failure

    return ValidationResult(True, PLAUSIBLE_MESSAGE)
