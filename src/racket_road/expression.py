"""Lines of placed pills, as edited by the builder."""

from __future__ import annotations

import uuid
from typing import Iterator, List, Optional, Sequence, Tuple

from .catalog import DEFAULT_CATALOG, Catalog
from .token_types import PlacedToken, TokenSpec

Line = List[PlacedToken]


class ExpressionError(Exception):
    """Invalid edit of an expression"""
    pass


def new_instance_id(spec: TokenSpec) -> str:
    return f"{spec.id}-{uuid.uuid4().hex}"


def place_token(spec: TokenSpec) -> PlacedToken:
    """Instantiate a catalog entry with a fresh instance id."""
    return PlacedToken(spec=spec, instance_id=new_instance_id(spec))


class Expression:
    """
    Ordered lines of placed pills.

    Invariants:
    - at least one line always exists
    - every instance id appears exactly once across all lines
    """

    def __init__(self, lines: Optional[Sequence[Sequence[PlacedToken]]] = None):
        self._lines: List[Line] = [list(line) for line in lines] if lines else [[]]

        seen = set()
        for token in self.tokens():
            if token.instance_id in seen:
                raise ExpressionError(f"Duplicate instance id '{token.instance_id}'")
            seen.add(token.instance_id)

    @classmethod
    def from_ids(cls, rows: Sequence[Sequence[str]], catalog: Catalog = DEFAULT_CATALOG) -> Expression:
        """Build an expression from rows of catalog ids."""
        return cls([[place_token(catalog[spec_id]) for spec_id in row] for row in rows])

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def lines(self) -> Tuple[Tuple[PlacedToken, ...], ...]:
        return tuple(tuple(line) for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Tuple[PlacedToken, ...]]:
        return iter(self.lines)

    def line(self, index: int) -> Tuple[PlacedToken, ...]:
        return tuple(self._line(index))

    def tokens(self) -> Iterator[PlacedToken]:
        for line in self._lines:
            yield from line

    def locate(self, instance_id: str) -> Tuple[int, int]:
        """Return (line index, position) of a placed token."""
        for line_index, line in enumerate(self._lines):
            for pos, token in enumerate(line):
                if token.instance_id == instance_id:
                    return line_index, pos

        raise ExpressionError(f"No placed pill with instance id '{instance_id}'")

    # ========================================================================
    # Edits
    # ========================================================================

    def place(self, line_index: int, spec: TokenSpec, position: Optional[int] = None) -> PlacedToken:
        """Drop a catalog entry into a line (append unless *position* given)."""
        line = self._line(line_index)
        token = place_token(spec)
        self._insert(line, token, position)
        return token

    def remove(self, instance_id: str) -> PlacedToken:
        line_index, pos = self.locate(instance_id)
        return self._lines[line_index].pop(pos)

    def move(self, instance_id: str, target_line: int, position: Optional[int] = None) -> PlacedToken:
        """Move a placed token to another line (remove-then-insert)."""
        target = self._line(target_line)

        if position is not None and not 0 <= position <= len(target):
            raise ExpressionError(f"Position {position} out of range for line {target_line + 1}")

        line_index, pos = self.locate(instance_id)
        token = self._lines[line_index].pop(pos)

        if position is not None and line_index == target_line and position > len(target):
            position = len(target)

        self._insert(target, token, position)
        return token

    def add_line(self) -> int:
        self._lines.append([])
        return len(self._lines) - 1

    def remove_line(self, index: int) -> List[PlacedToken]:
        if len(self._lines) == 1:
            raise ExpressionError("Cannot remove the last remaining line")

        self._line(index)
        return self._lines.pop(index)

    def clear_line(self, index: int) -> None:
        self._line(index).clear()

    def clear(self) -> None:
        self._lines = [[]]

    # ========================================================================
    # Utilities
    # ========================================================================

    def _line(self, index: int) -> Line:
        if not 0 <= index < len(self._lines):
            raise ExpressionError(f"Line {index + 1} does not exist")
        return self._lines[index]

    @staticmethod
    def _insert(line: Line, token: PlacedToken, position: Optional[int]) -> None:
        if position is None:
            line.append(token)
            return

        if not 0 <= position <= len(line):
            raise ExpressionError(f"Position {position} out of range")
        line.insert(position, token)

    def __repr__(self) -> str:
        rows = [" ".join(token.id for token in line) for line in self._lines]
        return f"Expression({rows!r})"
