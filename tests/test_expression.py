from __future__ import annotations

import pytest

from racket_road.catalog import DEFAULT_CATALOG
from racket_road.expression import Expression, ExpressionError


def _ids(expr: Expression):
    return [[tok.id for tok in line] for line in expr]


def test_starts_with_one_empty_line() -> None:
    expr = Expression()
    assert len(expr) == 1
    assert expr.line(0) == ()


def test_place_appends_and_inserts() -> None:
    expr = Expression()
    expr.place(0, DEFAULT_CATALOG["filter"])
    expr.place(0, DEFAULT_CATALOG["x"])
    expr.place(0, DEFAULT_CATALOG["even?"], position=1)
    assert _ids(expr) == [["filter", "even?", "x"]]


def test_instance_ids_are_unique() -> None:
    expr = Expression.from_ids([["x", "x", "x"]])
    ids = [tok.instance_id for tok in expr.tokens()]
    assert len(set(ids)) == 3
    assert all(iid.startswith("x-") for iid in ids)


def test_move_between_lines_keeps_instance_id() -> None:
    expr = Expression.from_ids([["filter", "even?", "x"], ["first"]])
    token = expr.line(0)[2]

    moved = expr.move(token.instance_id, 1)

    assert moved.instance_id == token.instance_id
    assert _ids(expr) == [["filter", "even?"], ["first", "x"]]
    assert sum(1 for tok in expr.tokens() if tok.instance_id == token.instance_id) == 1


def test_move_with_position() -> None:
    expr = Expression.from_ids([["x"], ["cons", "num-1"]])
    token = expr.line(0)[0]
    expr.move(token.instance_id, 1, position=1)
    assert _ids(expr) == [[], ["cons", "x", "num-1"]]


def test_move_within_line_to_end() -> None:
    expr = Expression.from_ids([["x", "num-1", "num-0"]])
    token = expr.line(0)[0]
    expr.move(token.instance_id, 0, position=3)
    assert _ids(expr) == [["num-1", "num-0", "x"]]


def test_move_to_missing_line_changes_nothing() -> None:
    expr = Expression.from_ids([["x"]])
    token = expr.line(0)[0]
    with pytest.raises(ExpressionError, match="Line 3 does not exist"):
        expr.move(token.instance_id, 2)
    assert _ids(expr) == [["x"]]


def test_move_bad_position_changes_nothing() -> None:
    expr = Expression.from_ids([["x"], []])
    token = expr.line(0)[0]
    with pytest.raises(ExpressionError):
        expr.move(token.instance_id, 1, position=5)
    assert _ids(expr) == [["x"], []]


def test_remove_unknown_instance() -> None:
    expr = Expression()
    with pytest.raises(ExpressionError, match="No placed pill"):
        expr.remove("ghost")


def test_remove_token() -> None:
    expr = Expression.from_ids([["first", "x"]])
    removed = expr.remove(expr.line(0)[0].instance_id)
    assert removed.id == "first"
    assert _ids(expr) == [["x"]]


def test_cannot_remove_last_line() -> None:
    expr = Expression()
    with pytest.raises(ExpressionError, match="last remaining line"):
        expr.remove_line(0)


def test_add_and_remove_lines() -> None:
    expr = Expression.from_ids([["x"]])
    index = expr.add_line()
    assert index == 1
    expr.place(1, DEFAULT_CATALOG["num-1"])
    removed = expr.remove_line(0)
    assert [tok.id for tok in removed] == ["x"]
    assert _ids(expr) == [["num-1"]]


def test_clear_resets_to_single_line() -> None:
    expr = Expression.from_ids([["x"], ["num-1"], []])
    expr.clear()
    assert _ids(expr) == [[]]


def test_clear_line() -> None:
    expr = Expression.from_ids([["x"], ["num-1"]])
    expr.clear_line(1)
    assert _ids(expr) == [["x"], []]


def test_duplicate_instance_rejected() -> None:
    expr = Expression.from_ids([["x"]])
    token = expr.line(0)[0]
    with pytest.raises(ExpressionError, match="Duplicate instance id"):
        Expression([[token], [token]])
