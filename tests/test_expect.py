from __future__ import annotations

from typing import Optional, Tuple

import pytest

from racket_road.catalog import DEFAULT_CATALOG
from racket_road.expect import ExpectationResolver, next_expected
from racket_road.token_types import Category
from tests.support.harness import placed

K = Category.KEYWORD
F = Category.FUNCTION
C = Category.CONDITION
V = Category.VARIABLE
L = Category.LIST_VALUE

CASES = [
    pytest.param((), K, id="empty-starts-with-keyword"),
    pytest.param(("define",), V, id="define-wants-name"),
    pytest.param(("define", "x"), L, id="define-wants-value"),
    pytest.param(("define", "x", "num-1"), None, id="define-complete"),
    pytest.param(("filter",), C, id="filter-wants-condition"),
    pytest.param(("filter", "even?"), V, id="filter-wants-list"),
    pytest.param(("filter", "even?", "x"), None, id="filter-complete"),
    pytest.param(("map",), F, id="map-wants-function"),
    pytest.param(("foldr", "+"), L, id="nested-operator-opens-context"),
    pytest.param(("define", "x", "list", "num-1"), L, id="list-inside-define"),
    pytest.param(("cons", "+", "num-1", "num-0"), V, id="outer-call-resumes-after-inner-saturates"),
    pytest.param(("cons", "+", "num-1", "num-0", "x"), None, id="outer-call-complete"),
    pytest.param(("x",), None, id="terminal-alone"),
    pytest.param(("even?",), None, id="condition-does-not-open-context"),
]


@pytest.mark.parametrize("ids, expected", CASES)
def test_next_expected(ids: Tuple[str, ...], expected: Optional[Category]) -> None:
    assert next_expected(placed(*ids)) is expected


def test_accepts_catalog_specs_directly() -> None:
    specs = [DEFAULT_CATALOG["filter"], DEFAULT_CATALOG["even?"]]
    assert next_expected(specs) is V


def test_fallback_only_after_non_terminal() -> None:
    # even? is not terminal and opens no context
    assert next_expected(placed("even?"), fallback=K) is K
    # x is terminal, so the fallback is not used
    assert next_expected(placed("x"), fallback=K) is None


def test_resolver_exposes_open_contexts() -> None:
    resolver = ExpectationResolver().feed(placed("foldr", "map"))
    contexts = resolver.open_contexts

    assert [ctx.token.id for ctx in contexts] == ["foldr", "map"]
    assert contexts[0].remaining == [L, V]
    assert contexts[1].remaining == [F, V]
    assert resolver.expected() is F


def test_incremental_push_matches_batch() -> None:
    tokens = placed("define", "x", "list", "num-1", "num-0")
    resolver = ExpectationResolver()
    for i, token in enumerate(tokens):
        resolver.push(token)
        assert resolver.expected() is next_expected(tokens[: i + 1])
