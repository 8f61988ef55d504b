"""Pill catalog: immutable table of token specs built once at import."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .token_types import Category, TokenSpec


class CatalogError(Exception):
    """Catalog construction or lookup error"""
    pass


class Catalog:
    """Read-only registry of pill specs, keyed by id and ordered as declared."""

    __slots__ = ("_specs", "_by_id")

    def __init__(self, specs: Iterable[TokenSpec]):
        ordered: List[TokenSpec] = []
        by_id: Dict[str, TokenSpec] = {}

        for spec in specs:
            if spec.id in by_id:
                raise CatalogError(f"Duplicate pill id '{spec.id}'")
            if not isinstance(spec.category, Category):
                raise CatalogError(f"Pill '{spec.id}' has unknown category {spec.category!r}")
            for expected in spec.expects:
                if not isinstance(expected, Category):
                    raise CatalogError(f"Pill '{spec.id}' expects unknown category {expected!r}")
            by_id[spec.id] = spec
            ordered.append(spec)

        self._specs: Tuple[TokenSpec, ...] = tuple(ordered)
        self._by_id: Mapping[str, TokenSpec] = MappingProxyType(by_id)

    def __getitem__(self, spec_id: str) -> TokenSpec:
        try:
            return self._by_id[spec_id]
        except KeyError:
            raise CatalogError(f"Unknown pill id '{spec_id}'") from None

    def __contains__(self, spec_id: object) -> bool:
        return spec_id in self._by_id

    def __iter__(self) -> Iterator[TokenSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def get(self, spec_id: str) -> Optional[TokenSpec]:
        return self._by_id.get(spec_id)

    def by_label(self, label: str) -> Optional[TokenSpec]:
        """First spec whose emitted label is *label*."""
        for spec in self._specs:
            if spec.label == label:
                return spec

        return None

    def in_category(self, category: Category) -> List[TokenSpec]:
        return [spec for spec in self._specs if spec.category is category]

    @property
    def ids(self) -> Sequence[str]:
        return tuple(spec.id for spec in self._specs)


def _spec(id_: str, label: str, category: Category, *expects: Category, terminal: bool = False) -> TokenSpec:
    return TokenSpec(id=id_, label=label, category=category, expects=tuple(expects), is_terminal=terminal)


K = Category.KEYWORD
F = Category.FUNCTION
O = Category.OPERATOR
C = Category.CONDITION
V = Category.VARIABLE
L = Category.LIST_VALUE

DEFAULT_CATALOG = Catalog([
    # Keywords
    _spec("define", "define", K, V, L),
    _spec("list", "list", K, L, L, L),
    _spec("display", "display", K, L),
    _spec("true", "#t", K, terminal=True),
    _spec("false", "#f", K, terminal=True),

    # Functions
    _spec("cons", "cons", F, L, V),
    _spec("first", "first", F, V),
    _spec("rest", "rest", F, V),
    _spec("filter", "filter", F, C, V),
    _spec("map", "map", F, F, V),
    _spec("foldr", "foldr", F, F, L, V),

    # Conditions
    _spec("empty?", "empty?", C, V),
    _spec("even?", "even?", C, L),
    _spec("odd?", "odd?", C, L),

    # Operators
    _spec("+", "+", O, L, L),
    _spec("-", "-", O, L, L),
    _spec("=", "=", O, L, L),

    # Variables
    _spec("item", "item", V, terminal=True),
    _spec("x", "x", V, terminal=True),

    # List values
    _spec("num-0", "0", L, terminal=True),
    _spec("num-1", "1", L, terminal=True),
    _spec("str-hello", '"hello"', L, terminal=True),
    _spec("num-generic", "1 2 3", L, terminal=True),
    _spec("num-long-sequence", "1 2 3 4 5 6 7 8 9", L, terminal=True),
])

del K, F, O, C, V, L

# Palette color per category; list values share the variable color.
CATEGORY_COLOR = MappingProxyType({
    Category.KEYWORD: "keyword",
    Category.FUNCTION: "function",
    Category.CONDITION: "condition",
    Category.OPERATOR: "operator",
    Category.VARIABLE: "variable",
    Category.LIST_VALUE: "variable",
})


def category_color(category: Optional[Category]) -> str:
    """Color name for the "expected next" indicator."""
    if category is None:
        return "muted"
    return CATEGORY_COLOR.get(category, "muted")
