"""
Token Types for Racket Road

Shared between the catalog, the expectation resolver and the code generator
to avoid circular dependencies.
"""

from typing import Tuple
from dataclasses import dataclass, field
from enum import Enum


class Category(Enum):
    """Pill categories - closed set, no subtyping"""

    KEYWORD = "keyword"
    FUNCTION = "function"
    OPERATOR = "operator"
    CONDITION = "condition"
    VARIABLE = "variable"
    LIST_VALUE = "list_value"

    @classmethod
    def parse(cls, name: str) -> "Category":
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown pill category '{name}'") from None


# Categories that open a call context when they declare expected arguments
CALLABLE = frozenset({Category.FUNCTION, Category.KEYWORD, Category.OPERATOR})

BOOLEAN_LABELS = ("#t", "#f")


@dataclass(frozen=True)
class TokenSpec:
    """Catalog entry"""

    id: str
    label: str
    category: Category
    expects: Tuple[Category, ...] = ()
    is_terminal: bool = False

    @property
    def is_callable(self) -> bool:
        return self.category in CALLABLE and bool(self.expects)

    def __repr__(self):
        return f"TokenSpec({self.id!r}, {self.category.value})"


@dataclass(frozen=True)
class PlacedToken:
    """Catalog entry instantiated into a line"""

    spec: TokenSpec
    instance_id: str = field(compare=True)

    # Forward catalog attributes so placed tokens read like specs
    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def label(self) -> str:
        return self.spec.label

    @property
    def category(self) -> Category:
        return self.spec.category

    @property
    def expects(self) -> Tuple[Category, ...]:
        return self.spec.expects

    @property
    def is_terminal(self) -> bool:
        return self.spec.is_terminal

    @property
    def is_callable(self) -> bool:
        return self.spec.is_callable

    def __repr__(self):
        return f"PlacedToken({self.spec.id!r}, {self.instance_id!r})"
