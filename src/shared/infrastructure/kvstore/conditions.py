"""
Declarative store predicates
Used both as conditional-write guards and as query filters
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

ItemView = Optional[Mapping[str, Any]]

_MISSING = object()


class Condition(ABC):
    """
    Predicate over a single stored item.

    ``evaluate`` receives ``None`` when the item does not exist, so guards such
    as "item must not exist" and "attribute must be absent" are expressible.
    Conditions compose with ``&``, ``|`` and ``~``.
    """

    @abstractmethod
    def evaluate(self, item: ItemView) -> bool:
        ...

    def __and__(self, other: Condition) -> Condition:
        return And(self, other)

    def __or__(self, other: Condition) -> Condition:
        return Or(self, other)

    def __invert__(self) -> Condition:
        return Not(self)


@dataclass(frozen=True)
class And(Condition):
    left: Condition
    right: Condition

    def evaluate(self, item: ItemView) -> bool:
        return self.left.evaluate(item) and self.right.evaluate(item)


@dataclass(frozen=True)
class Or(Condition):
    left: Condition
    right: Condition

    def evaluate(self, item: ItemView) -> bool:
        return self.left.evaluate(item) or self.right.evaluate(item)


@dataclass(frozen=True)
class Not(Condition):
    inner: Condition

    def evaluate(self, item: ItemView) -> bool:
        return not self.inner.evaluate(item)


@dataclass(frozen=True)
class ItemExists(Condition):
    """True when the addressed item is present (and not expired)."""

    def evaluate(self, item: ItemView) -> bool:
        return item is not None


@dataclass(frozen=True)
class AttributeCondition(Condition):
    name: str
    op: str
    value: Any = None

    def evaluate(self, item: ItemView) -> bool:
        actual = _MISSING if item is None else item.get(self.name, _MISSING)
        if actual is None:
            # a stored null is treated the same as an absent attribute
            actual = _MISSING
        return _OPERATORS[self.op](actual, self.value)


def _contains(actual: Any, value: Any) -> bool:
    if actual is _MISSING:
        return False
    if isinstance(actual, str):
        return isinstance(value, str) and value in actual
    if isinstance(actual, (list, tuple, set, frozenset)):
        return value in actual
    return False


def _icontains(actual: Any, value: Any) -> bool:
    return isinstance(actual, str) and str(value).lower() in actual.lower()


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "exists": lambda actual, _: actual is not _MISSING,
    "not_exists": lambda actual, _: actual is _MISSING,
    "eq": lambda actual, value: actual is not _MISSING and actual == value,
    "ne": lambda actual, value: actual is _MISSING or actual != value,
    "contains": _contains,
    "icontains": _icontains,
    "begins_with": lambda actual, value: isinstance(actual, str) and actual.startswith(value),
}


@dataclass(frozen=True)
class Attr:
    """
    Attribute reference used to build conditions.

    Usage:
        Attr("deleted_at").not_exists() & Attr("version").eq(3)
    """
    name: str

    def exists(self) -> Condition:
        return AttributeCondition(self.name, "exists")

    def not_exists(self) -> Condition:
        return AttributeCondition(self.name, "not_exists")

    def eq(self, value: Any) -> Condition:
        return AttributeCondition(self.name, "eq", value)

    def ne(self, value: Any) -> Condition:
        return AttributeCondition(self.name, "ne", value)

    def contains(self, value: Any) -> Condition:
        return AttributeCondition(self.name, "contains", value)

    def icontains(self, value: str) -> Condition:
        """Case-insensitive substring match on a string attribute."""
        return AttributeCondition(self.name, "icontains", value)

    def begins_with(self, prefix: str) -> Condition:
        return AttributeCondition(self.name, "begins_with", prefix)


@dataclass(frozen=True)
class SortKeyRange:
    """
    Key condition on the sort key within one partition.

    All bounds are inclusive. ``prefix`` restricts to sort keys starting with it.
    """
    lower: Optional[str] = None
    upper: Optional[str] = None
    prefix: Optional[str] = None

    @classmethod
    def begins_with(cls, prefix: str) -> SortKeyRange:
        return cls(prefix=prefix)

    @classmethod
    def between(cls, lower: str, upper: str, *, prefix: Optional[str] = None) -> SortKeyRange:
        return cls(lower=lower, upper=upper, prefix=prefix)

    @classmethod
    def at_least(cls, lower: str, *, prefix: Optional[str] = None) -> SortKeyRange:
        return cls(lower=lower, prefix=prefix)

    @classmethod
    def equals(cls, value: str) -> SortKeyRange:
        return cls(lower=value, upper=value)

    def matches(self, sk: str) -> bool:
        if self.prefix is not None and not sk.startswith(self.prefix):
            return False
        if self.lower is not None and sk < self.lower:
            return False
        if self.upper is not None and sk > self.upper:
            return False
        return True
