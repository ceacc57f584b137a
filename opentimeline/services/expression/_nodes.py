"""Predicate tree produced by the expression parser.

Each node evaluates itself against a ``TagIndex``: a mapping from tag name
(``None`` for anonymous tags) to the set of values carried under that name.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass

TagIndex = Mapping[str | None, frozenset[str] | set[str]]


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


@dataclass(frozen=True)
class TagEquals:
    """``name = "value"``: some tag with that name has that exact value."""

    name: str
    value: str

    def evaluate(self, index: TagIndex) -> bool:
        return self.value in index.get(self.name, ())

    def __str__(self) -> str:
        return f"{self.name} = {_quote(self.value)}"


@dataclass(frozen=True)
class TagNotEquals:
    """``name != "value"``: the name is present, and never with that value.

    False when the name is absent entirely, so an entity that says nothing
    about ``name`` is not treated as contradicting it.
    """

    name: str
    value: str

    def evaluate(self, index: TagIndex) -> bool:
        values = index.get(self.name)
        return bool(values) and self.value not in values

    def __str__(self) -> str:
        return f"{self.name} != {_quote(self.value)}"


@dataclass(frozen=True)
class TagExists:
    """``name exists`` / ``name not exists``: presence of any tag with that name."""

    name: str
    negated: bool = False

    def evaluate(self, index: TagIndex) -> bool:
        present = bool(index.get(self.name))
        return not present if self.negated else present

    def __str__(self) -> str:
        return f"{self.name} not exists" if self.negated else f"{self.name} exists"


@dataclass(frozen=True)
class AnonymousTag:
    """``"value"``: an anonymous (nameless) tag has that value."""

    value: str

    def evaluate(self, index: TagIndex) -> bool:
        return self.value in index.get(None, ())

    def __str__(self) -> str:
        return _quote(self.value)


@dataclass(frozen=True)
class Not:
    """Boolean negation."""

    operand: Predicate

    def evaluate(self, index: TagIndex) -> bool:
        return not self.operand.evaluate(index)

    def __str__(self) -> str:
        return f"NOT {_wrap(self.operand)}"


@dataclass(frozen=True)
class And:
    """Short-circuit conjunction."""

    operands: tuple[Predicate, ...]

    def evaluate(self, index: TagIndex) -> bool:
        return all(operand.evaluate(index) for operand in self.operands)

    def __str__(self) -> str:
        return " AND ".join(_wrap(operand) for operand in self.operands)


@dataclass(frozen=True)
class Or:
    """Short-circuit disjunction."""

    operands: tuple[Predicate, ...]

    def evaluate(self, index: TagIndex) -> bool:
        return any(operand.evaluate(index) for operand in self.operands)

    def __str__(self) -> str:
        return " OR ".join(_wrap(operand) for operand in self.operands)


Predicate = TagEquals | TagNotEquals | TagExists | AnonymousTag | Not | And | Or


def _wrap(predicate: Predicate) -> str:
    if isinstance(predicate, (And, Or)):
        return f"({predicate})"
    return str(predicate)
