"""Condition expression tree attached to variants and choices."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple, Union

ComparisonOp = Literal[">=", "<=", "==", "!=", ">", "<"]

COMPARISON_OPS: tuple[ComparisonOp, ...] = (">=", "<=", "==", "!=", ">", "<")


@dataclass(frozen=True, slots=True)
class StatCondition:
    """Compare a statistic against a constant."""

    name: str
    op: ComparisonOp
    value: int


@dataclass(frozen=True, slots=True)
class ItemCondition:
    """Require an item to be held (at least ``quantity``) or absent."""

    name: str
    present: bool = True
    quantity: int = 1


@dataclass(frozen=True, slots=True)
class FlagCondition:
    name: str
    present: bool = True


@dataclass(frozen=True, slots=True)
class VisitedCondition:
    """Require a scene to appear (or not) in the visit history."""

    scene_id: str
    present: bool = True


@dataclass(frozen=True, slots=True)
class AllOf:
    conditions: Tuple["Condition", ...]


@dataclass(frozen=True, slots=True)
class AnyOf:
    conditions: Tuple["Condition", ...]


@dataclass(frozen=True, slots=True)
class Not:
    condition: "Condition"


Condition = Union[
    StatCondition,
    ItemCondition,
    FlagCondition,
    VisitedCondition,
    AllOf,
    AnyOf,
    Not,
]
