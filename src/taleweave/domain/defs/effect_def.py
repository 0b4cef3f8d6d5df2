"""State mutations applied when a choice is taken or a scene is entered."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class AdjustStat:
    """Add a signed delta to a statistic."""

    name: str
    delta: int


@dataclass(frozen=True, slots=True)
class SetStat:
    name: str
    value: int


@dataclass(frozen=True, slots=True)
class AddItem:
    name: str
    quantity: int = 1


@dataclass(frozen=True, slots=True)
class RemoveItem:
    name: str
    quantity: int = 1


@dataclass(frozen=True, slots=True)
class SetFlag:
    name: str


@dataclass(frozen=True, slots=True)
class ClearFlag:
    name: str


EffectDef = Union[AdjustStat, SetStat, AddItem, RemoveItem, SetFlag, ClearFlag]
