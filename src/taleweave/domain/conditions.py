"""Condition evaluation against a player state."""
from __future__ import annotations

from typing import TYPE_CHECKING

from taleweave.domain.defs import (
    AllOf,
    AnyOf,
    Condition,
    FlagCondition,
    ItemCondition,
    Not,
    SceneDef,
    SceneVariantDef,
    StatCondition,
    VisitedCondition,
)

if TYPE_CHECKING:
    from taleweave.domain.state import PlayerState


def evaluate(condition: Condition | None, state: "PlayerState") -> bool:
    """Return True when ``condition`` holds for ``state``.

    Pure and total: names the state has never seen read as zero or absent.
    ``AllOf``/``AnyOf`` stop at the first deciding member.
    """
    if condition is None:
        return True
    if isinstance(condition, StatCondition):
        return _compare(state.stat(condition.name), condition.op, condition.value)
    if isinstance(condition, ItemCondition):
        held = state.has_item(condition.name, condition.quantity)
        return held if condition.present else not held
    if isinstance(condition, FlagCondition):
        return state.has_flag(condition.name) == condition.present
    if isinstance(condition, VisitedCondition):
        return state.has_visited(condition.scene_id) == condition.present
    if isinstance(condition, AllOf):
        return all(evaluate(member, state) for member in condition.conditions)
    if isinstance(condition, AnyOf):
        return any(evaluate(member, state) for member in condition.conditions)
    if isinstance(condition, Not):
        return not evaluate(condition.condition, state)
    raise TypeError(f"Unsupported condition: {condition!r}")


def select_variant(scene: SceneDef, state: "PlayerState") -> SceneVariantDef | None:
    """Return the first variant, in declared order, whose condition holds."""
    for variant in scene.variants:
        if evaluate(variant.condition, state):
            return variant
    return None


def _compare(actual: int, op: str, expected: int) -> bool:
    if op == ">=":
        return actual >= expected
    if op == "<=":
        return actual <= expected
    if op == "==":
        return actual == expected
    if op == "!=":
        return actual != expected
    if op == ">":
        return actual > expected
    if op == "<":
        return actual < expected
    return False
