from __future__ import annotations

import pytest

from taleweave.domain.conditions import evaluate, select_variant
from taleweave.domain.defs import (
    AllOf,
    AnyOf,
    FlagCondition,
    ItemCondition,
    Not,
    SceneDef,
    SceneVariantDef,
    StatCondition,
    VisitedCondition,
)
from taleweave.domain.inventory import Inventory
from taleweave.domain.state import PlayerState


def _state() -> PlayerState:
    return PlayerState(
        story_id="s",
        current_scene_id="hall",
        stats={"courage": 2},
        inventory=Inventory({"key": 2}),
        flags={"door_open"},
        history=["start", "hall"],
    )


_TRUE = FlagCondition(name="door_open")
_FALSE = FlagCondition(name="door_open", present=False)


def test_absent_condition_is_true() -> None:
    assert evaluate(None, _state()) is True


@pytest.mark.parametrize(
    ("op", "value", "expected"),
    [
        (">=", 2, True),
        (">=", 3, False),
        ("<=", 2, True),
        ("==", 2, True),
        ("!=", 2, False),
        (">", 1, True),
        ("<", 2, False),
    ],
)
def test_stat_comparisons(op: str, value: int, expected: bool) -> None:
    assert evaluate(StatCondition(name="courage", op=op, value=value), _state()) is expected


def test_unknown_stat_reads_as_zero() -> None:
    state = _state()
    assert evaluate(StatCondition(name="luck", op="==", value=0), state)
    assert "luck" not in state.stats


def test_item_conditions_respect_quantity() -> None:
    state = _state()
    assert evaluate(ItemCondition(name="key", quantity=2), state)
    assert not evaluate(ItemCondition(name="key", quantity=3), state)
    assert evaluate(ItemCondition(name="key", present=False, quantity=3), state)
    assert evaluate(ItemCondition(name="map", present=False), state)


def test_flag_and_visited_conditions() -> None:
    state = _state()
    assert evaluate(FlagCondition(name="door_open"), state)
    assert evaluate(FlagCondition(name="lamp_lit", present=False), state)
    assert evaluate(VisitedCondition(scene_id="start"), state)
    assert evaluate(VisitedCondition(scene_id="cellar", present=False), state)


def test_combinators() -> None:
    state = _state()
    assert evaluate(AllOf((_TRUE, _TRUE)), state)
    assert not evaluate(AllOf((_TRUE, _FALSE)), state)
    assert evaluate(AnyOf((_FALSE, _TRUE)), state)
    assert evaluate(Not(_FALSE), state)
    assert evaluate(AllOf(()), state)
    assert not evaluate(AnyOf(()), state)


def test_combinators_short_circuit() -> None:
    state = _state()
    unsupported = object()
    assert evaluate(AnyOf((_TRUE, unsupported)), state)
    assert not evaluate(AllOf((_FALSE, unsupported)), state)
    with pytest.raises(TypeError):
        evaluate(AllOf((_TRUE, unsupported)), state)


def test_evaluate_does_not_mutate_state() -> None:
    state = _state()
    before = state.snapshot()
    evaluate(AllOf((StatCondition(name="luck", op=">", value=0), _TRUE)), state)
    assert state == before


def test_select_variant_first_match_wins() -> None:
    scene = SceneDef(
        id="hall",
        variants=(
            SceneVariantDef(text="Brave.", condition=StatCondition(name="courage", op=">=", value=2)),
            SceneVariantDef(text="Door open.", condition=_TRUE),
            SceneVariantDef(text="Fallback."),
        ),
    )
    assert select_variant(scene, _state()).text == "Brave."

    timid = _state()
    timid.stats["courage"] = 0
    assert select_variant(scene, timid).text == "Door open."


def test_select_variant_without_match_returns_none() -> None:
    scene = SceneDef(id="hall", variants=(SceneVariantDef(text="Never.", condition=_FALSE),))
    assert select_variant(scene, _state()) is None
