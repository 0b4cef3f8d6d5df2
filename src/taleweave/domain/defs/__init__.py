"""Domain definition exports."""

from .condition_def import (
    COMPARISON_OPS,
    AllOf,
    AnyOf,
    ComparisonOp,
    Condition,
    FlagCondition,
    ItemCondition,
    Not,
    StatCondition,
    VisitedCondition,
)
from .effect_def import AddItem, AdjustStat, ClearFlag, EffectDef, RemoveItem, SetFlag, SetStat
from .story_def import ChoiceDef, SceneDef, SceneVariantDef, StatDef, StoryDef, StoryMetadata

__all__ = [
    "COMPARISON_OPS",
    "AddItem",
    "AdjustStat",
    "AllOf",
    "AnyOf",
    "ChoiceDef",
    "ClearFlag",
    "ComparisonOp",
    "Condition",
    "EffectDef",
    "FlagCondition",
    "ItemCondition",
    "Not",
    "RemoveItem",
    "SceneDef",
    "SceneVariantDef",
    "SetFlag",
    "SetStat",
    "StatCondition",
    "StatDef",
    "StoryDef",
    "StoryMetadata",
    "VisitedCondition",
]
