"""Convert decoded story JSON into typed definitions."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from taleweave.data.errors import DataValidationError
from taleweave.data.json_loader import content_checksum
from taleweave.domain.defs import (
    COMPARISON_OPS,
    AddItem,
    AdjustStat,
    AllOf,
    AnyOf,
    ChoiceDef,
    ClearFlag,
    Condition,
    EffectDef,
    FlagCondition,
    ItemCondition,
    Not,
    RemoveItem,
    SceneDef,
    SceneVariantDef,
    SetFlag,
    SetStat,
    StatCondition,
    StatDef,
    StoryDef,
    VisitedCondition,
)

MAX_CONDITION_DEPTH = 32


@dataclass(frozen=True, slots=True)
class ParsedStory:
    """A story plus its scenes exactly as declared, duplicates included."""

    story: StoryDef
    scene_entries: Tuple[Tuple[str, SceneDef], ...]


class StoryParser:
    """Structural parser for story documents.

    Raises DataValidationError naming the offending field path. Cross-reference
    checks (targets, reachability, ranges) belong to the story validator.
    """

    def parse(self, raw: object) -> ParsedStory:
        story_data = self._require_mapping(raw, "story")
        story_id = self._require_str(story_data.get("id"), "story id")
        ctx = f"story '{story_id}'"
        title = self._require_str(story_data.get("title", story_id), f"{ctx} title")
        start = self._require_str(story_data.get("start"), f"{ctx} start")
        stats = self._parse_stats(story_data.get("stats"), ctx)
        inventory = self._parse_initial_inventory(story_data.get("inventory"), ctx)
        flags = self._parse_initial_flags(story_data.get("flags"), ctx)
        scene_entries = self._parse_scenes(story_data.get("scenes"), ctx)

        scenes: Dict[str, SceneDef] = {}
        for scene_id, scene in scene_entries:
            scenes.setdefault(scene_id, scene)

        story = StoryDef(
            id=story_id,
            title=title,
            start_scene_id=start,
            scenes=MappingProxyType(scenes),
            stats=MappingProxyType(stats),
            initial_inventory=MappingProxyType(inventory),
            initial_flags=frozenset(flags),
            description=self._require_str(story_data.get("description", ""), f"{ctx} description"),
            author=self._require_str(story_data.get("author", ""), f"{ctx} author"),
            version=self._require_str(story_data.get("version", "1.0.0"), f"{ctx} version"),
            checksum=content_checksum(story_data),
        )
        return ParsedStory(story=story, scene_entries=tuple(scene_entries))

    def _parse_stats(self, raw_stats: object, ctx: str) -> Dict[str, StatDef]:
        if raw_stats is None:
            return {}
        mapping = self._require_mapping(raw_stats, f"{ctx} stats")
        stats: Dict[str, StatDef] = {}
        for name, entry in mapping.items():
            stat_ctx = f"{ctx} stats.{name}"
            if isinstance(entry, int) and not isinstance(entry, bool):
                stats[name] = StatDef(name=name, initial=entry)
                continue
            stat_data = self._require_mapping(entry, stat_ctx)
            stats[name] = StatDef(
                name=name,
                initial=self._require_int(stat_data.get("initial", 0), f"{stat_ctx}.initial"),
                minimum=self._optional_int(stat_data.get("min"), f"{stat_ctx}.min"),
                maximum=self._optional_int(stat_data.get("max"), f"{stat_ctx}.max"),
            )
        return stats

    def _parse_initial_inventory(self, raw_inventory: object, ctx: str) -> Dict[str, int]:
        if raw_inventory is None:
            return {}
        mapping = self._require_mapping(raw_inventory, f"{ctx} inventory")
        inventory: Dict[str, int] = {}
        for item_id, quantity in mapping.items():
            inventory[item_id] = self._require_positive_int(quantity, f"{ctx} inventory.{item_id}")
        return inventory

    def _parse_initial_flags(self, raw_flags: object, ctx: str) -> List[str]:
        if raw_flags is None:
            return []
        if not isinstance(raw_flags, list):
            raise DataValidationError(f"{ctx} flags must be a list if provided.")
        return [self._require_str(flag, f"{ctx} flags[{index}]") for index, flag in enumerate(raw_flags)]

    def _parse_scenes(self, raw_scenes: object, ctx: str) -> List[Tuple[str, SceneDef]]:
        if isinstance(raw_scenes, Mapping):
            items = []
            for scene_id, payload in raw_scenes.items():
                scene_data = dict(self._require_mapping(payload, f"{ctx} scene '{scene_id}'"))
                scene_data.setdefault("id", scene_id)
                items.append(scene_data)
        elif isinstance(raw_scenes, list):
            items = list(raw_scenes)
        else:
            raise DataValidationError(f"{ctx} scenes must be a list or an object.")
        entries: List[Tuple[str, SceneDef]] = []
        for index, entry in enumerate(items):
            scene = self._parse_scene(entry, f"{ctx} scenes[{index}]")
            entries.append((scene.id, scene))
        return entries

    def _parse_scene(self, raw_scene: object, position: str) -> SceneDef:
        scene_data = self._require_mapping(raw_scene, position)
        scene_id = self._require_str(scene_data.get("id"), f"{position} id")
        ctx = f"scene '{scene_id}'"
        variants = self._parse_variants(scene_data, ctx)
        choices = self._parse_choices(scene_data.get("choices"), scene_id)
        on_enter = self._parse_effects(scene_data.get("on_enter"), f"{ctx} on_enter")
        ending = scene_data.get("ending", False)
        if not isinstance(ending, bool):
            raise DataValidationError(f"{ctx} ending must be a boolean.")
        return SceneDef(
            id=scene_id,
            variants=variants,
            choices=choices,
            on_enter=on_enter,
            title=self._require_str(scene_data.get("title", ""), f"{ctx} title"),
            ending=ending,
        )

    def _parse_variants(self, scene_data: Mapping[str, object], ctx: str) -> Tuple[SceneVariantDef, ...]:
        has_text = "text" in scene_data
        has_variants = "variants" in scene_data
        if has_text and has_variants:
            raise DataValidationError(f"{ctx} must declare either text or variants, not both.")
        if has_text:
            return (SceneVariantDef(text=self._require_str(scene_data["text"], f"{ctx} text")),)
        raw_variants = scene_data.get("variants")
        if not isinstance(raw_variants, list):
            raise DataValidationError(f"{ctx} must declare text or a list of variants.")
        variants: List[SceneVariantDef] = []
        for index, entry in enumerate(raw_variants):
            variant_ctx = f"{ctx} variants[{index}]"
            variant_data = self._require_mapping(entry, variant_ctx)
            text = self._require_str(variant_data.get("text"), f"{variant_ctx} text")
            condition = self._parse_optional_condition(variant_data.get("when"), f"{variant_ctx} when")
            variants.append(SceneVariantDef(text=text, condition=condition))
        return tuple(variants)

    def _parse_choices(self, raw_choices: object, scene_id: str) -> Tuple[ChoiceDef, ...]:
        if raw_choices is None:
            return ()
        if not isinstance(raw_choices, list):
            raise DataValidationError(f"scene '{scene_id}' choices must be a list if provided.")
        choices: List[ChoiceDef] = []
        for index, entry in enumerate(raw_choices):
            choice_ctx = f"scene '{scene_id}' choices[{index}]"
            choice_mapping = self._require_mapping(entry, choice_ctx)
            choice_id = self._require_str(choice_mapping.get("id", f"{scene_id}:{index}"), f"{choice_ctx} id")
            disabled_reason = choice_mapping.get("disabled_reason")
            if disabled_reason is not None:
                disabled_reason = self._require_str(disabled_reason, f"{choice_ctx} disabled_reason")
            choices.append(
                ChoiceDef(
                    id=choice_id,
                    label=self._require_str(choice_mapping.get("label"), f"{choice_ctx} label"),
                    target=self._require_str(choice_mapping.get("target"), f"{choice_ctx} target"),
                    visible_if=self._parse_optional_condition(
                        choice_mapping.get("visible_if"), f"{choice_ctx} visible_if"
                    ),
                    enabled_if=self._parse_optional_condition(
                        choice_mapping.get("enabled_if"), f"{choice_ctx} enabled_if"
                    ),
                    disabled_reason=disabled_reason,
                    effects=self._parse_effects(choice_mapping.get("effects"), f"{choice_ctx} effects"),
                )
            )
        return tuple(choices)

    def _parse_optional_condition(self, raw: object, context: str) -> Condition | None:
        if raw is None:
            return None
        return self.parse_condition(raw, context)

    def parse_condition(self, raw: object, context: str) -> Condition:
        """Parse one condition expression; a bare list means all-of."""
        return self._parse_condition(raw, context, 0)

    def _parse_condition(self, raw: object, context: str, depth: int) -> Condition:
        if depth > MAX_CONDITION_DEPTH:
            raise DataValidationError(f"{context} is nested deeper than {MAX_CONDITION_DEPTH} levels.")
        if isinstance(raw, list):
            return AllOf(
                tuple(self._parse_condition(entry, f"{context}[{i}]", depth + 1) for i, entry in enumerate(raw))
            )
        data = self._require_mapping(raw, context)
        cond_type = self._require_str(data.get("type"), f"{context} type")
        if cond_type == "stat":
            op = data.get("op")
            if op not in COMPARISON_OPS:
                raise DataValidationError(
                    f"{context} op must be one of {', '.join(COMPARISON_OPS)}; got {op!r}."
                )
            return StatCondition(
                name=self._require_str(data.get("name"), f"{context} name"),
                op=op,
                value=self._require_int(data.get("value"), f"{context} value"),
            )
        if cond_type in ("has_item", "lacks_item"):
            return ItemCondition(
                name=self._require_str(data.get("name"), f"{context} name"),
                present=cond_type == "has_item",
                quantity=self._require_positive_int(data.get("quantity", 1), f"{context} quantity"),
            )
        if cond_type in ("flag", "no_flag"):
            return FlagCondition(
                name=self._require_str(data.get("name"), f"{context} name"),
                present=cond_type == "flag",
            )
        if cond_type in ("visited", "not_visited"):
            return VisitedCondition(
                scene_id=self._require_str(data.get("scene"), f"{context} scene"),
                present=cond_type == "visited",
            )
        if cond_type in ("all", "any"):
            members = data.get("of")
            if not isinstance(members, list):
                raise DataValidationError(f"{context} of must be a list.")
            parsed = tuple(
                self._parse_condition(entry, f"{context}.of[{i}]", depth + 1) for i, entry in enumerate(members)
            )
            return AllOf(parsed) if cond_type == "all" else AnyOf(parsed)
        if cond_type == "not":
            return Not(self._parse_condition(data.get("condition"), f"{context}.condition", depth + 1))
        raise DataValidationError(f"{context} has unknown condition type '{cond_type}'.")

    def _parse_effects(self, raw_effects: object, context: str) -> Tuple[EffectDef, ...]:
        if raw_effects is None:
            return ()
        if not isinstance(raw_effects, list):
            raise DataValidationError(f"{context} must be a list if provided.")
        return tuple(self.parse_effect(entry, f"{context}[{index}]") for index, entry in enumerate(raw_effects))

    def parse_effect(self, raw: object, context: str) -> EffectDef:
        data = self._require_mapping(raw, context)
        effect_type = self._require_str(data.get("type"), f"{context} type")
        name = self._require_str(data.get("name"), f"{context} name")
        if effect_type == "adjust_stat":
            return AdjustStat(name=name, delta=self._require_int(data.get("delta"), f"{context} delta"))
        if effect_type == "set_stat":
            return SetStat(name=name, value=self._require_int(data.get("value"), f"{context} value"))
        if effect_type == "add_item":
            return AddItem(name=name, quantity=self._require_positive_int(data.get("quantity", 1), f"{context} quantity"))
        if effect_type == "remove_item":
            return RemoveItem(
                name=name, quantity=self._require_positive_int(data.get("quantity", 1), f"{context} quantity")
            )
        if effect_type == "set_flag":
            return SetFlag(name=name)
        if effect_type == "clear_flag":
            return ClearFlag(name=name)
        raise DataValidationError(f"{context} has unknown effect type '{effect_type}'.")

    @staticmethod
    def _require_mapping(value: object, context: str) -> Mapping[str, object]:
        if not isinstance(value, Mapping):
            raise DataValidationError(f"{context} must be an object/dict.")
        return value

    @staticmethod
    def _require_str(value: object, context: str) -> str:
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string.")
        return value

    @staticmethod
    def _require_int(value: object, context: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DataValidationError(f"{context} must be an integer.")
        return value

    @classmethod
    def _optional_int(cls, value: object, context: str) -> int | None:
        if value is None:
            return None
        return cls._require_int(value, context)

    @classmethod
    def _require_positive_int(cls, value: object, context: str) -> int:
        number = cls._require_int(value, context)
        if number <= 0:
            raise DataValidationError(f"{context} must be a positive integer.")
        return number


def parse_story(raw: object) -> ParsedStory:
    """Parse a decoded story document."""
    return StoryParser().parse(raw)
