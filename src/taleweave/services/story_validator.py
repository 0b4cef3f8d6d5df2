"""Static story graph validation utilities."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Sequence

from taleweave.domain.defs import (
    AdjustStat,
    AllOf,
    AnyOf,
    Condition,
    EffectDef,
    Not,
    SceneDef,
    SetStat,
    StatCondition,
    StoryDef,
    VisitedCondition,
)


Severity = str

ERROR: Severity = "ERROR"
WARN: Severity = "WARN"


@dataclass(frozen=True, slots=True)
class Issue:
    severity: Severity
    code: str
    message: str
    context: dict[str, str]


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def has_errors(issues: Iterable[Issue]) -> bool:
    return any(issue.severity == ERROR for issue in issues)


def validate_story(
    story: StoryDef,
    scene_entries: Sequence[tuple[str, SceneDef]] | None = None,
) -> list[Issue]:
    """Collect every problem in ``story``; an empty list means fully clean.

    ``scene_entries`` is the scene list as declared in the source, which is the
    only place duplicate ids are still visible.
    """
    issues: list[Issue] = []
    for scene_id in _duplicate_ids(scene_entries or ()):
        issues.append(
            Issue(
                severity=ERROR,
                code="DUPLICATE_SCENE_ID",
                message="Duplicate scene id detected.",
                context={"scene_id": scene_id},
            )
        )

    if story.start_scene_id not in story.scenes:
        issues.append(
            Issue(
                severity=ERROR,
                code="MISSING_START_SCENE",
                message="Starting scene does not exist.",
                context={"story_id": story.id, "referenced_id": story.start_scene_id},
            )
        )

    _validate_stats(story, issues)
    for scene in story.scenes.values():
        _validate_variants(scene, issues)
        _validate_choices(scene, story.scenes, issues)
        _validate_names(scene, story, issues)
    _validate_reachability(story, issues)
    return issues


def _duplicate_ids(scene_entries: Sequence[tuple[str, SceneDef]]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for scene_id, _scene in scene_entries:
        if scene_id in seen and scene_id not in duplicates:
            duplicates.append(scene_id)
        seen.add(scene_id)
    return duplicates


def _validate_stats(story: StoryDef, issues: list[Issue]) -> None:
    for name, stat_def in story.stats.items():
        if (
            stat_def.minimum is not None
            and stat_def.maximum is not None
            and stat_def.minimum > stat_def.maximum
        ):
            issues.append(
                Issue(
                    severity=ERROR,
                    code="INVALID_STAT_RANGE",
                    message="Statistic minimum is greater than its maximum.",
                    context={"stat": name, "min": str(stat_def.minimum), "max": str(stat_def.maximum)},
                )
            )
            continue
        if not stat_def.contains(stat_def.initial):
            issues.append(
                Issue(
                    severity=ERROR,
                    code="STAT_INITIAL_OUT_OF_RANGE",
                    message="Statistic initial value lies outside its declared range.",
                    context={"stat": name, "initial": str(stat_def.initial)},
                )
            )


def _validate_variants(scene: SceneDef, issues: list[Issue]) -> None:
    if not scene.variants:
        issues.append(
            Issue(
                severity=ERROR,
                code="NO_VARIANTS",
                message="Scene declares no text variants.",
                context={"scene_id": scene.id},
            )
        )
        return
    fallback_indexes = [index for index, variant in enumerate(scene.variants) if variant.is_fallback]
    if len(fallback_indexes) > 1:
        issues.append(
            Issue(
                severity=ERROR,
                code="MULTIPLE_FALLBACK_VARIANTS",
                message="Scene declares more than one unconditioned variant.",
                context={"scene_id": scene.id, "field_path": f"variants[{fallback_indexes[1]}]"},
            )
        )
    elif not fallback_indexes:
        issues.append(
            Issue(
                severity=WARN,
                code="NO_FALLBACK_VARIANT",
                message="Scene has no unconditioned variant and may render without text.",
                context={"scene_id": scene.id},
            )
        )
    elif fallback_indexes[0] != len(scene.variants) - 1:
        issues.append(
            Issue(
                severity=WARN,
                code="SHADOWED_VARIANT",
                message="Variants declared after the fallback are never shown.",
                context={"scene_id": scene.id, "field_path": f"variants[{fallback_indexes[0] + 1}]"},
            )
        )


def _validate_choices(scene: SceneDef, scenes: Mapping[str, SceneDef], issues: list[Issue]) -> None:
    seen_ids: set[str] = set()
    for index, choice in enumerate(scene.choices):
        if choice.id in seen_ids:
            issues.append(
                Issue(
                    severity=ERROR,
                    code="DUPLICATE_CHOICE_ID",
                    message="Duplicate choice id within scene.",
                    context={"scene_id": scene.id, "choice_id": choice.id},
                )
            )
        seen_ids.add(choice.id)
        if choice.target not in scenes:
            issues.append(
                Issue(
                    severity=ERROR,
                    code="MISSING_SCENE_REF",
                    message="Choice references missing scene.",
                    context={
                        "scene_id": scene.id,
                        "choice_id": choice.id,
                        "field_path": f"choices[{index}].target",
                        "referenced_id": choice.target,
                    },
                )
            )
    if scene.ending and scene.choices:
        issues.append(
            Issue(
                severity=WARN,
                code="ENDING_HAS_CHOICES",
                message="Ending scene declares choices; they are never offered.",
                context={"scene_id": scene.id},
            )
        )
    if not scene.ending and not scene.choices:
        issues.append(
            Issue(
                severity=WARN,
                code="DEAD_END",
                message="Scene has no choices and is not marked as an ending.",
                context={"scene_id": scene.id},
            )
        )


def _validate_names(scene: SceneDef, story: StoryDef, issues: list[Issue]) -> None:
    conditions: list[tuple[str, Condition]] = []
    for index, variant in enumerate(scene.variants):
        if variant.condition is not None:
            conditions.append((f"variants[{index}].when", variant.condition))
    effects: list[tuple[str, EffectDef]] = [
        (f"on_enter[{index}]", effect) for index, effect in enumerate(scene.on_enter)
    ]
    for choice_index, choice in enumerate(scene.choices):
        prefix = f"choices[{choice_index}]"
        if choice.visible_if is not None:
            conditions.append((f"{prefix}.visible_if", choice.visible_if))
        if choice.enabled_if is not None:
            conditions.append((f"{prefix}.enabled_if", choice.enabled_if))
        effects.extend(
            (f"{prefix}.effects[{index}]", effect) for index, effect in enumerate(choice.effects)
        )

    for path, condition in conditions:
        for leaf in _iter_leaves(condition):
            if isinstance(leaf, StatCondition) and leaf.name not in story.stats:
                issues.append(_undeclared_stat(scene.id, path, leaf.name))
            elif isinstance(leaf, VisitedCondition) and leaf.scene_id not in story.scenes:
                issues.append(
                    Issue(
                        severity=WARN,
                        code="UNKNOWN_VISITED_SCENE",
                        message="Visited condition names a scene the story does not define.",
                        context={"scene_id": scene.id, "field_path": path, "referenced_id": leaf.scene_id},
                    )
                )
    for path, effect in effects:
        if isinstance(effect, (AdjustStat, SetStat)) and effect.name not in story.stats:
            issues.append(_undeclared_stat(scene.id, path, effect.name))


def _undeclared_stat(scene_id: str, path: str, name: str) -> Issue:
    return Issue(
        severity=WARN,
        code="UNDECLARED_STAT",
        message="Statistic is not declared by the story and will be unbounded.",
        context={"scene_id": scene_id, "field_path": path, "stat": name},
    )


def _iter_leaves(condition: Condition) -> Iterator[Condition]:
    if isinstance(condition, (AllOf, AnyOf)):
        for member in condition.conditions:
            yield from _iter_leaves(member)
    elif isinstance(condition, Not):
        yield from _iter_leaves(condition.condition)
    else:
        yield condition


def _validate_reachability(story: StoryDef, issues: list[Issue]) -> None:
    if story.start_scene_id not in story.scenes:
        return
    reachable: set[str] = set()
    stack: list[str] = [story.start_scene_id]
    while stack:
        scene_id = stack.pop()
        if scene_id in reachable:
            continue
        reachable.add(scene_id)
        scene = story.scenes[scene_id]
        if scene.ending:
            continue
        for choice in scene.choices:
            if choice.target in story.scenes:
                stack.append(choice.target)
    for scene_id in story.scenes:
        if scene_id not in reachable:
            issues.append(
                Issue(
                    severity=WARN,
                    code="UNREACHABLE_SCENE",
                    message="Scene is unreachable from the starting scene.",
                    context={"scene_id": scene_id},
                )
            )
