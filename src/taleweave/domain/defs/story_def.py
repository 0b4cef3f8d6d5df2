"""Story definition structures used by the runtime."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, List, Mapping, Tuple

from .condition_def import Condition
from .effect_def import EffectDef


@dataclass(frozen=True, slots=True)
class StatDef:
    """Declared statistic with its starting value and optional bounds."""

    name: str
    initial: int = 0
    minimum: int | None = None
    maximum: int | None = None

    def clamp(self, value: int) -> int:
        if self.minimum is not None and value < self.minimum:
            return self.minimum
        if self.maximum is not None and value > self.maximum:
            return self.maximum
        return value

    def contains(self, value: int) -> bool:
        return self.clamp(value) == value


@dataclass(frozen=True, slots=True)
class SceneVariantDef:
    """One candidate text for a scene; ``condition`` None marks the fallback."""

    text: str
    condition: Condition | None = None

    @property
    def is_fallback(self) -> bool:
        return self.condition is None


@dataclass(frozen=True, slots=True)
class ChoiceDef:
    """Represents a selectable choice on a scene."""

    id: str
    label: str
    target: str
    visible_if: Condition | None = None
    enabled_if: Condition | None = None
    disabled_reason: str | None = None
    effects: Tuple[EffectDef, ...] = ()


@dataclass(frozen=True, slots=True)
class SceneDef:
    """Fully parsed scene."""

    id: str
    variants: Tuple[SceneVariantDef, ...]
    choices: Tuple[ChoiceDef, ...] = ()
    on_enter: Tuple[EffectDef, ...] = ()
    title: str = ""
    ending: bool = False


@dataclass(frozen=True, slots=True)
class StoryDef:
    """A complete, validated story. Never mutated after loading."""

    id: str
    title: str
    start_scene_id: str
    scenes: Mapping[str, SceneDef]
    stats: Mapping[str, StatDef] = field(default_factory=dict)
    initial_inventory: Mapping[str, int] = field(default_factory=dict)
    initial_flags: FrozenSet[str] = frozenset()
    description: str = ""
    author: str = ""
    version: str = "1.0.0"
    checksum: str = ""

    def get_scene(self, scene_id: str) -> SceneDef:
        """Return a scene by id, raising KeyError when absent."""
        try:
            return self.scenes[scene_id]
        except KeyError as exc:
            raise KeyError(scene_id) from exc

    def has_scene(self, scene_id: str) -> bool:
        return scene_id in self.scenes

    def endings(self) -> List[SceneDef]:
        return [scene for scene in self.scenes.values() if scene.ending]

    @property
    def scene_count(self) -> int:
        return len(self.scenes)


@dataclass(frozen=True, slots=True)
class StoryMetadata:
    """Summary shown in story pickers; read without full validation."""

    id: str
    title: str
    description: str
    author: str
    version: str
    scene_count: int

    def display_name(self) -> str:
        author = self.author or "Unknown"
        return f"{self.title} by {author} (v{self.version})"
