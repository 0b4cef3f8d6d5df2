"""Per-session player state."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Set

from taleweave.domain.defs import (
    AddItem,
    AdjustStat,
    ClearFlag,
    EffectDef,
    RemoveItem,
    SetFlag,
    SetStat,
    StatDef,
    StoryDef,
)
from taleweave.domain.inventory import Inventory

DEFAULT_PLAYER_NAME = "Player"


def format_playtime(seconds: int) -> str:
    """Render a duration as "1h 2m 3s", dropping leading zero units."""
    hours, remainder = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@dataclass(frozen=True, slots=True)
class PlayerStatistics:
    """Read-only summary of a play session."""

    playtime_seconds: int
    total_scenes_visited: int
    unique_scenes_visited: int
    inventory_size: int
    flags_set: int

    def playtime_formatted(self) -> str:
        return format_playtime(self.playtime_seconds)


@dataclass
class PlayerState:
    """Mutable state of one play session.

    The narrative service mutates story data only through ``apply`` plus scene
    movement; ``playtime_seconds`` is advanced by whoever drives the session
    clock, never by story choices. ``stat_defs`` holds the story's declared bounds;
    it is not persisted and takes no part in equality.
    """

    story_id: str
    current_scene_id: str
    stats: Dict[str, int] = field(default_factory=dict)
    inventory: Inventory = field(default_factory=Inventory)
    flags: Set[str] = field(default_factory=set)
    history: List[str] = field(default_factory=list)
    player_name: str = DEFAULT_PLAYER_NAME
    playtime_seconds: int = 0
    stat_defs: Mapping[str, StatDef] = field(default_factory=dict, compare=False, repr=False)

    def stat(self, name: str) -> int:
        return self.stats.get(name, 0)

    def item_count(self, item_id: str) -> int:
        return self.inventory.count(item_id)

    def has_item(self, item_id: str, quantity: int = 1) -> bool:
        return self.inventory.has(item_id, quantity)

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    def has_visited(self, scene_id: str) -> bool:
        return scene_id in self.history

    def visit_count(self, scene_id: str) -> int:
        return self.history.count(scene_id)

    def unique_scenes_visited(self) -> int:
        return len(set(self.history))

    def add_playtime(self, seconds: float) -> None:
        """Accumulate wall-clock play time; negative spans are ignored."""
        if seconds > 0:
            self.playtime_seconds += int(seconds)

    def playtime_formatted(self) -> str:
        return format_playtime(self.playtime_seconds)

    def statistics(self) -> PlayerStatistics:
        return PlayerStatistics(
            playtime_seconds=self.playtime_seconds,
            total_scenes_visited=len(self.history),
            unique_scenes_visited=self.unique_scenes_visited(),
            inventory_size=len(self.inventory),
            flags_set=len(self.flags),
        )

    def apply(self, effect: EffectDef) -> None:
        """Apply a single effect. Total for every parsed effect type."""
        if isinstance(effect, AdjustStat):
            self.stats[effect.name] = self._clamp(effect.name, self.stat(effect.name) + effect.delta)
        elif isinstance(effect, SetStat):
            self.stats[effect.name] = self._clamp(effect.name, effect.value)
        elif isinstance(effect, AddItem):
            self.inventory.add(effect.name, effect.quantity)
        elif isinstance(effect, RemoveItem):
            self.inventory.remove(effect.name, effect.quantity)
        elif isinstance(effect, SetFlag):
            self.flags.add(effect.name)
        elif isinstance(effect, ClearFlag):
            self.flags.discard(effect.name)
        else:
            raise TypeError(f"Unsupported effect: {effect!r}")

    def enter_scene(self, scene_id: str) -> None:
        self.current_scene_id = scene_id
        self.history.append(scene_id)

    def snapshot(self) -> "PlayerState":
        """Return an independent copy sharing only the immutable stat bounds."""
        return PlayerState(
            story_id=self.story_id,
            current_scene_id=self.current_scene_id,
            stats=dict(self.stats),
            inventory=Inventory(self.inventory.as_dict()),
            flags=set(self.flags),
            history=list(self.history),
            player_name=self.player_name,
            playtime_seconds=self.playtime_seconds,
            stat_defs=self.stat_defs,
        )

    def _clamp(self, name: str, value: int) -> int:
        stat_def = self.stat_defs.get(name)
        if stat_def is None:
            return value
        return stat_def.clamp(value)


def new_player_state(story: StoryDef, player_name: str | None = None) -> PlayerState:
    """Create a fresh state positioned at the story's start scene."""
    return PlayerState(
        story_id=story.id,
        current_scene_id=story.start_scene_id,
        stats={name: stat_def.initial for name, stat_def in story.stats.items()},
        inventory=Inventory.from_mapping(story.initial_inventory),
        flags=set(story.initial_flags),
        history=[story.start_scene_id],
        player_name=player_name or DEFAULT_PLAYER_NAME,
        stat_defs=story.stats,
    )
