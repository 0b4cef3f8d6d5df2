"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
import textwrap
from typing import Iterable, Sequence

from taleweave.domain.state import PlayerStatistics
from taleweave.services import (
    ChoiceView,
    EndingReachedEvent,
    FlagClearedEvent,
    FlagSetEvent,
    GameStartedEvent,
    ItemAddedEvent,
    ItemRemovedEvent,
    LoggedEvent,
    SceneEnteredEvent,
    ScenePresentation,
    SlotMetadata,
    StatChangedEvent,
    StoryEvent,
)

_TEXT_WIDTH = 72


def debug_enabled() -> bool:
    """Return True only when TALEWEAVE_DEBUG is explicitly set to '1'."""
    return os.getenv("TALEWEAVE_DEBUG") == "1"


def wrap_paragraphs(text: str, width: int = _TEXT_WIDTH) -> list[str]:
    """Wrap each paragraph on word boundaries, keeping blank lines between them."""
    lines: list[str] = []
    for index, paragraph in enumerate(text.split("\n\n")):
        if index > 0:
            lines.append("")
        lines.extend(
            textwrap.wrap(
                " ".join(paragraph.split()),
                width=width,
                break_long_words=False,
                break_on_hyphens=False,
            )
        )
    return lines


def format_choice(choice: ChoiceView) -> str:
    label = f"{choice.index + 1}. {choice.label}"
    if choice.enabled:
        return label
    return f"{label} [unavailable: {choice.disabled_reason}]"


def format_event(event: StoryEvent) -> str | None:
    """Return a one-line description of an event, or None for silent ones."""
    if isinstance(event, StatChangedEvent):
        delta = event.new_value - event.old_value
        sign = "+" if delta > 0 else ""
        return f"{event.name.title()} {sign}{delta} (now {event.new_value})"
    if isinstance(event, ItemAddedEvent):
        return f"Gained {event.quantity} x {event.name} (have {event.total})"
    if isinstance(event, ItemRemovedEvent):
        return f"Lost {event.quantity} x {event.name} (have {event.remaining})"
    if isinstance(event, (FlagSetEvent, FlagClearedEvent)):
        return f"[{event.name}]" if debug_enabled() else None
    if isinstance(event, SceneEnteredEvent):
        return f"[{event.scene_id}]" if debug_enabled() else None
    if isinstance(event, GameStartedEvent):
        return f"{event.player_name} began the story."
    if isinstance(event, EndingReachedEvent):
        return "The story has reached an ending."
    return str(event)


def format_slot(slot: SlotMetadata) -> str:
    if not slot.exists:
        return f"Slot {slot.slot}: (empty)"
    if slot.is_corrupt or slot.metadata is None:
        return f"Slot {slot.slot}: (corrupt)"
    meta = slot.metadata
    title = meta.get("story_title") or meta.get("story_id") or "Unknown story"
    scene = meta.get("scene_title") or "?"
    saved_at = meta.get("saved_at") or "?"
    line = f"Slot {slot.slot}: {meta.get('player_name', '?')} - {title} / {scene} ({saved_at})"
    playtime = meta.get("playtime")
    if playtime:
        line += f" [played {playtime}]"
    return line


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_scene(presentation: ScenePresentation) -> None:
    """Render the current scene text and its choices."""
    render_heading(presentation.title or presentation.scene_id)
    if debug_enabled():
        print(f"[{presentation.scene_id}]")
    for line in wrap_paragraphs(presentation.text):
        print(line)
    render_choices(presentation.choices)


def render_choices(choices: Sequence[ChoiceView]) -> None:
    """Display numbered story choices, disabled ones marked."""
    if not choices:
        return
    print()
    for choice in choices:
        print(format_choice(choice))


def render_events(events: Iterable[StoryEvent]) -> None:
    lines = [line for line in (format_event(event) for event in events) if line]
    if lines:
        print()
        render_bullet_lines(lines)


def render_menu(title: str, options: Sequence[str]) -> None:
    """Display a menu section with numbered options."""
    render_heading(title)
    for idx, label in enumerate(options, start=1):
        print(f"{idx}. {label}")


def render_bullet_lines(lines: Iterable[str]) -> None:
    """Print bullet-prefixed lines."""
    for line in lines:
        print(f"- {line}")


def render_history(entries: Sequence[LoggedEvent]) -> None:
    """Print recent events with the turn each one happened on."""
    render_heading("Recent Events")
    lines = []
    for entry in entries:
        text = format_event(entry.event)
        if text:
            lines.append(f"Turn {entry.turn}: {text}")
    if not lines:
        print("Nothing has happened yet.")
        return
    render_bullet_lines(lines)


def render_statistics(stats: PlayerStatistics) -> None:
    print(
        f"\nPlayed for {stats.playtime_formatted()}, visiting {stats.unique_scenes_visited} scenes "
        f"in {stats.total_scenes_visited} steps."
    )
