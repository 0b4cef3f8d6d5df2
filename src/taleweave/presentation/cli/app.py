"""Console-driven UI loops for Taleweave."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from time import monotonic
from typing import List, Literal, Sequence

from taleweave.data.errors import DataError
from taleweave.domain.defs import StoryDef
from taleweave.domain.state import DEFAULT_PLAYER_NAME, PlayerState
from taleweave.presentation.cli.render import (
    format_slot,
    render_events,
    render_heading,
    render_history,
    render_statistics,
    render_menu,
    render_scene,
)
from taleweave.services import (
    ChoiceError,
    LoadError,
    NarrativeService,
    PersistenceError,
    SaveService,
    SaveSlotStore,
    StoryCatalog,
)

logger = logging.getLogger(__name__)

MenuAction = Literal["new_game", "load_game", "list_stories", "quit"]
PlayCommand = Literal["save", "history", "quit"]

HISTORY_LENGTH = 10

_MAIN_MENU: Sequence[tuple[str, MenuAction]] = (
    ("New Game", "new_game"),
    ("Load Game", "load_game"),
    ("List Stories", "list_stories"),
    ("Quit", "quit"),
)


@dataclass(slots=True)
class AppContext:
    """Collaborators shared by every menu of one CLI run."""

    catalog: StoryCatalog
    slots: SaveSlotStore
    story_id: str | None = None


def main(context: AppContext) -> None:
    """Start the interactive CLI session."""
    print("=== Taleweave ===")
    while True:
        action = _main_menu_loop()
        if action == "quit":
            break
        if action == "list_stories":
            _show_story_list(context.catalog)
        elif action == "new_game":
            _start_new_game(context)
        elif action == "load_game":
            _load_game(context)
    print("Goodbye!")


def _main_menu_options() -> List[str]:
    return [label for label, _ in _MAIN_MENU]


def _main_menu_loop() -> MenuAction:
    options = _main_menu_options()
    while True:
        render_menu("Main Menu", options)
        choice = input("Select an option: ").strip()
        if choice.isdigit() and 1 <= int(choice) <= len(_MAIN_MENU):
            return _MAIN_MENU[int(choice) - 1][1]
        print(f"Invalid selection. Please enter 1-{len(_MAIN_MENU)}.")


def _show_story_list(catalog: StoryCatalog) -> None:
    stories = catalog.list_stories()
    render_heading("Stories")
    if not stories:
        print(f"No stories found in {catalog.directory}.")
        return
    for meta in stories:
        print(f"- {meta.display_name()} [{meta.id}] ({meta.scene_count} scenes)")
        if meta.description:
            print(f"    {meta.description}")


def _start_new_game(context: AppContext) -> None:
    context.catalog.reload()
    story = _select_story(context)
    if story is None:
        return
    service = NarrativeService(story)
    state = service.new_game(_prompt_player_name())
    _run_story_loop(context, service, state)


def _select_story(context: AppContext) -> StoryDef | None:
    if context.story_id is not None:
        return _load_story(context.catalog, context.story_id)
    stories = context.catalog.list_stories()
    if not stories:
        print(f"No stories found in {context.catalog.directory}.")
        return None
    if len(stories) == 1:
        return _load_story(context.catalog, stories[0].id)
    render_menu("Choose a Story", [meta.display_name() for meta in stories])
    index = _prompt_index(len(stories), allow_cancel=True)
    if index is None:
        return None
    return _load_story(context.catalog, stories[index].id)


def _load_story(catalog: StoryCatalog, story_id: str) -> StoryDef | None:
    try:
        return catalog.load(story_id)
    except DataError as exc:
        logger.error("Failed to load story '%s': %s", story_id, exc)
        print(f"Unable to load story '{story_id}': {exc}")
        return None


def _prompt_player_name() -> str:
    name = input(f"Enter your name (default {DEFAULT_PLAYER_NAME}): ").strip()
    return name or DEFAULT_PLAYER_NAME


def _prompt_index(count: int, *, allow_cancel: bool = False) -> int | None:
    hint = " (blank to cancel)" if allow_cancel else ""
    while True:
        raw = input(f"Select an option{hint}: ").strip()
        if not raw and allow_cancel:
            return None
        try:
            index = int(raw) - 1
        except ValueError:
            print("Please enter a number.")
            continue
        if 0 <= index < count:
            return index
        print(f"Please enter a value between 1 and {count}.")


def _run_story_loop(context: AppContext, service: NarrativeService, state: PlayerState) -> None:
    """Present scenes and apply choices until an ending or the player quits.

    Wall-clock time spent in the loop is added to the state's playtime, both
    before every save and when the loop exits.
    """
    clock = monotonic()
    try:
        while True:
            presentation = service.present(state)
            render_scene(presentation)
            if presentation.ended:
                clock = _tick_playtime(state, clock)
                render_statistics(state.statistics())
                print("\nThe End. Returning to main menu.")
                return
            command = _prompt_play_command(len(presentation.choices))
            if command == "quit":
                return
            if command == "history":
                render_history(service.event_log.recent(HISTORY_LENGTH))
                continue
            if command == "save":
                clock = _tick_playtime(state, clock)
                _save_game(context.slots, service.story, state)
                continue
            try:
                outcome = service.choose(state, command)
            except ChoiceError as exc:
                print(exc)
                continue
            render_events(outcome.events)
    finally:
        _tick_playtime(state, clock)


def _tick_playtime(state: PlayerState, since: float) -> float:
    """Add whole elapsed seconds to playtime; the remainder carries to the next tick."""
    elapsed = int(monotonic() - since)
    state.add_playtime(elapsed)
    return since + elapsed


def _prompt_play_command(choice_count: int) -> int | PlayCommand:
    """Return a zero-based choice index, or a save/history/quit command."""
    while True:
        raw = input("Choose (number), [s]ave, [h]istory or [q]uit: ").strip().lower()
        if raw in ("q", "quit"):
            return "quit"
        if raw in ("s", "save"):
            return "save"
        if raw in ("h", "history"):
            return "history"
        try:
            index = int(raw) - 1
        except ValueError:
            print("Please enter a number, 's', 'h' or 'q'.")
            continue
        if 0 <= index < choice_count:
            return index
        print(f"Please enter a value between 1 and {choice_count}.")


def _prompt_slot(slots: SaveSlotStore, title: str) -> int | None:
    entries = slots.list_slots()
    render_heading(title)
    for entry in entries:
        print(format_slot(entry))
    index = _prompt_index(len(entries), allow_cancel=True)
    return None if index is None else entries[index].slot


def _save_game(slots: SaveSlotStore, story: StoryDef, state: PlayerState) -> None:
    slot = _prompt_slot(slots, "Save Game")
    if slot is None:
        return
    if slots.slot_exists(slot):
        confirm = input(f"Overwrite slot {slot}? (y/n): ").strip().lower()
        if confirm not in ("y", "yes"):
            return
    try:
        data = SaveService(story).save(state)
        slots.write_slot(slot, data)
    except PersistenceError as exc:
        print(f"Save failed: {exc}")
        return
    print(f"Saved to slot {slot}.")


def _load_game(context: AppContext) -> None:
    slot = _prompt_slot(context.slots, "Load Game")
    if slot is None:
        return
    entry = next(item for item in context.slots.list_slots() if item.slot == slot)
    if not entry.exists:
        print(f"Slot {slot} is empty.")
        return
    story_id = entry.metadata.get("story_id") if entry.metadata else None
    if entry.is_corrupt or not isinstance(story_id, str):
        print(f"Slot {slot} is corrupt and cannot be loaded.")
        return
    story = _load_story(context.catalog, story_id)
    if story is None:
        return
    try:
        session = SaveService(story).load(context.slots.read_slot(slot))
    except (LoadError, PersistenceError) as exc:
        logger.error("Failed to load slot %s: %s", slot, exc)
        print(f"Load failed: {exc}")
        return
    print(f"Loaded slot {slot}.")
    _run_story_loop(context, NarrativeService(story), session.state)
