"""Story progression services."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from taleweave.core.types import EngineStatus
from taleweave.domain.conditions import evaluate, select_variant
from taleweave.domain.defs import (
    AddItem,
    AdjustStat,
    ChoiceDef,
    ClearFlag,
    EffectDef,
    RemoveItem,
    SceneDef,
    SetFlag,
    SetStat,
    StoryDef,
)
from taleweave.domain.state import PlayerState, new_player_state
from taleweave.services.event_log import EventLog
from taleweave.services.errors import (
    ChoiceDisabledError,
    ChoiceOutOfRangeError,
    MissingSceneError,
    SessionEndedError,
)

logger = logging.getLogger(__name__)

DEFAULT_DISABLED_REASON = "Requirements not met"


@dataclass(frozen=True, slots=True)
class ChoiceView:
    """A visible choice as offered to the presentation layer."""

    index: int
    choice_id: str
    label: str
    enabled: bool
    disabled_reason: str | None = None


@dataclass(frozen=True, slots=True)
class ScenePresentation:
    """Data returned to the presentation layer for rendering."""

    scene_id: str
    title: str
    text: str
    choices: List[ChoiceView]
    ended: bool

    @property
    def enabled_choices(self) -> List[ChoiceView]:
        return [choice for choice in self.choices if choice.enabled]


@dataclass(slots=True)
class StoryEvent:
    """Base class for story events."""


@dataclass(slots=True)
class GameStartedEvent(StoryEvent):
    story_id: str
    player_name: str


@dataclass(slots=True)
class StatChangedEvent(StoryEvent):
    name: str
    old_value: int
    new_value: int


@dataclass(slots=True)
class ItemAddedEvent(StoryEvent):
    name: str
    quantity: int
    total: int


@dataclass(slots=True)
class ItemRemovedEvent(StoryEvent):
    name: str
    quantity: int
    remaining: int


@dataclass(slots=True)
class FlagSetEvent(StoryEvent):
    name: str


@dataclass(slots=True)
class FlagClearedEvent(StoryEvent):
    name: str


@dataclass(slots=True)
class SceneEnteredEvent(StoryEvent):
    scene_id: str


@dataclass(slots=True)
class EndingReachedEvent(StoryEvent):
    scene_id: str


@dataclass(slots=True)
class NarrativeOutcome:
    """Result returned after applying a choice."""

    scene_id: str
    ended: bool
    events: List[StoryEvent] = field(default_factory=list)


class NarrativeService:
    """Application service that drives one story for any number of states.

    The service holds the immutable story and an ``EventLog`` of what happened
    so far; every call takes the state to read or advance explicitly.
    """

    def __init__(self, story: StoryDef, *, event_log: EventLog | None = None) -> None:
        self._story = story
        self._event_log = event_log if event_log is not None else EventLog()

    @property
    def story(self) -> StoryDef:
        return self._story

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    def new_game(self, player_name: str | None = None) -> PlayerState:
        """Create a fresh state positioned at the starting scene."""
        state = new_player_state(self._story, player_name)
        start_scene = self._current_scene(state)
        events: List[StoryEvent] = [GameStartedEvent(story_id=self._story.id, player_name=state.player_name)]
        events.extend(self._apply_effects(start_scene.on_enter, state))
        self._event_log.record(events, turn=len(state.history))
        logger.info("New game in story '%s' for %s", self._story.id, state.player_name)
        return state

    def status(self, state: PlayerState) -> EngineStatus:
        scene = self._story.scenes.get(state.current_scene_id)
        if scene is None:
            return "error"
        return "ended" if scene.ending else "awaiting_choice"

    def present(self, state: PlayerState) -> ScenePresentation:
        """Return the view of the current scene. Never mutates ``state``."""
        scene = self._current_scene(state)
        variant = select_variant(scene, state)
        choices: List[ChoiceView] = []
        if not scene.ending:
            for index, choice in enumerate(self._visible_choices(scene, state)):
                enabled = evaluate(choice.enabled_if, state)
                choices.append(
                    ChoiceView(
                        index=index,
                        choice_id=choice.id,
                        label=choice.label,
                        enabled=enabled,
                        disabled_reason=None if enabled else (choice.disabled_reason or DEFAULT_DISABLED_REASON),
                    )
                )
        return ScenePresentation(
            scene_id=scene.id,
            title=scene.title,
            text=variant.text if variant is not None else "",
            choices=choices,
            ended=scene.ending,
        )

    def choose(self, state: PlayerState, choice_index: int) -> NarrativeOutcome:
        """Apply the selected visible choice and advance the story."""
        scene = self._current_scene(state)
        if scene.ending:
            raise SessionEndedError(
                f"Scene '{scene.id}' is an ending; no further choices are accepted.",
                scene_id=scene.id,
                index=choice_index,
            )
        visible = self._visible_choices(scene, state)
        if isinstance(choice_index, bool) or not isinstance(choice_index, int) or not 0 <= choice_index < len(visible):
            raise ChoiceOutOfRangeError(
                f"Choice index {choice_index!r} is invalid for scene '{scene.id}' "
                f"({len(visible)} visible choices).",
                scene_id=scene.id,
                index=choice_index,
            )
        choice = visible[choice_index]
        if not evaluate(choice.enabled_if, state):
            reason = choice.disabled_reason or DEFAULT_DISABLED_REASON
            raise ChoiceDisabledError(
                f"Choice '{choice.id}' in scene '{scene.id}' is disabled: {reason}",
                scene_id=scene.id,
                index=choice_index,
                choice_id=choice.id,
                reason=reason,
            )
        target_scene = self._story.scenes.get(choice.target)
        if target_scene is None:
            raise MissingSceneError(choice.target, self._story.id)

        logger.debug("Choice '%s' taken in scene '%s'", choice.id, scene.id)
        events = self._apply_effects(choice.effects, state)
        state.enter_scene(target_scene.id)
        events.append(SceneEnteredEvent(scene_id=target_scene.id))
        events.extend(self._apply_effects(target_scene.on_enter, state))
        if target_scene.ending:
            events.append(EndingReachedEvent(scene_id=target_scene.id))
            logger.info("Ending '%s' reached in story '%s'", target_scene.id, self._story.id)
        self._event_log.record(events, turn=len(state.history))
        return NarrativeOutcome(scene_id=target_scene.id, ended=target_scene.ending, events=events)

    def _current_scene(self, state: PlayerState) -> SceneDef:
        if state.story_id != self._story.id:
            raise ValueError(f"State belongs to story '{state.story_id}', not '{self._story.id}'.")
        scene = self._story.scenes.get(state.current_scene_id)
        if scene is None:
            raise MissingSceneError(state.current_scene_id, self._story.id)
        return scene

    @staticmethod
    def _visible_choices(scene: SceneDef, state: PlayerState) -> List[ChoiceDef]:
        return [choice for choice in scene.choices if evaluate(choice.visible_if, state)]

    def _apply_effects(self, effects: Sequence[EffectDef], state: PlayerState) -> List[StoryEvent]:
        emitted: List[StoryEvent] = []
        for effect in effects:
            if isinstance(effect, (AdjustStat, SetStat)):
                old_value = state.stat(effect.name)
                state.apply(effect)
                new_value = state.stat(effect.name)
                if new_value != old_value:
                    emitted.append(StatChangedEvent(name=effect.name, old_value=old_value, new_value=new_value))
            elif isinstance(effect, AddItem):
                state.apply(effect)
                emitted.append(
                    ItemAddedEvent(name=effect.name, quantity=effect.quantity, total=state.item_count(effect.name))
                )
            elif isinstance(effect, RemoveItem):
                before = state.item_count(effect.name)
                state.apply(effect)
                remaining = state.item_count(effect.name)
                if remaining != before:
                    emitted.append(ItemRemovedEvent(name=effect.name, quantity=before - remaining, remaining=remaining))
            elif isinstance(effect, SetFlag):
                was_set = state.has_flag(effect.name)
                state.apply(effect)
                if not was_set:
                    emitted.append(FlagSetEvent(name=effect.name))
            elif isinstance(effect, ClearFlag):
                was_set = state.has_flag(effect.name)
                state.apply(effect)
                if was_set:
                    emitted.append(FlagClearedEvent(name=effect.name))
            else:
                state.apply(effect)
            logger.debug("Applied %r", effect)
        return emitted
