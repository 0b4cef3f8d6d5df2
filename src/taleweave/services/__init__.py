"""Service layer exports."""

from .errors import (
    ChoiceDisabledError,
    ChoiceError,
    ChoiceOutOfRangeError,
    CorruptSaveError,
    DanglingReferenceError,
    LoadError,
    MissingSceneError,
    PersistenceError,
    SessionEndedError,
    StoryMismatchError,
    VersionMismatchError,
)
from .event_log import EventLog, LoggedEvent
from .narrative_service import (
    ChoiceView,
    EndingReachedEvent,
    FlagClearedEvent,
    FlagSetEvent,
    GameStartedEvent,
    ItemAddedEvent,
    ItemRemovedEvent,
    NarrativeOutcome,
    NarrativeService,
    SceneEnteredEvent,
    ScenePresentation,
    StatChangedEvent,
    StoryEvent,
)
from .save_service import SaveService, Session
from .save_slots import SaveSlotStore, SlotMetadata
from .story_catalog import StoryCatalog, load_story

__all__ = [
    "ChoiceDisabledError",
    "ChoiceError",
    "ChoiceOutOfRangeError",
    "ChoiceView",
    "CorruptSaveError",
    "DanglingReferenceError",
    "EndingReachedEvent",
    "EventLog",
    "FlagClearedEvent",
    "FlagSetEvent",
    "GameStartedEvent",
    "ItemAddedEvent",
    "ItemRemovedEvent",
    "LoadError",
    "LoggedEvent",
    "MissingSceneError",
    "NarrativeOutcome",
    "NarrativeService",
    "PersistenceError",
    "SaveService",
    "SaveSlotStore",
    "SceneEnteredEvent",
    "ScenePresentation",
    "Session",
    "SessionEndedError",
    "SlotMetadata",
    "StatChangedEvent",
    "StoryCatalog",
    "StoryEvent",
    "StoryMismatchError",
    "VersionMismatchError",
    "load_story",
]
