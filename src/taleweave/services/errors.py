"""Service-layer exceptions.

None of these leave a player state half-modified: a raised error means the state
is exactly as it was before the call.
"""
from __future__ import annotations


class ChoiceError(Exception):
    """Raised when a choice cannot be taken."""

    def __init__(self, message: str, *, scene_id: str, index: object) -> None:
        super().__init__(message)
        self.scene_id = scene_id
        self.index = index


class ChoiceOutOfRangeError(ChoiceError):
    """The index does not name a currently visible choice."""


class ChoiceDisabledError(ChoiceError):
    """The choice is visible but its requirements are not met."""

    def __init__(self, message: str, *, scene_id: str, index: object, choice_id: str, reason: str | None) -> None:
        super().__init__(message, scene_id=scene_id, index=index)
        self.choice_id = choice_id
        self.reason = reason


class SessionEndedError(ChoiceError):
    """The current scene is an ending; no further choices are accepted."""


class MissingSceneError(RuntimeError):
    """The state points at a scene the loaded story does not contain."""

    def __init__(self, scene_id: str, story_id: str) -> None:
        super().__init__(f"Story '{story_id}' has no scene '{scene_id}'.")
        self.scene_id = scene_id
        self.story_id = story_id


class LoadError(Exception):
    """Raised when a saved session cannot be restored."""


class VersionMismatchError(LoadError):
    """The save was written by a newer format version."""

    def __init__(self, found: int, supported: int) -> None:
        super().__init__(f"Save format version {found} is newer than supported version {supported}.")
        self.found = found
        self.supported = supported


class StoryMismatchError(LoadError):
    """The save belongs to a different story or story revision."""


class DanglingReferenceError(LoadError):
    """The save references a scene that the story does not define."""

    def __init__(self, scene_id: str, field_name: str) -> None:
        super().__init__(f"Save references unknown scene '{scene_id}' in {field_name}.")
        self.scene_id = scene_id
        self.field_name = field_name


class CorruptSaveError(LoadError):
    """The save payload is structurally invalid."""


class PersistenceError(Exception):
    """Raised when writing or reading durable save data fails."""
