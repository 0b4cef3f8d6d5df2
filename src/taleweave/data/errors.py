"""Custom exceptions for story loading and validation."""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from taleweave.services.story_validator import Issue


class DataError(Exception):
    """Base exception for the data layer."""


class DataLoadError(DataError):
    """Raised when story files are missing or invalid JSON."""


class DataValidationError(DataError):
    """Raised when story content fails structural validation."""


class StoryValidationError(DataValidationError):
    """Raised when a parsed story fails graph validation.

    Every collected issue is kept on ``issues`` so callers can report all of them,
    not only the first.
    """

    def __init__(self, story_id: str, issues: Sequence["Issue"]) -> None:
        self.story_id = story_id
        self.issues = list(issues)
        lines = "; ".join(f"{issue.code}: {issue.message} {issue.context}" for issue in self.issues)
        super().__init__(f"Story '{story_id}' failed validation: {lines}")
