"""Data layer utilities for loading story documents."""

from .errors import DataError, DataLoadError, DataValidationError, StoryValidationError
from .paths import get_repo_root, get_stories_path

__all__ = [
    "DataError",
    "DataLoadError",
    "DataValidationError",
    "StoryValidationError",
    "get_repo_root",
    "get_stories_path",
]
