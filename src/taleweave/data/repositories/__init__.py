"""Repository exports."""

from .base import RepositoryBase
from .story_repo import StoryRepository

__all__ = [
    "RepositoryBase",
    "StoryRepository",
]
