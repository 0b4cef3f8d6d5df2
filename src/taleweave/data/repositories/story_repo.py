"""Repository for story documents."""
from __future__ import annotations

from typing import Mapping

from taleweave.data.errors import DataValidationError
from taleweave.data.repositories.base import RepositoryBase
from taleweave.data.story_parser import ParsedStory, StoryParser
from taleweave.domain.defs import StoryMetadata


class StoryRepository(RepositoryBase[ParsedStory]):
    """Loads and parses story documents; graph validation happens in the catalog."""

    def __init__(self, base_path=None) -> None:
        super().__init__(base_path)
        self._parser = StoryParser()

    def _build(self, raw: object) -> ParsedStory:
        return self._parser.parse(raw)

    def read_metadata(self, story_id: str) -> StoryMetadata:
        """Read the header fields of a story without parsing its scenes."""
        raw = self._load_raw(story_id)
        if not isinstance(raw, Mapping):
            raise DataValidationError(f"Story file for '{story_id}' must contain an object.")
        scenes = raw.get("scenes")
        return StoryMetadata(
            id=self._text(raw.get("id"), story_id),
            title=self._text(raw.get("title"), "Untitled"),
            description=self._text(raw.get("description"), ""),
            author=self._text(raw.get("author"), ""),
            version=self._text(raw.get("version"), "1.0.0"),
            scene_count=len(scenes) if isinstance(scenes, (list, Mapping)) else 0,
        )

    @staticmethod
    def _text(value: object, default: str) -> str:
        return value if isinstance(value, str) else default
