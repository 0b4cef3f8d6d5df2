"""Loading entry points that return only fully validated stories."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Union

from taleweave.data.errors import DataError, StoryValidationError
from taleweave.data.json_loader import load_json
from taleweave.data.repositories import StoryRepository
from taleweave.data.story_parser import ParsedStory, StoryParser
from taleweave.domain.defs import StoryDef, StoryMetadata
from taleweave.services.story_validator import ERROR, format_issue, validate_story

logger = logging.getLogger(__name__)

StorySource = Union[Mapping[str, object], Path, str]


def load_story(source: StorySource) -> StoryDef:
    """Parse and validate a story from a file path or decoded mapping.

    Raises DataLoadError for unreadable files, DataValidationError for malformed
    structure and StoryValidationError when the graph has any ERROR issue.
    """
    raw = load_json(Path(source)) if isinstance(source, (str, Path)) else source
    return validate_parsed(StoryParser().parse(raw))


def validate_parsed(parsed: ParsedStory) -> StoryDef:
    story = parsed.story
    issues = validate_story(story, parsed.scene_entries)
    errors = [issue for issue in issues if issue.severity == ERROR]
    if errors:
        raise StoryValidationError(story.id, errors)
    for issue in issues:
        logger.warning("Story '%s': %s", story.id, format_issue(issue))
    logger.info("Loaded story '%s' (%s scenes, checksum %s)", story.id, story.scene_count, story.checksum[:12])
    return story


class StoryCatalog:
    """Directory-backed collection of validated stories."""

    def __init__(self, stories_dir: Path | str | None = None, *, repository: StoryRepository | None = None) -> None:
        self._repository = repository or StoryRepository(stories_dir)
        self._stories: Dict[str, StoryDef] = {}

    @property
    def directory(self) -> Path:
        return self._repository.directory

    def load(self, story_id: str) -> StoryDef:
        """Return the validated story stored as ``<story_id>.json``."""
        if story_id not in self._stories:
            story = validate_parsed(self._repository.get(story_id))
            if story.id != story_id:
                logger.warning("Story file '%s.json' declares id '%s'", story_id, story.id)
            self._stories[story_id] = story
        return self._stories[story_id]

    def reload(self) -> None:
        """Forget cached stories so the next load re-reads the files on disk."""
        self._stories.clear()
        self._repository.clear_cache()

    def exists(self, story_id: str) -> bool:
        return self._repository.exists(story_id)

    def list_stories(self) -> List[StoryMetadata]:
        """Return metadata for every readable story file, sorted by title."""
        stories: List[StoryMetadata] = []
        for story_id in self._repository.ids():
            try:
                stories.append(self._repository.read_metadata(story_id))
            except DataError as exc:
                logger.warning("Skipping story file '%s': %s", story_id, exc)
        stories.sort(key=lambda meta: meta.title)
        return stories
