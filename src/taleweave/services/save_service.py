"""Serialization helpers for manual save/load."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Set

from taleweave.domain.inventory import Inventory
from taleweave.domain.state import DEFAULT_PLAYER_NAME, PlayerState
from taleweave.domain.defs import StoryDef
from taleweave.services.errors import (
    CorruptSaveError,
    DanglingReferenceError,
    PersistenceError,
    StoryMismatchError,
    VersionMismatchError,
)

logger = logging.getLogger(__name__)

SavePayload = Dict[str, Any]


@dataclass(slots=True)
class Session:
    """A restored save: the player state plus the record it came from."""

    story_id: str
    story_checksum: str
    story_version: str
    format_version: int
    saved_at: datetime
    state: PlayerState
    label: str | None = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class SaveService:
    """Converts player state to/from a validated, versioned payload for one story.

    ``allow_content_drift`` accepts saves whose story id matches but whose content
    checksum differs (an edited story); every scene the save references must
    still exist.
    """

    FORMAT_VERSION = 1

    def __init__(self, story: StoryDef, *, allow_content_drift: bool = False) -> None:
        self._story = story
        self._allow_content_drift = allow_content_drift

    def serialize(self, state: PlayerState, *, label: str | None = None) -> SavePayload:
        """Return a JSON-serializable payload for disk persistence."""
        if state.story_id != self._story.id:
            raise PersistenceError(
                f"Cannot save a state of story '{state.story_id}' against story '{self._story.id}'."
            )
        return {
            "format_version": self.FORMAT_VERSION,
            "story": {
                "id": self._story.id,
                "checksum": self._story.checksum,
                "version": self._story.version,
                "title": self._story.title,
            },
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "label": label,
            "metadata": self._build_metadata(state),
            "state": self._serialize_state(state),
        }

    def save(self, state: PlayerState, *, label: str | None = None) -> bytes:
        """Encode ``state`` as UTF-8 JSON bytes."""
        payload = self.serialize(state, label=label)
        try:
            text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Unable to encode save data: {exc}") from exc
        logger.info("Saved story '%s' at scene '%s'", state.story_id, state.current_scene_id)
        return text.encode("utf-8")

    def load(self, data: bytes | str) -> Session:
        """Decode bytes written by ``save`` and rebuild the session."""
        try:
            text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
            payload = json.loads(text)
        except (ValueError, TypeError, RecursionError) as exc:
            raise CorruptSaveError(f"Save data is not valid JSON: {exc}") from exc
        session = self.deserialize(payload)
        logger.info("Loaded story '%s' at scene '%s'", session.story_id, session.state.current_scene_id)
        return session

    def deserialize(self, payload: Any) -> Session:
        """Rehydrate a Session from a decoded payload."""
        if not isinstance(payload, Mapping):
            raise CorruptSaveError("Save data must be a JSON object.")
        version = self._require_int(payload.get("format_version"), "format_version")
        if version > self.FORMAT_VERSION:
            raise VersionMismatchError(version, self.FORMAT_VERSION)
        if version < 1:
            raise CorruptSaveError(f"format_version must be positive, got {version}.")

        story_block = self._require_dict(payload.get("story"), "story")
        story_id = self._require_str(story_block.get("id"), "story.id")
        checksum = self._require_str(story_block.get("checksum"), "story.checksum")
        story_version = self._coerce_optional_str(story_block.get("version"), "story.version") or ""
        self._check_story(story_id, checksum, story_version)

        saved_at = self._coerce_timestamp(payload.get("saved_at"))
        label = self._coerce_optional_str(payload.get("label"), "label")
        metadata_raw = payload.get("metadata")
        metadata = dict(metadata_raw) if isinstance(metadata_raw, Mapping) else {}
        state = self._coerce_state(self._require_dict(payload.get("state"), "state"))

        return Session(
            story_id=story_id,
            story_checksum=checksum,
            story_version=story_version,
            format_version=version,
            saved_at=saved_at,
            state=state,
            label=label,
            metadata=metadata,
        )

    def _check_story(self, story_id: str, checksum: str, story_version: str) -> None:
        if story_id != self._story.id:
            raise StoryMismatchError(f"Save belongs to story '{story_id}', not '{self._story.id}'.")
        if checksum == self._story.checksum:
            return
        if not self._allow_content_drift:
            raise StoryMismatchError(
                f"Save was made against a different revision of story '{story_id}' "
                f"(saved v{story_version or '?'}, loaded v{self._story.version})."
            )
        logger.warning(
            "Story '%s' content changed since save (v%s -> v%s); checking references",
            story_id,
            story_version or "?",
            self._story.version,
        )

    def _build_metadata(self, state: PlayerState) -> Dict[str, Any]:
        scene = self._story.scenes.get(state.current_scene_id)
        return {
            "player_name": state.player_name,
            "story_title": self._story.title,
            "scene_title": scene.title if scene is not None else "",
            "scenes_visited": state.unique_scenes_visited(),
            "playtime_seconds": state.playtime_seconds,
            "playtime": state.playtime_formatted(),
        }

    def _serialize_state(self, state: PlayerState) -> Dict[str, Any]:
        return {
            "story_id": state.story_id,
            "current_scene_id": state.current_scene_id,
            "player_name": state.player_name,
            "playtime_seconds": state.playtime_seconds,
            "stats": dict(state.stats),
            "inventory": state.inventory.as_dict(),
            "flags": sorted(state.flags),
            "history": list(state.history),
        }

    def _coerce_state(self, state_payload: Dict[str, Any]) -> PlayerState:
        story_id = self._require_str(state_payload.get("story_id"), "state.story_id")
        if story_id != self._story.id:
            raise CorruptSaveError(f"state.story_id '{story_id}' disagrees with the save header.")
        current_scene_id = self._require_str(state_payload.get("current_scene_id"), "state.current_scene_id")
        player_name = self._coerce_optional_str(state_payload.get("player_name"), "state.player_name")
        stats = self._coerce_stats(state_payload.get("stats"))
        inventory = self._coerce_inventory(state_payload.get("inventory"))
        flags = self._coerce_flags(state_payload.get("flags"))
        history = self._coerce_str_list(state_payload.get("history"), "state.history")
        playtime = self._coerce_playtime(state_payload.get("playtime_seconds", 0))

        if not self._story.has_scene(current_scene_id):
            raise DanglingReferenceError(current_scene_id, "state.current_scene_id")
        for index, scene_id in enumerate(history):
            if not self._story.has_scene(scene_id):
                raise DanglingReferenceError(scene_id, f"state.history[{index}]")

        return PlayerState(
            story_id=story_id,
            current_scene_id=current_scene_id,
            stats=stats,
            inventory=inventory,
            flags=flags,
            history=history,
            player_name=player_name or DEFAULT_PLAYER_NAME,
            playtime_seconds=playtime,
            stat_defs=self._story.stats,
        )

    def _coerce_stats(self, value: Any) -> Dict[str, int]:
        mapping = self._require_dict(value, "state.stats")
        stats: Dict[str, int] = {}
        for name, raw in mapping.items():
            number = self._require_int(raw, f"state.stats[{name}]")
            stat_def = self._story.stats.get(name)
            if stat_def is not None and not stat_def.contains(number):
                raise CorruptSaveError(
                    f"state.stats[{name}] = {number} lies outside the declared range "
                    f"[{stat_def.minimum}, {stat_def.maximum}]."
                )
            stats[name] = number
        return stats

    def _coerce_inventory(self, value: Any) -> Inventory:
        mapping = self._require_dict(value, "state.inventory")
        items: Dict[str, int] = {}
        for item_id, raw in mapping.items():
            quantity = self._require_int(raw, f"state.inventory[{item_id}]")
            if quantity <= 0:
                raise CorruptSaveError(f"state.inventory[{item_id}] must be positive.")
            items[item_id] = quantity
        return Inventory(items)

    def _coerce_playtime(self, value: Any) -> int:
        seconds = self._require_int(value, "state.playtime_seconds")
        if seconds < 0:
            raise CorruptSaveError("state.playtime_seconds must not be negative.")
        return seconds

    def _coerce_flags(self, value: Any) -> Set[str]:
        return set(self._coerce_str_list(value, "state.flags"))

    def _coerce_timestamp(self, value: Any) -> datetime:
        raw = self._require_str(value, "saved_at")
        try:
            stamp = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise CorruptSaveError(f"saved_at is not an ISO-8601 timestamp: {raw!r}") from exc
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        return stamp

    def _coerce_str_list(self, value: Any, context: str) -> List[str]:
        if not isinstance(value, list):
            raise CorruptSaveError(f"{context} must be a list.")
        return [self._require_str(entry, f"{context}[{index}]") for index, entry in enumerate(value)]

    @staticmethod
    def _require_dict(value: Any, context: str) -> Dict[str, Any]:
        if not isinstance(value, Mapping):
            raise CorruptSaveError(f"{context} must be an object.")
        return dict(value)

    @staticmethod
    def _require_str(value: Any, context: str) -> str:
        if not isinstance(value, str):
            raise CorruptSaveError(f"{context} must be a string.")
        return value

    @staticmethod
    def _require_int(value: Any, context: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise CorruptSaveError(f"{context} must be an integer.")
        return value

    @staticmethod
    def _coerce_optional_str(value: Any, context: str) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise CorruptSaveError(f"{context} must be a string if provided.")
        return value
