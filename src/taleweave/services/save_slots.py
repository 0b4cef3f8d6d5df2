"""File-system helpers for save slot storage."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from taleweave.services.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SlotMetadata:
    """Describes the contents of a save slot for menu display."""

    slot: int
    exists: bool
    metadata: Dict[str, Any] | None = None
    is_corrupt: bool = False


class SaveSlotStore:
    """Handles slot-based persistence on disk.

    Writes go to a temporary file in the slot directory which then replaces the
    slot in one ``os.replace``; a failed write leaves the previous slot intact.
    """

    def __init__(self, base_dir: Path | str, slot_count: int = 3) -> None:
        if slot_count < 1:
            raise ValueError("slot_count must be at least 1.")
        self._base_dir = Path(base_dir)
        self._slot_count = slot_count

    @property
    def slot_count(self) -> int:
        return self._slot_count

    def list_slots(self) -> List[SlotMetadata]:
        """Return metadata for each configured slot."""
        slots: List[SlotMetadata] = []
        for slot_index in range(1, self._slot_count + 1):
            path = self._slot_path(slot_index)
            if not path.exists():
                slots.append(SlotMetadata(slot=slot_index, exists=False))
                continue
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError, RecursionError) as exc:
                logger.warning("Save slot %s is unreadable: %s", slot_index, exc)
                slots.append(SlotMetadata(slot=slot_index, exists=True, is_corrupt=True))
                continue
            if not isinstance(payload, dict):
                slots.append(SlotMetadata(slot=slot_index, exists=True, is_corrupt=True))
                continue
            slots.append(SlotMetadata(slot=slot_index, exists=True, metadata=self._summarize(payload)))
        return slots

    def slot_exists(self, slot: int) -> bool:
        """Return True if the slot has data on disk."""
        self._validate_slot(slot)
        return self._slot_path(slot).exists()

    def read_slot(self, slot: int) -> bytes:
        """Return the raw bytes stored in the requested slot."""
        self._validate_slot(slot)
        path = self._slot_path(slot)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise PersistenceError(f"Save slot {slot} is empty.") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read save slot {slot}: {exc}") from exc

    def write_slot(self, slot: int, data: bytes) -> Path:
        """Atomically persist ``data`` into the requested slot."""
        self._validate_slot(slot)
        path = self._slot_path(slot)
        tmp_name: str | None = None
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=self._base_dir)
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
            raise PersistenceError(f"Unable to write save slot {slot}: {exc}") from exc
        logger.info("Wrote save slot %s (%s bytes)", slot, len(data))
        return path

    def delete_slot(self, slot: int) -> None:
        """Delete the requested slot payload if it exists."""
        self._validate_slot(slot)
        path = self._slot_path(slot)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Unable to delete save slot {slot}: {exc}") from exc

    def _slot_path(self, slot: int) -> Path:
        return self._base_dir / f"slot_{slot}.json"

    def _validate_slot(self, slot: int) -> None:
        if not 1 <= slot <= self._slot_count:
            raise ValueError(f"Slot index must be between 1 and {self._slot_count}.")

    @staticmethod
    def _summarize(payload: Dict[str, Any]) -> Dict[str, Any]:
        summary: Dict[str, Any] = {}
        metadata = payload.get("metadata")
        if isinstance(metadata, dict):
            summary.update(metadata)
        story = payload.get("story")
        if isinstance(story, dict):
            summary["story_id"] = story.get("id")
        summary["saved_at"] = payload.get("saved_at")
        summary["label"] = payload.get("label")
        return summary
