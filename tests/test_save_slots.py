from __future__ import annotations

import os
from pathlib import Path

import pytest

from taleweave.services import NarrativeService, PersistenceError, SaveService, SaveSlotStore
from taleweave.services import save_slots
from tests.helpers.story_builders import load_crossroads


def _save_bytes() -> bytes:
    story = load_crossroads()
    state = NarrativeService(story).new_game("Ada")
    return SaveService(story).save(state, label="first")


def test_write_and_read_slot(tmp_path: Path) -> None:
    store = SaveSlotStore(tmp_path)
    data = _save_bytes()

    path = store.write_slot(2, data)

    assert path == tmp_path / "slot_2.json"
    assert store.slot_exists(2)
    assert store.read_slot(2) == data


def test_list_slots_summarizes_saves(tmp_path: Path) -> None:
    store = SaveSlotStore(tmp_path, slot_count=3)
    store.write_slot(1, _save_bytes())
    (tmp_path / "slot_3.json").write_text("{broken", encoding="utf-8")

    slots = store.list_slots()

    assert [slot.exists for slot in slots] == [True, False, True]
    assert slots[0].metadata["story_id"] == "crossroads"
    assert slots[0].metadata["player_name"] == "Ada"
    assert slots[0].metadata["scene_title"] == "The Crossroads"
    assert slots[0].metadata["label"] == "first"
    assert slots[2].is_corrupt is True
    assert slots[2].metadata is None


def test_failed_write_keeps_previous_slot(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = SaveSlotStore(tmp_path)
    store.write_slot(1, b"old")

    def _fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(save_slots.os, "replace", _fail_replace)

    with pytest.raises(PersistenceError, match="disk full"):
        store.write_slot(1, b"new")

    monkeypatch.undo()
    assert store.read_slot(1) == b"old"
    assert sorted(os.listdir(tmp_path)) == ["slot_1.json"]


def test_read_empty_slot_raises(tmp_path: Path) -> None:
    store = SaveSlotStore(tmp_path)

    with pytest.raises(PersistenceError, match="empty"):
        store.read_slot(1)


def test_delete_slot(tmp_path: Path) -> None:
    store = SaveSlotStore(tmp_path)
    store.write_slot(1, b"{}")

    store.delete_slot(1)
    store.delete_slot(1)

    assert not store.slot_exists(1)


def test_slot_bounds(tmp_path: Path) -> None:
    store = SaveSlotStore(tmp_path, slot_count=2)

    with pytest.raises(ValueError):
        store.write_slot(3, b"{}")
    with pytest.raises(ValueError):
        store.slot_exists(0)
    with pytest.raises(ValueError):
        SaveSlotStore(tmp_path, slot_count=0)


def test_missing_directory_lists_empty_slots(tmp_path: Path) -> None:
    store = SaveSlotStore(tmp_path / "not_yet")

    assert [slot.exists for slot in store.list_slots()] == [False, False, False]


def test_list_slots_marks_unparseable_json_corrupt(tmp_path: Path) -> None:
    store = SaveSlotStore(tmp_path, slot_count=2)
    store.write_slot(1, b"[" * 100000 + b"]" * 100000)
    store.write_slot(2, b"\xff\xfe{}")

    slots = store.list_slots()

    assert [slot.is_corrupt for slot in slots] == [True, True]
    assert [slot.metadata for slot in slots] == [None, None]
