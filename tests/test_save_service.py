from __future__ import annotations

import json
from datetime import timezone

import pytest

from taleweave.data.json_loader import load_json
from taleweave.domain.state import PlayerState
from taleweave.services import (
    CorruptSaveError,
    DanglingReferenceError,
    NarrativeService,
    PersistenceError,
    SaveService,
    StoryMismatchError,
    VersionMismatchError,
    load_story,
)
from tests.helpers.story_builders import crossroads_path, load_crossroads, minimal_story


def _played_state() -> tuple[SaveService, PlayerState]:
    story = load_crossroads()
    narrative = NarrativeService(story)
    state = narrative.new_game("Ada")
    narrative.choose(state, 0)
    narrative.choose(state, 0)
    return SaveService(story), state


def test_save_and_load_round_trip() -> None:
    service, state = _played_state()

    session = service.load(service.save(state, label="before the cave"))

    assert session.state == state
    assert session.state.stat_defs["courage"].maximum == 10
    assert session.story_id == "crossroads"
    assert session.format_version == SaveService.FORMAT_VERSION
    assert session.label == "before the cave"
    assert session.saved_at.tzinfo is not None


def test_payload_layout() -> None:
    service, state = _played_state()

    payload = service.serialize(state)

    assert payload["format_version"] == 1
    assert payload["story"]["id"] == "crossroads"
    assert payload["story"]["checksum"] == load_crossroads().checksum
    assert payload["metadata"]["scene_title"] == "The Forest"
    assert payload["metadata"]["player_name"] == "Ada"
    assert payload["metadata"]["scenes_visited"] == 2
    assert payload["state"]["history"] == ["start", "forest", "forest"]
    assert payload["state"]["inventory"] == {"bread": 1, "lantern": 1}
    json.dumps(payload)


def test_flags_are_written_sorted() -> None:
    service, state = _played_state()
    state.flags.update({"zebra", "apple"})

    payload = service.serialize(state)

    assert payload["state"]["flags"] == ["apple", "entered_forest", "zebra"]


def test_newer_format_version_rejected() -> None:
    service, state = _played_state()
    payload = service.serialize(state)
    payload["format_version"] = 2

    with pytest.raises(VersionMismatchError) as excinfo:
        service.deserialize(payload)

    assert excinfo.value.found == 2
    assert excinfo.value.supported == 1


def test_non_positive_format_version_is_corrupt() -> None:
    service, state = _played_state()
    payload = service.serialize(state)
    payload["format_version"] = 0

    with pytest.raises(CorruptSaveError):
        service.deserialize(payload)


def test_save_for_other_story_rejected() -> None:
    _, state = _played_state()
    other = SaveService(load_story(minimal_story()))
    payload = SaveService(load_crossroads()).serialize(state)

    with pytest.raises(StoryMismatchError):
        other.deserialize(payload)


def _edited_crossroads():
    raw = load_json(crossroads_path())
    raw["description"] = "Edited after the save was made."
    raw["version"] = "1.1.0"
    return load_story(raw)


def test_edited_story_rejected_by_default() -> None:
    service, state = _played_state()
    data = service.save(state)

    with pytest.raises(StoryMismatchError, match="different revision"):
        SaveService(_edited_crossroads()).load(data)


def test_edited_story_accepted_when_drift_allowed() -> None:
    service, state = _played_state()
    data = service.save(state)

    session = SaveService(_edited_crossroads(), allow_content_drift=True).load(data)

    assert session.state == state
    assert session.story_version == "1.0.0"


def test_dangling_scene_reference_rejected() -> None:
    service, state = _played_state()
    payload = service.serialize(state)
    payload["state"]["current_scene_id"] = "ghost"

    with pytest.raises(DanglingReferenceError) as excinfo:
        service.deserialize(payload)
    assert excinfo.value.scene_id == "ghost"

    payload = service.serialize(state)
    payload["state"]["history"].insert(0, "attic")
    with pytest.raises(DanglingReferenceError) as excinfo:
        service.deserialize(payload)
    assert excinfo.value.field_name == "state.history[0]"


@pytest.mark.parametrize(
    "data",
    [
        b"{not json",
        b"\xff\xfe",
        b"[]",
        b'{"format_version": "1"}',
        b'{"saved_at": ' + b"9" * 5000 + b"}",
        b"[" * 100000 + b"]" * 100000,
    ],
    ids=["syntax", "encoding", "array", "string-version", "huge-int", "deep-nesting"],
)
def test_malformed_bytes_are_corrupt(data: bytes) -> None:
    service, _ = _played_state()

    with pytest.raises(CorruptSaveError):
        service.load(data)


def test_state_values_are_checked() -> None:
    service, state = _played_state()

    payload = service.serialize(state)
    payload["state"]["stats"]["courage"] = 99
    with pytest.raises(CorruptSaveError, match="outside the declared range"):
        service.deserialize(payload)

    payload = service.serialize(state)
    payload["state"]["inventory"]["lantern"] = 0
    with pytest.raises(CorruptSaveError, match="must be positive"):
        service.deserialize(payload)

    payload = service.serialize(state)
    payload["state"]["story_id"] = "elsewhere"
    with pytest.raises(CorruptSaveError, match="disagrees"):
        service.deserialize(payload)

    payload = service.serialize(state)
    payload["saved_at"] = "yesterday"
    with pytest.raises(CorruptSaveError, match="ISO-8601"):
        service.deserialize(payload)


def test_unknown_names_are_preserved() -> None:
    service, state = _played_state()
    payload = service.serialize(state)
    payload["state"]["stats"]["luck"] = -4
    payload["state"]["inventory"]["relic"] = 1
    payload["state"]["flags"].append("old_flag")

    restored = service.deserialize(payload).state

    assert restored.stat("luck") == -4
    assert restored.has_item("relic")
    assert restored.has_flag("old_flag")


def test_naive_timestamp_is_read_as_utc() -> None:
    service, state = _played_state()
    payload = service.serialize(state)
    payload["saved_at"] = "2024-05-01T12:30:00"

    session = service.deserialize(payload)

    assert session.saved_at.tzinfo == timezone.utc


def test_serializing_foreign_state_fails() -> None:
    service, _ = _played_state()
    foreign = NarrativeService(load_story(minimal_story())).new_game()

    with pytest.raises(PersistenceError):
        service.serialize(foreign)


def test_one_choice_then_save_and_reload() -> None:
    story = load_crossroads()
    narrative = NarrativeService(story)
    state = narrative.new_game()
    narrative.choose(state, 0)

    restored = SaveService(story).load(SaveService(story).save(state)).state

    assert restored.stat("courage") == 1
    assert restored.current_scene_id == "forest"
    assert restored.history == ["start", "forest"]
    assert restored == state


def test_playtime_is_saved_and_summarized() -> None:
    service, state = _played_state()
    state.add_playtime(3725)

    payload = service.serialize(state)
    restored = service.deserialize(payload).state

    assert payload["state"]["playtime_seconds"] == 3725
    assert payload["metadata"]["playtime_seconds"] == 3725
    assert payload["metadata"]["playtime"] == "1h 2m 5s"
    assert restored.playtime_seconds == 3725


def test_missing_playtime_defaults_to_zero() -> None:
    service, state = _played_state()
    payload = service.serialize(state)
    del payload["state"]["playtime_seconds"]

    assert service.deserialize(payload).state.playtime_seconds == 0


def test_negative_playtime_is_corrupt() -> None:
    service, state = _played_state()
    payload = service.serialize(state)
    payload["state"]["playtime_seconds"] = -5

    with pytest.raises(CorruptSaveError, match="must not be negative"):
        service.deserialize(payload)
