from __future__ import annotations

import json
from pathlib import Path

import pytest

from taleweave.data.errors import DataLoadError, DataValidationError, StoryValidationError
from taleweave.data.json_loader import load_json
from taleweave.data.repositories import StoryRepository
from taleweave.services import StoryCatalog, load_story
from tests.helpers.story_builders import crossroads_path, minimal_story


def _write(directory: Path, name: str, payload: object) -> None:
    (directory / f"{name}.json").write_text(json.dumps(payload), encoding="utf-8")


def test_default_catalog_loads_shipped_story() -> None:
    catalog = StoryCatalog()

    story = catalog.load("crossroads")

    assert story.title == "The Crossroads"
    assert story.scene_count == 5
    assert catalog.load("crossroads") is story
    assert catalog.exists("crossroads")


def test_load_story_accepts_path_string_and_mapping() -> None:
    from_path = load_story(crossroads_path())
    from_str = load_story(str(crossroads_path()))
    from_mapping = load_story(minimal_story())

    assert from_path.checksum == from_str.checksum
    assert from_mapping.id == "mini"


def test_list_stories_sorted_and_skips_broken_files(tmp_path: Path) -> None:
    _write(tmp_path, "zeta", minimal_story(id="zeta", title="Alpha Tale", author="Kim"))
    _write(tmp_path, "alpha", minimal_story(id="alpha", title="Zulu Tale"))
    (tmp_path / "broken.json").write_text("{oops", encoding="utf-8")

    stories = StoryCatalog(tmp_path).list_stories()

    assert [meta.id for meta in stories] == ["zeta", "alpha"]
    assert stories[0].scene_count == 2
    assert stories[0].display_name() == "Alpha Tale by Kim (v1.0.0)"
    assert stories[1].display_name() == "Zulu Tale by Unknown (v1.0.0)"


def test_list_stories_on_missing_directory(tmp_path: Path) -> None:
    assert StoryCatalog(tmp_path / "absent").list_stories() == []


def test_invalid_story_raises_validation_error(tmp_path: Path) -> None:
    raw = minimal_story()
    raw["scenes"][0]["choices"][0]["target"] = "nowhere"
    _write(tmp_path, "mini", raw)

    with pytest.raises(StoryValidationError):
        StoryCatalog(tmp_path).load("mini")


def test_structural_error_raises_data_validation_error(tmp_path: Path) -> None:
    _write(tmp_path, "mini", minimal_story(scenes="not a list"))

    with pytest.raises(DataValidationError, match="scenes must be a list or an object"):
        StoryCatalog(tmp_path).load("mini")


def test_missing_and_unsafe_ids_raise_load_error(tmp_path: Path) -> None:
    catalog = StoryCatalog(tmp_path)

    with pytest.raises(DataLoadError, match="not found"):
        catalog.load("absent")
    with pytest.raises(DataLoadError, match="Invalid document id"):
        catalog.load("../crossroads")


def test_catalog_accepts_injected_repository(tmp_path: Path) -> None:
    _write(tmp_path, "mini", minimal_story())
    repository = StoryRepository(tmp_path)

    catalog = StoryCatalog(repository=repository)

    assert catalog.directory == tmp_path
    assert catalog.load("mini").start_scene_id == "a"


def test_list_stories_skips_non_utf8_file(tmp_path: Path) -> None:
    _write(tmp_path, "mini", minimal_story())
    (tmp_path / "latin.json").write_bytes(b'{"title": "Caf\xe9"}')

    stories = StoryCatalog(tmp_path).list_stories()

    assert [meta.id for meta in stories] == ["mini"]


def test_load_json_wraps_unreadable_content(tmp_path: Path) -> None:
    deep = tmp_path / "deep.json"
    deep.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")
    latin = tmp_path / "latin.json"
    latin.write_bytes(b"\xff\xfe{}")

    with pytest.raises(DataLoadError, match="Invalid JSON"):
        load_json(deep)
    with pytest.raises(DataLoadError, match="not valid UTF-8"):
        load_json(latin)


def test_reload_picks_up_edited_story(tmp_path: Path) -> None:
    _write(tmp_path, "mini", minimal_story(title="First Draft"))
    catalog = StoryCatalog(tmp_path)
    assert catalog.load("mini").title == "First Draft"

    _write(tmp_path, "mini", minimal_story(title="Second Draft"))
    assert catalog.load("mini").title == "First Draft"

    catalog.reload()

    assert catalog.load("mini").title == "Second Draft"
