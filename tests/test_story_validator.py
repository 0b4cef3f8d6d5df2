from __future__ import annotations

import pytest

from taleweave.data.errors import StoryValidationError
from taleweave.data.story_parser import parse_story
from taleweave.services.story_catalog import load_story
from taleweave.services.story_validator import ERROR, WARN, format_issue, has_errors, validate_story
from tests.helpers.story_builders import load_crossroads, minimal_story


def _codes(raw: dict) -> dict[str, str]:
    parsed = parse_story(raw)
    return {issue.code: issue.severity for issue in validate_story(parsed.story, parsed.scene_entries)}


def test_shipped_story_is_clean() -> None:
    story = load_crossroads()
    issues = validate_story(story)
    assert issues == [], "\n".join(format_issue(issue) for issue in issues)


def test_missing_choice_target_is_error() -> None:
    raw = minimal_story()
    raw["scenes"][0]["choices"][0]["target"] = "nowhere"

    with pytest.raises(StoryValidationError) as excinfo:
        load_story(raw)

    issue = excinfo.value.issues[0]
    assert issue.code == "MISSING_SCENE_REF"
    assert issue.context["referenced_id"] == "nowhere"
    assert issue.context["field_path"] == "choices[0].target"


def test_missing_start_scene_is_error() -> None:
    assert _codes(minimal_story(start="ghost"))["MISSING_START_SCENE"] == ERROR


def test_duplicate_scene_id_is_error() -> None:
    raw = minimal_story()
    raw["scenes"].append({"id": "b", "text": "Again.", "ending": True})

    assert _codes(raw)["DUPLICATE_SCENE_ID"] == ERROR


def test_duplicate_choice_id_is_error() -> None:
    raw = minimal_story()
    raw["scenes"][0]["choices"].append({"id": "to_b", "label": "Also B", "target": "b"})

    assert _codes(raw)["DUPLICATE_CHOICE_ID"] == ERROR


def test_stat_range_problems_are_errors() -> None:
    assert _codes(minimal_story(stats={"hp": {"initial": 1, "min": 5, "max": 2}}))["INVALID_STAT_RANGE"] == ERROR
    assert _codes(minimal_story(stats={"hp": {"initial": 9, "max": 5}}))["STAT_INITIAL_OUT_OF_RANGE"] == ERROR


def test_variant_fallback_rules() -> None:
    raw = minimal_story()
    del raw["scenes"][0]["text"]
    raw["scenes"][0]["variants"] = [{"text": "One."}, {"text": "Two."}]
    assert _codes(raw)["MULTIPLE_FALLBACK_VARIANTS"] == ERROR

    raw["scenes"][0]["variants"] = [{"text": "Only when brave.", "when": {"type": "flag", "name": "brave"}}]
    assert _codes(raw)["NO_FALLBACK_VARIANT"] == WARN

    raw["scenes"][0]["variants"] = [{"text": "Always."}, {"text": "Never.", "when": {"type": "flag", "name": "x"}}]
    assert _codes(raw)["SHADOWED_VARIANT"] == WARN

    raw["scenes"][0]["variants"] = []
    assert _codes(raw)["NO_VARIANTS"] == ERROR


def test_unreachable_scene_is_warning_only() -> None:
    raw = minimal_story()
    raw["scenes"].append({"id": "island", "text": "Nobody comes here.", "ending": True})

    assert _codes(raw) == {"UNREACHABLE_SCENE": WARN}
    story = load_story(raw)
    assert story.has_scene("island")


def test_scenes_behind_an_ending_are_unreachable() -> None:
    raw = minimal_story()
    raw["scenes"][1]["choices"] = [{"id": "past_end", "label": "Beyond", "target": "c"}]
    raw["scenes"].append({"id": "c", "text": "After the end.", "ending": True})

    codes = _codes(raw)

    assert codes["ENDING_HAS_CHOICES"] == WARN
    assert codes["UNREACHABLE_SCENE"] == WARN


def test_dead_end_and_undeclared_names_are_warnings() -> None:
    raw = minimal_story()
    raw["scenes"][1]["ending"] = False
    raw["scenes"][0]["choices"][0]["visible_if"] = {"type": "stat", "name": "luck", "op": ">", "value": 0}
    raw["scenes"][0]["choices"][0]["enabled_if"] = {"type": "visited", "scene": "moon"}

    codes = _codes(raw)

    assert codes["DEAD_END"] == WARN
    assert codes["UNDECLARED_STAT"] == WARN
    assert codes["UNKNOWN_VISITED_SCENE"] == WARN
    assert not has_errors(validate_story(parse_story(raw).story))


def test_validation_error_lists_every_error() -> None:
    raw = minimal_story(start="ghost")
    raw["scenes"][0]["choices"][0]["target"] = "nowhere"

    with pytest.raises(StoryValidationError) as excinfo:
        load_story(raw)

    codes = {issue.code for issue in excinfo.value.issues}
    assert codes == {"MISSING_START_SCENE", "MISSING_SCENE_REF"}
    assert excinfo.value.story_id == "mini"
