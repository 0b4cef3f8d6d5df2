"""Low-level JSON helpers for story documents."""
from __future__ import annotations

import hashlib
import json
from pathlib import Path

from .errors import DataLoadError


def load_json(path: Path) -> object:
    """Load JSON from disk and raise DataLoadError on failure."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DataLoadError(f"Story file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise DataLoadError(f"Story file is not valid UTF-8: {path}") from exc
    except OSError as exc:
        raise DataLoadError(f"Unable to read story file: {path}") from exc

    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise DataLoadError(f"Invalid JSON in {path}: {exc}") from exc


def content_checksum(raw: object) -> str:
    """Return a stable digest of decoded JSON content.

    Keys are sorted and whitespace is dropped, so reformatting a story file does not
    change its checksum while any content edit does.
    """
    try:
        serialized = json.dumps(raw, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError, RecursionError) as exc:
        raise DataLoadError(f"Story content is not JSON-serializable: {exc}") from exc
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
