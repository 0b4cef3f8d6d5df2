"""Base repository implementation for per-id JSON documents."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Generic, List, TypeVar

from taleweave.data import paths
from taleweave.data.errors import DataLoadError
from taleweave.data.json_loader import load_json

T = TypeVar("T")


class RepositoryBase(Generic[T]):
    """Caching loader for a directory of ``<id>.json`` documents."""

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._base_path = Path(base_path) if base_path is not None else None
        self._definitions: Dict[str, T] = {}

    @property
    def directory(self) -> Path:
        return paths.get_stories_path(self._base_path)

    def _get_file_path(self, def_id: str) -> Path:
        return self.directory / f"{def_id}.json"

    def _load_raw(self, def_id: str) -> object:
        return load_json(self._get_file_path(def_id))

    def _build(self, raw: object) -> T:
        """Convert a decoded document into a typed definition."""
        raise NotImplementedError

    def get(self, def_id: str) -> T:
        """Return a definition by id, loading it on first use."""
        if def_id not in self._definitions:
            if "/" in def_id or "\\" in def_id or def_id in ("", ".", ".."):
                raise DataLoadError(f"Invalid document id: {def_id!r}")
            self._definitions[def_id] = self._build(self._load_raw(def_id))
        return self._definitions[def_id]

    def exists(self, def_id: str) -> bool:
        return self._get_file_path(def_id).is_file()

    def ids(self) -> List[str]:
        """Return every document id on disk, sorted."""
        directory = self.directory
        if not directory.is_dir():
            return []
        return sorted(path.stem for path in directory.glob("*.json") if path.is_file())

    def clear_cache(self) -> None:
        self._definitions.clear()
