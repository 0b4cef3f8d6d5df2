"""Bounded history of story events for one play session."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Iterable, List, Type

if TYPE_CHECKING:
    from taleweave.services.narrative_service import StoryEvent

DEFAULT_MAX_EVENTS = 1000


@dataclass(frozen=True, slots=True)
class LoggedEvent:
    """An event plus the history length at the moment it was recorded."""

    turn: int
    event: "StoryEvent"


class EventLog:
    """Keeps the newest ``max_events`` events; older ones are dropped first."""

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        if max_events < 1:
            raise ValueError("max_events must be at least 1.")
        self._entries: Deque[LoggedEvent] = deque(maxlen=max_events)

    @property
    def max_events(self) -> int:
        return self._entries.maxlen or 0

    def record(self, events: Iterable["StoryEvent"], *, turn: int) -> None:
        for event in events:
            self._entries.append(LoggedEvent(turn=turn, event=event))

    def events(self) -> List[LoggedEvent]:
        return list(self._entries)

    def recent(self, count: int) -> List[LoggedEvent]:
        """Return up to ``count`` newest entries, oldest first."""
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def of_type(self, event_type: Type["StoryEvent"]) -> List[LoggedEvent]:
        return [entry for entry in self._entries if isinstance(entry.event, event_type)]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
