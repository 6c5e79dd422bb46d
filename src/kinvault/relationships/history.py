"""Relationship change notifications.

The mutator emits one :class:`RelationshipChange` per successful operation
to every subscribed listener. :class:`RelationshipHistory` is a bounded
in-memory listener for callers that want a recent-changes view.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class RelationshipChangeType(str, Enum):
    ADD_FATHER = "add_father"
    ADD_MOTHER = "add_mother"
    ADD_SPOUSE = "add_spouse"
    ADD_CHILD = "add_child"
    RENAME = "rename"


class RelationshipChange(BaseModel):
    type: RelationshipChangeType
    source_id: str
    source_name: str = ""
    target_id: str | None = None
    target_name: str | None = None
    new_value: str | None = None  # wikilink written
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def describe(self) -> str:
        if self.type is RelationshipChangeType.RENAME:
            return f"{self.source_name}: links updated to {self.new_value}"
        relation = self.type.value.removeprefix("add_")
        return f"{self.source_name}: added {relation} {self.target_name}"


ChangeListener = Callable[[RelationshipChange], None]


class RelationshipHistory:
    """Keeps the most recent changes, newest last."""

    def __init__(self, max_entries: int = 500) -> None:
        self._entries: deque[RelationshipChange] = deque(maxlen=max_entries)

    def __call__(self, change: RelationshipChange) -> None:
        self._entries.append(change)

    def __len__(self) -> int:
        return len(self._entries)

    def changes(self, person_id: str | None = None) -> list[RelationshipChange]:
        """All kept changes, or only those touching ``person_id``."""
        if person_id is None:
            return list(self._entries)
        return [c for c in self._entries if person_id in (c.source_id, c.target_id)]

    def clear(self) -> None:
        self._entries.clear()
