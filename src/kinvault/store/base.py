"""Record store protocol.

The core never touches files directly. Reads are synchronous; each write
is an awaited call that applies an in-place edit to a document's field map
and persists it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from kinvault.models.handle import RecordHandle

FieldMap = dict[str, Any]
FieldMutator = Callable[[FieldMap], None]


@runtime_checkable
class RecordStore(Protocol):
    def list_records(self, kind: str) -> list[RecordHandle]:
        """All documents of the given kind (``"person"``)."""
        ...

    def read_fields(self, handle: RecordHandle) -> FieldMap:
        """A copy of the document's structured fields."""
        ...

    async def write_fields(self, handle: RecordHandle, mutator: FieldMutator) -> None:
        """Apply ``mutator`` to the document's fields and persist them if they changed."""
        ...

    def resolve_display_name(self, handle: RecordHandle) -> str:
        ...

    def resolve_path(self, handle: RecordHandle) -> str:
        ...

    async def create_record(
        self,
        kind: str,
        name: str,
        fields: FieldMap,
        folder: str | None = None,
    ) -> RecordHandle:
        """Create a new document and return its handle."""
        ...
