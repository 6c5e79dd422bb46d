from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(frozen=True, order=True)
class RecordHandle:
    """Opaque reference to one document in a record store.

    ``path`` is the store-relative POSIX path (``People/Jane Doe.md``).
    """

    path: str

    @property
    def stem(self) -> str:
        return PurePosixPath(self.path).stem

    def __str__(self) -> str:
        return self.path
