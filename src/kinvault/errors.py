"""Exception and warning types raised by kinvault.

Blocking conditions are exceptions derived from :class:`KinvaultError`.
Advisory conditions (a parent whose sex contradicts the requested role)
are warnings and never stop an operation. Per-document write failures
are collected on results instead of being raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class KinvaultError(Exception):
    """Base class for all kinvault errors."""


@dataclass
class MissingIdentity(KinvaultError):
    """A record taking part in a relationship has no ``id``.

    The operation is aborted before anything is written.
    """

    paths: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return "record(s) missing an id: " + ", ".join(self.paths)


@dataclass
class PersonNotFound(KinvaultError):
    person_id: str

    def __str__(self) -> str:
        return f"person not found: {self.person_id}"


@dataclass
class GedcomParseError(KinvaultError):
    """A GEDCOM line does not match ``level [@xref@] tag [value]``."""

    message: str
    line_number: int
    path: str | None = None

    def __str__(self) -> str:
        where = f"{self.path}:" if self.path else "line "
        return f"{where}{self.line_number}: {self.message}"


class ConfigError(KinvaultError):
    """Configuration file is unreadable or holds invalid values."""


class RecordStoreError(KinvaultError):
    """The record store could not read or write a document."""


class RoleSexMismatch(UserWarning):
    """Parent's recorded sex contradicts the requested parent role."""


@dataclass
class WriteFailure:
    """One document write that failed inside a multi-document mutation.

    Not raised. The mutation carries on with its remaining writes and no
    compensating write is issued for documents already updated.
    """

    path: str
    error: str
