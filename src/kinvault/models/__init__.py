"""Record types shared across kinvault."""

from kinvault.models.handle import RecordHandle
from kinvault.models.person import (
    ParentRole,
    PersonRecord,
    Sex,
    make_wikilink,
    parse_wikilink,
)

__all__ = [
    "ParentRole",
    "PersonRecord",
    "RecordHandle",
    "Sex",
    "make_wikilink",
    "parse_wikilink",
]
