"""Record stores and the field mapping layer."""

from kinvault.models.handle import RecordHandle
from kinvault.store.base import FieldMap, FieldMutator, RecordStore
from kinvault.store.mapping import FieldMapper, LinkPair
from kinvault.store.vault import MarkdownVault

__all__ = [
    "FieldMap",
    "FieldMapper",
    "FieldMutator",
    "LinkPair",
    "MarkdownVault",
    "RecordHandle",
    "RecordStore",
]
