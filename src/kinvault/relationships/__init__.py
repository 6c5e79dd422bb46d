"""Relationship editing with dual storage and change notifications."""

from kinvault.relationships.history import (
    RelationshipChange,
    RelationshipChangeType,
    RelationshipHistory,
)
from kinvault.relationships.mutator import MutationResult, RelationshipMutator

__all__ = [
    "MutationResult",
    "RelationshipChange",
    "RelationshipChangeType",
    "RelationshipHistory",
    "RelationshipMutator",
]
