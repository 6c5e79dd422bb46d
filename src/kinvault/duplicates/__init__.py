"""Duplicate person detection."""

from kinvault.duplicates.matcher import DuplicateMatch, DuplicateMatcher, DuplicateSummary
from kinvault.duplicates.similarity import date_proximity, name_similarity

__all__ = [
    "DuplicateMatch",
    "DuplicateMatcher",
    "DuplicateSummary",
    "date_proximity",
    "name_similarity",
]
