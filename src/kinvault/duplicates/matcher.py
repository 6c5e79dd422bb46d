"""Pairwise duplicate-person detection over the cached family graph.

Uses three signals:
- Name similarity (Levenshtein, plus a token-order-insensitive check)
- Birth/death year proximity
- Shared relatives (parents, spouses, children)
"""

from __future__ import annotations

import math
from itertools import combinations
from typing import ClassVar

import structlog
from pydantic import BaseModel, Field

from kinvault.config import DuplicateDetectionConfig
from kinvault.duplicates.similarity import date_proximity, name_similarity
from kinvault.graph.cache import FamilyGraph
from kinvault.models.person import PersonRecord, Sex

logger = structlog.get_logger(__name__)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class DuplicateMatch(BaseModel):
    """A candidate pair of records describing the same person."""

    person_a: PersonRecord
    person_b: PersonRecord
    confidence: int
    name_similarity: int
    date_proximity: int
    relationship_overlap: int = 0
    reasons: list[str] = Field(default_factory=list)


class DuplicateSummary(BaseModel):
    total: int = 0
    high: int = 0  # 80+
    medium: int = 0  # 60-79
    low: int = 0  # under 60


class DuplicateMatcher:
    """Scores every pair of people and reports likely duplicates."""

    NAME_WEIGHT: ClassVar[float] = 0.6
    DATE_WEIGHT: ClassVar[float] = 0.3
    SAME_SEX_BONUS: ClassVar[int] = 5
    PER_SHARED_RELATION: ClassVar[int] = 3
    MAX_RELATION_BONUS: ClassVar[int] = 10

    def __init__(self, graph: FamilyGraph, config: DuplicateDetectionConfig | None = None) -> None:
        self.graph = graph
        self.config = config or DuplicateDetectionConfig()

    def find_duplicates(self, options: DuplicateDetectionConfig | None = None) -> list[DuplicateMatch]:
        """Return matches at or above ``min_confidence``, highest confidence first.

        Args:
            options: Overrides the matcher's configured thresholds for this call.
        """
        opts = options or self.config
        people = self.graph.get_all()
        matches: list[DuplicateMatch] = []

        for a, b in combinations(people, 2):
            if opts.same_collection_only and a.collection != b.collection:
                continue
            match = self.score_pair(a, b, opts)
            if match is not None and match.confidence >= opts.min_confidence:
                matches.append(match)

        matches.sort(key=lambda m: m.confidence, reverse=True)
        logger.info("duplicates.scan", people=len(people), matches=len(matches))
        return matches

    def score_pair(
        self,
        a: PersonRecord,
        b: PersonRecord,
        opts: DuplicateDetectionConfig | None = None,
    ) -> DuplicateMatch | None:
        """Score one pair; None when the names are too far apart to bother."""
        opts = opts or self.config
        reasons: list[str] = []

        names = name_similarity(a.name, b.name)
        if names < opts.min_name_similarity:
            return None
        if names >= 90:
            reasons.append("Names are nearly identical")
        elif names >= 80:
            reasons.append("Names are very similar")
        else:
            reasons.append("Names have some similarity")

        dates = date_proximity(
            a.birth_date, b.birth_date, a.death_date, b.death_date, opts.max_year_difference
        )
        if dates >= 90:
            reasons.append("Birth/death dates match closely")
        elif dates >= 70:
            reasons.append("Birth/death dates are within range")

        same_sex = a.sex is not Sex.UNKNOWN and a.sex is b.sex
        if same_sex:
            reasons.append("Same sex")

        overlap = relationship_overlap(a, b)
        if overlap:
            reasons.append(f"{overlap} shared relationship(s)")

        confidence = names * self.NAME_WEIGHT + dates * self.DATE_WEIGHT
        if same_sex:
            confidence += self.SAME_SEX_BONUS
        if overlap:
            confidence += min(overlap * self.PER_SHARED_RELATION, self.MAX_RELATION_BONUS)

        return DuplicateMatch(
            person_a=a,
            person_b=b,
            confidence=max(0, min(round_half_up(confidence), 100)),
            name_similarity=round_half_up(names),
            date_proximity=round_half_up(dates),
            relationship_overlap=overlap,
            reasons=reasons,
        )

    @staticmethod
    def summarize(matches: list[DuplicateMatch]) -> DuplicateSummary:
        return DuplicateSummary(
            total=len(matches),
            high=sum(1 for m in matches if m.confidence >= 80),
            medium=sum(1 for m in matches if 60 <= m.confidence < 80),
            low=sum(1 for m in matches if m.confidence < 60),
        )


def relationship_overlap(a: PersonRecord, b: PersonRecord) -> int:
    """Number of relatives the two records have in common."""
    overlap = 0
    if a.father_id and a.father_id == b.father_id:
        overlap += 1
    if a.mother_id and a.mother_id == b.mother_id:
        overlap += 1
    overlap += len(set(a.spouse_ids) & set(b.spouse_ids))
    overlap += len(set(a.children_ids) & set(b.children_ids))
    return overlap
