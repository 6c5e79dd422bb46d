"""Ahnentafel (Sosa-Stradonitz) ancestor numbering.

The root person is 1. A person numbered ``n`` has their father at ``2n``
and their mother at ``2n + 1``, so generation ``g`` holds the numbers
``2**(g-1)`` to ``2**g - 1``. Missing parents truncate a branch; they
are not errors.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from kinvault.config import AncestryConfig
from kinvault.errors import PersonNotFound
from kinvault.graph.cache import FamilyGraph
from kinvault.models.person import PersonRecord

logger = structlog.get_logger(__name__)


def generation_of(sosa: int) -> int:
    """Generation of a Sosa number: 1 for the root, 2 for parents..."""
    if sosa < 1:
        raise ValueError(f"Sosa numbers start at 1, got {sosa}")
    return sosa.bit_length()


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def generation_label(generation: int) -> str:
    """Self, Parents, Grandparents, Great-grandparents, 2nd great-grandparents..."""
    if generation == 1:
        return "Self"
    if generation == 2:
        return "Parents"
    if generation == 3:
        return "Grandparents"
    if generation == 4:
        return "Great-grandparents"
    return f"{_ordinal(generation - 3)} great-grandparents"


@dataclass
class GenerationCompleteness:
    generation: int
    found: int
    expected: int

    @property
    def ratio(self) -> float:
        return self.found / self.expected if self.expected else 0.0

    @property
    def percent(self) -> int:
        return round(self.ratio * 100)


@dataclass
class AhnentafelResult:
    """Ancestors keyed by Sosa number, root included at 1."""

    root: PersonRecord
    max_generations: int
    ancestors: dict[int, PersonRecord] = field(default_factory=dict)

    @property
    def generations_found(self) -> int:
        return max((generation_of(n) for n in self.ancestors), default=0)

    def generation(self, g: int) -> dict[int, PersonRecord]:
        lo, hi = 2 ** (g - 1), 2**g
        return {n: p for n, p in sorted(self.ancestors.items()) if lo <= n < hi}

    def completeness(self, g: int) -> float:
        """Share of the ``2**(g-1)`` slots of generation ``g`` that are filled."""
        if g < 1:
            raise ValueError(f"generation must be at least 1, got {g}")
        return len(self.generation(g)) / 2 ** (g - 1)

    def completeness_table(self) -> list[GenerationCompleteness]:
        """Completeness for generations 2 through the deepest one found."""
        return [
            GenerationCompleteness(g, len(self.generation(g)), 2 ** (g - 1))
            for g in range(2, self.generations_found + 1)
        ]

    def numbers_of(self, person_id: str) -> list[int]:
        """Every Sosa number a person holds (more than one under pedigree collapse)."""
        return sorted(n for n, p in self.ancestors.items() if p.id == person_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root_id": self.root.id,
            "generations_found": self.generations_found,
            "ancestors": {
                n: {"id": p.id, "name": p.name, "generation": generation_of(n)}
                for n, p in sorted(self.ancestors.items())
            },
        }


class AncestorNumberer:
    def __init__(self, graph: FamilyGraph, config: AncestryConfig | None = None) -> None:
        self.graph = graph
        self.config = config or AncestryConfig()

    def generate(self, root_id: str, max_generations: int | None = None) -> AhnentafelResult:
        """Number the root's ancestors up to ``max_generations`` (root counts as one).

        Raises:
            PersonNotFound: ``root_id`` is not in the graph.
            ValueError: ``max_generations`` is below 1.
        """
        limit = max_generations if max_generations is not None else self.config.max_generations
        if limit < 1:
            raise ValueError(f"max_generations must be at least 1, got {limit}")

        root = self.graph.get_by_id(root_id)
        if root is None:
            raise PersonNotFound(root_id)

        result = AhnentafelResult(root=root, max_generations=limit)
        self._collect(root, limit, result.ancestors)

        logger.info(
            "ahnentafel.generated",
            root_id=root_id,
            ancestors=len(result.ancestors),
            generations_found=result.generations_found,
        )
        return result

    def _collect(
        self,
        root: PersonRecord,
        limit: int,
        out: dict[int, PersonRecord],
    ) -> None:
        """Walk parents depth-first with an explicit stack of (sosa, person, generation)."""
        stack = [(1, root, 1)]
        while stack:
            sosa, person, generation = stack.pop()
            out[sosa] = person
            if generation >= limit:
                continue
            mother = self.graph.get_by_id(person.mother_id)
            if mother is not None:
                stack.append((2 * sosa + 1, mother, generation + 1))
            father = self.graph.get_by_id(person.father_id)
            if father is not None:
                stack.append((2 * sosa, father, generation + 1))
