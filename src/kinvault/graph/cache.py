"""In-memory family graph built from the record store.

The graph is an id-keyed map of :class:`PersonRecord`. Relationships are
plain id lookups, so cycles in the data (pedigree collapse, bad edits)
never form object cycles. The map is built once on first use and kept
until :meth:`FamilyGraph.invalidate`; there are no partial updates.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

import structlog

from kinvault.config import VaultConfig
from kinvault.errors import RecordStoreError
from kinvault.models.handle import RecordHandle
from kinvault.models.person import PersonRecord
from kinvault.store.base import RecordStore
from kinvault.store.mapping import FieldMapper

logger = structlog.get_logger(__name__)


@dataclass
class GraphStats:
    people: int = 0
    with_father: int = 0
    with_mother: int = 0
    with_spouse: int = 0
    with_children: int = 0
    unconnected: int = 0
    dangling_references: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class FamilyGraph:
    """Lazily built, explicitly invalidated snapshot of all person records."""

    def __init__(
        self,
        store: RecordStore,
        vault_config: VaultConfig | None = None,
        mapper: FieldMapper | None = None,
    ) -> None:
        self.store = store
        self.mapper = mapper or FieldMapper(vault_config)
        self._people: dict[str, PersonRecord] | None = None

    # ------------------------------------------------------------------
    # cache lifecycle
    # ------------------------------------------------------------------

    def load(self) -> dict[str, PersonRecord]:
        """Scan every person record once and cache the id-keyed map."""
        people: dict[str, PersonRecord] = {}
        skipped = 0
        for handle in self.store.list_records("person"):
            try:
                fields = self.store.read_fields(handle)
            except RecordStoreError as e:
                logger.warning("graph.record_unreadable", path=handle.path, error=str(e))
                skipped += 1
                continue
            person = self.mapper.to_person(fields, handle)
            if person is None:
                logger.debug("graph.record_without_id", path=handle.path)
                skipped += 1
                continue
            if person.id in people:
                logger.warning(
                    "graph.duplicate_id",
                    person_id=person.id,
                    kept=people[person.id].source_location.path if people[person.id].source_location else None,
                    ignored=handle.path,
                )
                continue
            people[person.id] = person

        self._people = people
        logger.info("graph.loaded", people=len(people), skipped=skipped)
        return people

    def ensure_loaded(self) -> dict[str, PersonRecord]:
        if self._people is None:
            return self.load()
        return self._people

    def invalidate(self) -> None:
        self._people = None

    @property
    def loaded(self) -> bool:
        return self._people is not None

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------

    def get_by_id(self, person_id: str | None) -> PersonRecord | None:
        if not person_id:
            return None
        return self.ensure_loaded().get(person_id)

    def get_all(self) -> list[PersonRecord]:
        return list(self.ensure_loaded().values())

    def __len__(self) -> int:
        return len(self.ensure_loaded())

    def __contains__(self, person_id: object) -> bool:
        return person_id in self.ensure_loaded()

    def handle_of(self, person_id: str) -> RecordHandle | None:
        person = self.get_by_id(person_id)
        return person.source_location if person else None

    def get_father(self, person: PersonRecord) -> PersonRecord | None:
        return self.get_by_id(person.father_id)

    def get_mother(self, person: PersonRecord) -> PersonRecord | None:
        return self.get_by_id(person.mother_id)

    def get_parents(self, person: PersonRecord) -> list[PersonRecord]:
        return [p for p in (self.get_father(person), self.get_mother(person)) if p is not None]

    def get_spouses(self, person: PersonRecord) -> list[PersonRecord]:
        return self._resolve(person.spouse_ids)

    def get_children(self, person: PersonRecord) -> list[PersonRecord]:
        return self._resolve(person.children_ids)

    def _resolve(self, ids: list[str]) -> list[PersonRecord]:
        people = self.ensure_loaded()
        return [people[i] for i in ids if i in people]

    # ------------------------------------------------------------------
    # statistics
    # ------------------------------------------------------------------

    def stats(self) -> GraphStats:
        people = self.ensure_loaded()
        s = GraphStats(people=len(people))
        for person in people.values():
            s.with_father += bool(person.father_id)
            s.with_mother += bool(person.mother_id)
            s.with_spouse += bool(person.spouse_ids)
            s.with_children += bool(person.children_ids)
            s.unconnected += not person.has_any_relationship()
            refs = [*person.parent_ids, *person.spouse_ids, *person.children_ids]
            s.dangling_references += sum(1 for ref in refs if ref not in people)
        return s
