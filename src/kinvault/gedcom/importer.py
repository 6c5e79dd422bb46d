"""Create person notes from parsed GEDCOM data.

Import runs in two passes. The first creates one document per individual
with a fresh person id and its scalar facts. The second writes the
relationship pairs, which need every target's id and file name to exist.
"""
from __future__ import annotations

from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from kinvault.config import VaultConfig
from kinvault.errors import RecordStoreError
from kinvault.gedcom.models import GedcomData, GedcomIndividual
from kinvault.gedcom.parser import GedcomParser
from kinvault.ids import generate_person_id
from kinvault.models.handle import RecordHandle
from kinvault.models.person import PersonRecord, Sex, make_wikilink
from kinvault.store.base import FieldMap, RecordStore
from kinvault.store.mapping import CHILDREN, FATHER, MOTHER, SPOUSE, FieldMapper

logger = structlog.get_logger(__name__)


class ImportResult(BaseModel):
    created: int = 0
    xref_to_id: dict[str, str] = Field(default_factory=dict)
    paths: dict[str, str] = Field(default_factory=dict)  # xref -> document path
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _display_name(indi: GedcomIndividual) -> str:
    if indi.name:
        return indi.name
    parts = [p for p in (indi.given_name, indi.surname) if p]
    return " ".join(parts) or f"Unknown {indi.xref}"


class GedcomImporter:
    def __init__(
        self,
        store: RecordStore,
        vault_config: VaultConfig | None = None,
        existing_ids: set[str] | None = None,
        mapper: FieldMapper | None = None,
    ) -> None:
        self.store = store
        self.vault_config = vault_config or VaultConfig()
        self.mapper = mapper or FieldMapper(self.vault_config)
        self._taken: set[str] = set(existing_ids or ())

    def _new_id(self) -> str:
        while True:
            candidate = generate_person_id()
            if candidate not in self._taken:
                self._taken.add(candidate)
                return candidate

    def to_person(self, indi: GedcomIndividual, collection: str | None = None) -> PersonRecord:
        """Scalar facts of one individual; dates normalized, unreadable dates dropped."""
        for label, raw, normalized in (
            ("birth", indi.birth_date, indi.normalized_birth_date),
            ("death", indi.death_date, indi.normalized_death_date),
        ):
            if raw and normalized is None:
                logger.debug("gedcom.date_unparseable", xref=indi.xref, event=label, value=raw)
        return PersonRecord(
            id=self._new_id(),
            name=_display_name(indi),
            sex=Sex.parse(indi.sex),
            occupation=indi.occupation,
            birth_date=indi.normalized_birth_date,
            birth_place=indi.birth_place,
            death_date=indi.normalized_death_date,
            death_place=indi.death_place,
            collection=collection,
        )

    async def import_data(
        self,
        data: GedcomData,
        folder: str | None = None,
        collection: str | None = None,
    ) -> ImportResult:
        result = ImportResult()
        handles: dict[str, RecordHandle] = {}
        links: dict[str, str] = {}

        # pass 1: one document per individual
        for xref, indi in data.individuals.items():
            person = self.to_person(indi, collection)
            try:
                handle = await self.store.create_record(
                    "person",
                    person.name,
                    self.mapper.person_fields(person),
                    folder if folder is not None else self.vault_config.people_folder,
                )
            except RecordStoreError as e:
                logger.error("gedcom.import_create_failed", xref=xref, error=str(e))
                result.errors.append(f"{xref}: {e}")
                continue
            handles[xref] = handle
            links[xref] = make_wikilink(handle.stem, person.name)
            result.xref_to_id[xref] = person.id
            result.paths[xref] = self.store.resolve_path(handle)
            result.created += 1

        # pass 2: relationship pairs
        children_of: dict[str, list[str]] = {}
        for xref, indi in data.individuals.items():
            for parent in (indi.father_ref, indi.mother_ref):
                if parent:
                    children_of.setdefault(parent, []).append(xref)

        for xref, indi in data.individuals.items():
            handle = handles.get(xref)
            if handle is None:
                continue
            edit = self._relationship_edit(indi, children_of.get(xref, []), result.xref_to_id, links)
            if edit is None:
                continue
            try:
                await self.store.write_fields(handle, edit)
            except RecordStoreError as e:
                logger.error("gedcom.import_link_failed", xref=xref, error=str(e))
                result.errors.append(f"{xref}: {e}")

        logger.info(
            "gedcom.imported",
            individuals=len(data.individuals),
            created=result.created,
            errors=len(result.errors),
        )
        return result

    def _relationship_edit(
        self,
        indi: GedcomIndividual,
        children: list[str],
        ids: dict[str, str],
        links: dict[str, str],
    ):
        singles = [
            (pair, ref)
            for pair, ref in ((FATHER, indi.father_ref), (MOTHER, indi.mother_ref))
            if ref in ids
        ]
        multis = [(SPOUSE, ref) for ref in indi.spouse_refs if ref in ids]
        multis += [(CHILDREN, ref) for ref in children if ref in ids]
        if not singles and not multis:
            return None

        def edit(fields: FieldMap) -> None:
            for pair, ref in singles:
                self.mapper.set_single(fields, pair, links[ref], ids[ref])
            for pair, ref in multis:
                self.mapper.append_multi(fields, pair, links[ref], ids[ref])

        return edit

    async def import_text(self, text: str, **kwargs) -> ImportResult:
        return await self.import_data(GedcomParser().parse(text), **kwargs)

    async def import_file(self, path: Path | str, **kwargs) -> ImportResult:
        return await self.import_data(GedcomParser().parse_file(path), **kwargs)
