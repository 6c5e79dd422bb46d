"""Export the family graph to a GEDCOM 5.5 file.

Each person becomes an ``INDI`` record. Families are rebuilt from the
graph: one ``FAM`` per parent couple (or single parent) of some child,
plus one per spouse pair that has no children together.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import structlog

from kinvault.fs import atomic_write_text
from kinvault.gedcom.dates import to_gedcom_date
from kinvault.graph.cache import FamilyGraph
from kinvault.models.person import PersonRecord, Sex

logger = structlog.get_logger(__name__)


@dataclass
class _Family:
    fam_id: str
    husb_id: str | None = None  # person ids, not xrefs
    wife_id: str | None = None
    child_ids: list[str] = field(default_factory=list)


def gedcom_name(name: str) -> str:
    """``Given Names /Surname/``, taking the last word as surname."""
    parts = name.split()
    if len(parts) < 2:
        return name
    return f"{' '.join(parts[:-1])} /{parts[-1]}/"


class GedcomExporter:
    def __init__(self, graph: FamilyGraph, source_name: str = "kinvault") -> None:
        self.graph = graph
        self.source_name = source_name

    def _families(self, people: dict[str, PersonRecord]) -> list[_Family]:
        families: dict[frozenset[str], _Family] = {}

        def ensure(husb: str | None, wife: str | None) -> _Family:
            key = frozenset(i for i in (husb, wife) if i)
            if key not in families:
                families[key] = _Family(f"F{len(families) + 1}", husb_id=husb, wife_id=wife)
            return families[key]

        # parent couples first so HUSB/WIFE follow father/mother
        for person in people.values():
            father = person.father_id if person.father_id in people else None
            mother = person.mother_id if person.mother_id in people else None
            if father or mother:
                fam = ensure(father, mother)
                if person.id not in fam.child_ids:
                    fam.child_ids.append(person.id)

        for person in people.values():
            for spouse_id in person.spouse_ids:
                spouse = people.get(spouse_id)
                if spouse is None or frozenset((person.id, spouse_id)) in families:
                    continue
                if person.sex is Sex.FEMALE or (spouse.sex is Sex.MALE and person.sex is not Sex.MALE):
                    ensure(spouse.id, person.id)
                else:
                    ensure(person.id, spouse.id)

        return list(families.values())

    def render(self, now: datetime | None = None) -> str:
        """GEDCOM text for the whole graph."""
        people = self.graph.ensure_loaded()
        xref = {pid: f"I{n}" for n, pid in enumerate(people, start=1)}
        families = self._families(people)

        famc: dict[str, list[str]] = {}
        fams: dict[str, list[str]] = {}
        for fam in families:
            for child in fam.child_ids:
                famc.setdefault(child, []).append(fam.fam_id)
            for spouse in (fam.husb_id, fam.wife_id):
                if spouse:
                    fams.setdefault(spouse, []).append(fam.fam_id)

        stamp = (now or datetime.now(UTC)).strftime("%d %b %Y").upper()
        lines: list[str] = [
            "0 HEAD",
            f"1 SOUR {self.source_name}",
            f"1 DATE {stamp}",
            "1 GEDC",
            "2 VERS 5.5",
            "2 FORM LINEAGE-LINKED",
            "1 CHAR UTF-8",
        ]

        for pid, person in people.items():
            lines.append(f"0 @{xref[pid]}@ INDI")
            if person.name:
                lines.append(f"1 NAME {gedcom_name(person.name)}")
            lines.append(f"1 SEX {person.sex.gedcom}")
            for tag, date, place in (
                ("BIRT", person.birth_date, person.birth_place),
                ("DEAT", person.death_date, person.death_place),
            ):
                if date or place:
                    lines.append(f"1 {tag}")
                    if date:
                        lines.append(f"2 DATE {to_gedcom_date(date)}")
                    if place:
                        lines.append(f"2 PLAC {place}")
            if person.occupation:
                lines.append(f"1 OCCU {person.occupation}")
            for fam_id in famc.get(pid, []):
                lines.append(f"1 FAMC @{fam_id}@")
            for fam_id in fams.get(pid, []):
                lines.append(f"1 FAMS @{fam_id}@")

        for fam in families:
            lines.append(f"0 @{fam.fam_id}@ FAM")
            if fam.husb_id:
                lines.append(f"1 HUSB @{xref[fam.husb_id]}@")
            if fam.wife_id:
                lines.append(f"1 WIFE @{xref[fam.wife_id]}@")
            for child in fam.child_ids:
                lines.append(f"1 CHIL @{xref[child]}@")

        lines.append("0 TRLR")
        logger.info("gedcom.exported", individuals=len(people), families=len(families))
        return "\n".join(lines) + "\n"

    def export(self, out_file: Path | str) -> Path:
        """Write the GEDCOM file and return its path."""
        return atomic_write_text(Path(out_file), self.render())
