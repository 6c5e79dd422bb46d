"""Neutral GEDCOM representation produced by the parser and read by the importer.

Cross-references (``xref``) are kept without their ``@`` markers.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from kinvault.gedcom.dates import normalize_gedcom_date


@dataclass
class GedcomIndividual:
    xref: str
    name: str = ""
    given_name: str | None = None
    surname: str | None = None
    sex: str = "U"  # M, F or U
    birth_date: str | None = None  # as written in the file
    birth_place: str | None = None
    death_date: str | None = None
    death_place: str | None = None
    occupation: str | None = None

    # Filled by the linking step
    father_ref: str | None = None
    mother_ref: str | None = None
    spouse_refs: list[str] = field(default_factory=list)

    family_as_child: str | None = None  # FAMC
    families_as_spouse: list[str] = field(default_factory=list)  # FAMS

    @property
    def normalized_birth_date(self) -> str | None:
        return normalize_gedcom_date(self.birth_date)

    @property
    def normalized_death_date(self) -> str | None:
        return normalize_gedcom_date(self.death_date)


@dataclass
class GedcomFamily:
    xref: str
    husband_ref: str | None = None
    wife_ref: str | None = None
    children_refs: list[str] = field(default_factory=list)
    marriage_date: str | None = None
    marriage_place: str | None = None


@dataclass
class GedcomHeader:
    source: str | None = None
    version: str | None = None
    date: str | None = None
    file_name: str | None = None


@dataclass
class GedcomData:
    header: GedcomHeader = field(default_factory=GedcomHeader)
    individuals: dict[str, GedcomIndividual] = field(default_factory=dict)
    families: dict[str, GedcomFamily] = field(default_factory=dict)
