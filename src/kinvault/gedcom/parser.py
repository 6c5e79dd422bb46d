"""Single-pass GEDCOM 5.5 parser.

The record kind (header, individual, family) only changes on level-0
lines. Within a record a two-slot context ``[level-1 tag, level-2 tag]``
tells a ``DATE`` under ``BIRT`` apart from one under ``DEAT``. Family
references are resolved into parent and spouse refs after the pass.
"""
from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

import structlog

from kinvault.gedcom.lexer import GedcomLine, iter_lines, strip_xref
from kinvault.gedcom.models import GedcomData, GedcomFamily, GedcomHeader, GedcomIndividual

logger = structlog.get_logger(__name__)

_NAME_PARTS = re.compile(r"^(?P<given>[^/]*)/(?P<surname>[^/]*)/?(?P<suffix>.*)$")


class RecordKind(str, Enum):
    NONE = "none"
    HEADER = "header"
    INDIVIDUAL = "individual"
    FAMILY = "family"


class GedcomParser:
    """Builds :class:`GedcomData` from GEDCOM text."""

    def parse(self, text: str, path: str | None = None) -> GedcomData:
        """Parse a whole document.

        Raises:
            GedcomParseError: on the first malformed line.
        """
        data = GedcomData()
        kind = RecordKind.NONE
        individual: GedcomIndividual | None = None
        family: GedcomFamily | None = None
        context: list[str] = []

        for line in iter_lines(text, path):
            if line.level == 0:
                individual = family = None
                context = []
                if line.tag == "HEAD":
                    kind = RecordKind.HEADER
                elif line.tag == "INDI" and line.xref:
                    kind = RecordKind.INDIVIDUAL
                    individual = GedcomIndividual(xref=line.xref)
                    data.individuals[line.xref] = individual
                elif line.tag == "FAM" and line.xref:
                    kind = RecordKind.FAMILY
                    family = GedcomFamily(xref=line.xref)
                    data.families[line.xref] = family
                else:
                    kind = RecordKind.NONE
                continue

            _push_context(context, line)
            if kind is RecordKind.HEADER:
                self._header_line(line, data.header, context)
            elif kind is RecordKind.INDIVIDUAL and individual is not None:
                self._individual_line(line, individual, context)
            elif kind is RecordKind.FAMILY and family is not None:
                self._family_line(line, family, context)

        link_families(data)
        logger.info(
            "gedcom.parsed",
            path=path,
            individuals=len(data.individuals),
            families=len(data.families),
        )
        return data

    def parse_file(self, path: Path | str) -> GedcomData:
        p = Path(path)
        return self.parse(p.read_text(encoding="utf-8-sig"), path=str(p))

    # ------------------------------------------------------------------

    @staticmethod
    def _header_line(line: GedcomLine, header: GedcomHeader, context: list[str]) -> None:
        if line.tag == "SOUR" and line.level == 1:
            header.source = line.value
        elif line.tag == "VERS" and context[0] == "GEDC":
            header.version = line.value
        elif line.tag == "DATE" and line.level == 1:
            header.date = line.value
        elif line.tag == "FILE":
            header.file_name = line.value

    @staticmethod
    def _individual_line(line: GedcomLine, indi: GedcomIndividual, context: list[str]) -> None:
        tag, value = line.tag, line.value
        if tag == "NAME" and line.level == 1:
            indi.name = " ".join(value.replace("/", " ").split())
            m = _NAME_PARTS.match(value)
            if m:
                indi.given_name = m.group("given").strip() or indi.given_name
                indi.surname = m.group("surname").strip() or indi.surname
        elif tag == "GIVN":
            indi.given_name = value
        elif tag == "SURN":
            indi.surname = value
        elif tag == "SEX":
            indi.sex = value.upper() if value.upper() in ("M", "F") else "U"
        elif tag == "OCCU":
            indi.occupation = value
        elif tag == "DATE":
            if context[0] == "BIRT":
                indi.birth_date = value
            elif context[0] == "DEAT":
                indi.death_date = value
        elif tag == "PLAC":
            if context[0] == "BIRT":
                indi.birth_place = value
            elif context[0] == "DEAT":
                indi.death_place = value
        elif tag == "FAMC" and line.level == 1:
            indi.family_as_child = strip_xref(value)
        elif tag == "FAMS" and line.level == 1:
            ref = strip_xref(value)
            if ref not in indi.families_as_spouse:
                indi.families_as_spouse.append(ref)

    @staticmethod
    def _family_line(line: GedcomLine, fam: GedcomFamily, context: list[str]) -> None:
        tag, value = line.tag, line.value
        if tag == "HUSB":
            fam.husband_ref = strip_xref(value)
        elif tag == "WIFE":
            fam.wife_ref = strip_xref(value)
        elif tag == "CHIL":
            ref = strip_xref(value)
            if ref not in fam.children_refs:
                fam.children_refs.append(ref)
        elif tag == "DATE" and context[0] == "MARR":
            fam.marriage_date = value
        elif tag == "PLAC" and context[0] == "MARR":
            fam.marriage_place = value


def _push_context(context: list[str], line: GedcomLine) -> None:
    if line.level == 1:
        context[:] = [line.tag]
    elif line.level == 2:
        del context[1:]
        if not context:
            context.append("")
        context.append(line.tag)
    elif not context:
        context.append("")


def link_families(data: GedcomData) -> None:
    """Turn family records into parent and spouse refs on individuals."""
    for fam in data.families.values():
        for child_ref in fam.children_refs:
            child = data.individuals.get(child_ref)
            if child is None:
                continue
            if fam.husband_ref:
                child.father_ref = fam.husband_ref
            if fam.wife_ref:
                child.mother_ref = fam.wife_ref

        if fam.husband_ref and fam.wife_ref:
            husband = data.individuals.get(fam.husband_ref)
            wife = data.individuals.get(fam.wife_ref)
            if husband is not None and wife is not None:
                if wife.xref not in husband.spouse_refs:
                    husband.spouse_refs.append(wife.xref)
                if husband.xref not in wife.spouse_refs:
                    wife.spouse_refs.append(husband.xref)
