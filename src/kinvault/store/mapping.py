"""Mapping between a document's raw field map and :class:`PersonRecord`.

Documents are edited by hand, so values arrive in whatever shape the user
typed: a single id where a list is expected, a YAML date instead of a
string, an aliased key (``birthdate`` for ``born``). Everything is
normalized here so the rest of the code only sees typed records.

Each relationship is stored as a pair of fields: a display wikilink and
the machine id it stands for. Multi-valued pairs are parallel lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kinvault.config import VaultConfig
from kinvault.models.handle import RecordHandle
from kinvault.models.person import ParentRole, PersonRecord, Sex
from kinvault.store.base import FieldMap


@dataclass(frozen=True)
class LinkPair:
    link_key: str
    id_key: str
    multi: bool = False


FATHER = LinkPair("father", "father_id")
MOTHER = LinkPair("mother", "mother_id")
SPOUSE = LinkPair("spouse", "spouse_id", multi=True)
CHILDREN = LinkPair("children", "children_id", multi=True)

# Every pair that may point at another person; scanned on rename
ALL_LINK_PAIRS: tuple[LinkPair, ...] = (
    FATHER,
    MOTHER,
    LinkPair("stepfather", "stepfather_id"),
    LinkPair("stepmother", "stepmother_id"),
    LinkPair("adoptive_father", "adoptive_father_id"),
    LinkPair("adoptive_mother", "adoptive_mother_id"),
    LinkPair("parents", "parents_id", multi=True),
    SPOUSE,
    CHILDREN,
)


def parent_pair(role: ParentRole) -> LinkPair:
    return FATHER if role is ParentRole.FATHER else MOTHER


def as_list(value: Any) -> list[str]:
    """Scalar-or-list field value as a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v) != ""]
    text = str(value)
    return [text] if text else []


def raw_list(value: Any) -> list[str]:
    """Scalar-or-list field value with positions preserved.

    Empty and null entries inside a list stay as empty strings so parallel
    link and id lists keep their alignment.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return ["" if v is None else str(v) for v in value]
    text = str(value)
    return [text] if text else []


def as_scalar(value: Any) -> str | None:
    if isinstance(value, (list, tuple)):
        items = as_list(value)
        return items[0] if items else None
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class FieldMapper:
    """Reads and writes canonical person fields through user aliases."""

    def __init__(self, config: VaultConfig | None = None) -> None:
        self.config = config or VaultConfig()

    def key(self, fields: FieldMap, canonical: str) -> str:
        """Key to use for ``canonical`` in this document.

        The alias wins only when the document already uses it and does not
        also carry the canonical key.
        """
        if canonical in fields:
            return canonical
        alias = self.config.alias_for(canonical)
        if alias and alias in fields:
            return alias
        return canonical

    def get(self, fields: FieldMap, canonical: str) -> Any:
        return fields.get(self.key(fields, canonical))

    def set(self, fields: FieldMap, canonical: str, value: Any) -> None:
        fields[self.key(fields, canonical)] = value

    # ------------------------------------------------------------------
    # records
    # ------------------------------------------------------------------

    def to_person(self, fields: FieldMap, handle: RecordHandle | None = None) -> PersonRecord | None:
        """Typed record for a document, or None when it has no id."""
        person_id = as_scalar(self.get(fields, "id"))
        if not person_id:
            return None

        name = as_scalar(self.get(fields, "name"))
        if not name and handle is not None:
            name = handle.stem

        return PersonRecord(
            id=person_id,
            name=name or "",
            sex=Sex.parse(self.get(fields, "sex") or self.get(fields, "gender")),
            pronouns=as_scalar(self.get(fields, "pronouns")),
            occupation=as_scalar(self.get(fields, "occupation")),
            birth_date=as_scalar(self.get(fields, "born")),
            death_date=as_scalar(self.get(fields, "died")),
            birth_place=as_scalar(self.get(fields, "birth_place")),
            death_place=as_scalar(self.get(fields, "death_place")),
            father_id=as_scalar(self.get(fields, FATHER.id_key)),
            mother_id=as_scalar(self.get(fields, MOTHER.id_key)),
            spouse_ids=_dedupe(as_list(self.get(fields, SPOUSE.id_key))),
            children_ids=_dedupe(as_list(self.get(fields, CHILDREN.id_key))),
            collection=as_scalar(self.get(fields, "collection")),
            source_location=handle,
        )

    def person_fields(self, person: PersonRecord) -> FieldMap:
        """Scalar fields of a new document, in canonical key order.

        Relationship pairs are written separately once every link target
        has a document.
        """
        fields: FieldMap = {"id": person.id, "name": person.name}
        if person.sex is not Sex.UNKNOWN:
            fields["sex"] = person.sex.value
        for canonical, value in (
            ("pronouns", person.pronouns),
            ("occupation", person.occupation),
            ("born", person.birth_date),
            ("birth_place", person.birth_place),
            ("died", person.death_date),
            ("death_place", person.death_place),
            ("collection", person.collection),
        ):
            if value:
                fields[canonical] = value
        return fields

    # ------------------------------------------------------------------
    # link pairs
    # ------------------------------------------------------------------

    def read_pair(self, fields: FieldMap, pair: LinkPair) -> tuple[list[str], list[str]]:
        """(links, ids) of a pair, both as lists, positions preserved."""
        return (
            raw_list(self.get(fields, pair.link_key)),
            raw_list(self.get(fields, pair.id_key)),
        )

    def set_single(self, fields: FieldMap, pair: LinkPair, link: str, target_id: str) -> str | None:
        """Overwrite a single-valued pair; return the id it replaced, if different."""
        previous = as_scalar(self.get(fields, pair.id_key))
        self.set(fields, pair.link_key, link)
        self.set(fields, pair.id_key, target_id)
        return previous if previous and previous != target_id else None

    def append_multi(self, fields: FieldMap, pair: LinkPair, link: str, target_id: str) -> bool:
        """Append to a multi-valued pair unless the id is already present.

        Returns True when the document changed.
        """
        links, ids = self.read_pair(fields, pair)
        if target_id in ids:
            return False
        # pad or trim the tail so the new link lands at the same index as its id
        if len(links) < len(ids):
            links.extend([""] * (len(ids) - len(links)))
        elif len(links) > len(ids):
            links = links[: len(ids)]
        links.append(link)
        ids.append(target_id)
        self.set(fields, pair.link_key, links)
        self.set(fields, pair.id_key, ids)
        return True


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out
