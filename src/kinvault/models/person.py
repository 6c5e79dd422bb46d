"""Typed person record and the wikilink notation used for display links."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from kinvault.models.handle import RecordHandle


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "Sex":
        """Lenient parse: ``M``/``F``/``male``/``female``/``other``, else unknown."""
        if isinstance(value, Sex):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        v = value.strip().lower()
        if v in ("m", "male"):
            return cls.MALE
        if v in ("f", "female"):
            return cls.FEMALE
        if v == "other":
            return cls.OTHER
        return cls.UNKNOWN

    @property
    def gedcom(self) -> str:
        return {Sex.MALE: "M", Sex.FEMALE: "F"}.get(self, "U")


class ParentRole(str, Enum):
    FATHER = "father"
    MOTHER = "mother"

    @property
    def expected_sex(self) -> Sex:
        return Sex.MALE if self is ParentRole.FATHER else Sex.FEMALE

    @classmethod
    def for_parent_sex(cls, sex: Sex) -> "ParentRole":
        """Role a parent plays given their sex; anything but female is father."""
        return cls.MOTHER if sex is Sex.FEMALE else cls.FATHER


class PersonRecord(BaseModel):
    """One person as seen by the graph.

    Relationships are ids only. The display wikilinks stored next to them
    in the document are handled by the mapping layer.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    name: str = ""
    sex: Sex = Sex.UNKNOWN
    pronouns: str | None = None
    occupation: str | None = None

    birth_date: str | None = None
    death_date: str | None = None
    birth_place: str | None = None
    death_place: str | None = None

    father_id: str | None = None
    mother_id: str | None = None
    spouse_ids: list[str] = Field(default_factory=list)
    children_ids: list[str] = Field(default_factory=list)

    collection: str | None = None
    source_location: RecordHandle | None = None

    @property
    def parent_ids(self) -> list[str]:
        return [pid for pid in (self.father_id, self.mother_id) if pid]

    def has_any_relationship(self) -> bool:
        return bool(self.father_id or self.mother_id or self.spouse_ids or self.children_ids)


# ---------------------------------------------------------------------------
# Wikilinks
# ---------------------------------------------------------------------------

WIKILINK_RE = re.compile(r"^\s*\[\[([^\]|]+)(?:\|([^\]]*))?\]\]\s*$")


def make_wikilink(stem: str, name: str) -> str:
    """``[[Name]]`` when the file stem equals the display name, else ``[[stem|Name]]``."""
    if not name or stem == name:
        return f"[[{stem}]]"
    return f"[[{stem}|{name}]]"


def parse_wikilink(text: str) -> tuple[str, str] | None:
    """Return ``(target, label)`` for a wikilink, or None if ``text`` is not one."""
    m = WIKILINK_RE.match(text or "")
    if not m:
        return None
    target = m.group(1).strip()
    label = (m.group(2) or "").strip() or target
    return target, label
