"""Split GEDCOM text into leveled lines."""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from kinvault.errors import GedcomParseError

LINE_RE = re.compile(r"^(\d+)\s+(@[^@]+@\s+)?(\S+)(\s+(.*))?$")


@dataclass(frozen=True)
class GedcomLine:
    level: int
    tag: str
    value: str = ""
    xref: str | None = None  # without @ markers
    line_number: int = 0


def strip_xref(value: str) -> str:
    return value.replace("@", "").strip()


def iter_lines(text: str, path: str | None = None) -> Iterator[GedcomLine]:
    """Yield one :class:`GedcomLine` per non-blank line.

    Raises:
        GedcomParseError: a line does not match ``level [@xref@] tag [value]``.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    for number, raw in enumerate(re.split(r"\r?\n", text), start=1):
        line = raw.strip()
        if not line:
            continue
        m = LINE_RE.match(line)
        if not m:
            raise GedcomParseError("Invalid GEDCOM line format", number, path)
        yield GedcomLine(
            level=int(m.group(1)),
            tag=m.group(3),
            value=(m.group(5) or "").strip(),
            xref=strip_xref(m.group(2)) if m.group(2) else None,
            line_number=number,
        )


def tokenize(text: str, path: str | None = None) -> list[GedcomLine]:
    return list(iter_lines(text, path))
