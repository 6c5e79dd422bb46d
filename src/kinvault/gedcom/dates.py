"""GEDCOM date normalization that keeps the precision written in the file.

``15 MAR 1950`` becomes ``1950-03-15``, ``MAR 1950`` becomes ``1950-03``
and ``1950`` stays ``1950``. A qualifier (``ABT``, ``BEF``, ``AFT``,
``CAL``, ``EST``) survives as an upper-case prefix and ``BET x AND y``
ranges pass through upper-cased. Anything else normalizes to None:
no day or month is ever invented.
"""
from __future__ import annotations

import datetime
import re

from kinvault.utils.normalize import DATE_QUALIFIERS, MONTH_ABBREVIATIONS, MONTH_NUMBERS

_RANGE = re.compile(r"^BET\s+.+\s+AND\s+.+$", re.IGNORECASE)
_QUALIFIED = re.compile(rf"^({'|'.join(DATE_QUALIFIERS)})\s+(.+)$", re.IGNORECASE)
_FULL = re.compile(r"^(\d{1,2})\s+([A-Z]{3})\s+(\d{4})$", re.IGNORECASE)
_MONTH_YEAR = re.compile(r"^([A-Z]{3})\s+(\d{4})$", re.IGNORECASE)
_YEAR = re.compile(r"^(\d{4})$")

_ISO_FULL = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_ISO_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def _month(abbr: str) -> int | None:
    return MONTH_ABBREVIATIONS.get(abbr.upper())


def _normalize_part(text: str) -> str | None:
    m = _FULL.match(text)
    if m:
        month = _month(m.group(2))
        if month is None:
            return None
        try:
            day = datetime.date(int(m.group(3)), month, int(m.group(1)))
        except ValueError:
            return None
        return day.isoformat()

    m = _MONTH_YEAR.match(text)
    if m:
        month = _month(m.group(1))
        if month is None:
            return None
        return f"{m.group(2)}-{month:02d}"

    m = _YEAR.match(text)
    if m:
        return m.group(1)
    return None


def normalize_gedcom_date(value: str | None) -> str | None:
    """Normalize a GEDCOM date, or return None if it cannot be read.

    >>> normalize_gedcom_date("ABT 1950")
    'ABT 1950'
    >>> normalize_gedcom_date("MAR 1950")
    '1950-03'
    >>> normalize_gedcom_date("bet 1882 and 1885")
    'BET 1882 AND 1885'
    """
    if not value:
        return None
    text = value.strip()
    if _RANGE.match(text):
        return text.upper()

    m = _QUALIFIED.match(text)
    qualifier = m.group(1).upper() if m else None
    part = m.group(2).strip() if m else text

    normalized = _normalize_part(part)
    if normalized is None:
        return None
    return f"{qualifier} {normalized}" if qualifier else normalized


def _denormalize_part(text: str) -> str:
    m = _ISO_FULL.match(text)
    if m and int(m.group(2)) in MONTH_NUMBERS:
        return f"{int(m.group(3))} {MONTH_NUMBERS[int(m.group(2))]} {m.group(1)}"
    m = _ISO_MONTH.match(text)
    if m and int(m.group(2)) in MONTH_NUMBERS:
        return f"{MONTH_NUMBERS[int(m.group(2))]} {m.group(1)}"
    return text


def to_gedcom_date(value: str | None) -> str | None:
    """Inverse of :func:`normalize_gedcom_date`, used on export.

    Text that is not in normalized form is passed through unchanged.
    """
    if not value:
        return None
    text = value.strip()
    if _RANGE.match(text):
        return text.upper()
    m = _QUALIFIED.match(text)
    if m:
        return f"{m.group(1).upper()} {_denormalize_part(m.group(2).strip())}"
    return _denormalize_part(text)
