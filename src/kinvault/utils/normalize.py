"""Normalization helpers for names and dates used in matching.

The duplicate matcher compares lowercase, punctuation-free names and
four-digit years; finer date handling lives in kinvault.gedcom.dates.
"""

from __future__ import annotations

import re

# GEDCOM month abbreviations
MONTH_ABBREVIATIONS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4,
    "MAY": 5, "JUN": 6, "JUL": 7, "AUG": 8,
    "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}
MONTH_NUMBERS = {v: k for k, v in MONTH_ABBREVIATIONS.items()}

DATE_QUALIFIERS = ("ABT", "BEF", "AFT", "CAL", "EST")

_NAME_PUNCT = re.compile(r"[,.'\"\-]")
_WHITESPACE = re.compile(r"\s+")
_YEAR = re.compile(r"\b(\d{4})\b")


def normalize_name(name: str | None) -> str:
    """Lowercase, turn ``, . ' " -`` into spaces, collapse whitespace."""
    if not name:
        return ""
    text = _NAME_PUNCT.sub(" ", name.lower())
    return _WHITESPACE.sub(" ", text).strip()


def extract_year(value: str | None) -> int | None:
    """First standalone four-digit year in a date string.

    >>> extract_year("ABT 1850")
    1850
    >>> extract_year("1950-03-15")
    1950
    """
    if not value:
        return None
    m = _YEAR.search(value)
    return int(m.group(1)) if m else None
