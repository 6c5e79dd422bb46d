"""Person identifiers.

Format is ``abc-123-def-456``: three lowercase letters and three digits,
repeated. An id is assigned once when a record is created and never
changes; it is the only cross-reference key between records.
"""

from __future__ import annotations

import re
import secrets
import string

PERSON_ID_PATTERN = re.compile(r"^[a-z]{3}-\d{3}-[a-z]{3}-\d{3}$")


def _letters(n: int) -> str:
    return "".join(secrets.choice(string.ascii_lowercase) for _ in range(n))


def _digits(n: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(n))


def generate_person_id() -> str:
    return f"{_letters(3)}-{_digits(3)}-{_letters(3)}-{_digits(3)}"


def validate_person_id(value: object) -> bool:
    return isinstance(value, str) and PERSON_ID_PATTERN.match(value) is not None
