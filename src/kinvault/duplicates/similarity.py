"""Name and date similarity scores on a 0-100 scale."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from kinvault.utils.normalize import extract_year, normalize_name


def rearranged_similarity(a: str, b: str) -> float:
    """Share of equal tokens after sorting both token lists.

    Catches ``Smith John`` vs ``John Smith``. Names with a different
    number of tokens score 0.
    """
    ta = sorted(a.split())
    tb = sorted(b.split())
    if not ta or len(ta) != len(tb):
        return 0.0
    same = sum(1 for x, y in zip(ta, tb) if x == y)
    return same / len(ta) * 100


def name_similarity(a: str | None, b: str | None) -> float:
    """Levenshtein similarity of normalized names, or the rearranged score if higher.

    >>> name_similarity("John Smith", "John Smith")
    100.0
    >>> name_similarity("", "Anything")
    0.0
    """
    na = normalize_name(a)
    nb = normalize_name(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 100.0

    distance = Levenshtein.distance(na, nb)
    edit_score = (1 - distance / max(len(na), len(nb))) * 100
    return max(edit_score, rearranged_similarity(na, nb))


def _year_score(a: str | None, b: str | None, max_year_difference: int) -> float | None:
    ya, yb = extract_year(a), extract_year(b)
    if ya is None or yb is None:
        return None
    diff = abs(ya - yb)
    if diff > max_year_difference:
        return 0.0
    return 100 - diff / max_year_difference * 100


def date_proximity(
    birth_a: str | None,
    birth_b: str | None,
    death_a: str | None,
    death_b: str | None,
    max_year_difference: int,
) -> float:
    """Average closeness of birth and death years.

    Each pair counts only when both sides carry a four-digit year. A pair
    further apart than ``max_year_difference`` still counts, scoring 0.
    With nothing comparable the result is a neutral 50.
    """
    scores = [
        s
        for s in (
            _year_score(birth_a, birth_b, max_year_difference),
            _year_score(death_a, death_b, max_year_difference),
        )
        if s is not None
    ]
    if not scores:
        return 50.0
    return sum(scores) / len(scores)
