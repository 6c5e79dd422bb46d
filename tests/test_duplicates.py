"""Tests for name similarity, date proximity and duplicate ranking."""

import pytest

from kinvault.config import DuplicateDetectionConfig
from kinvault.duplicates.matcher import DuplicateMatcher, relationship_overlap, round_half_up
from kinvault.duplicates.similarity import date_proximity, name_similarity, rearranged_similarity
from kinvault.models.person import PersonRecord, Sex
from kinvault.utils.normalize import extract_year, normalize_name


# =============================================================================
# Similarity functions
# =============================================================================


class TestNameSimilarity:
    def test_identical(self):
        assert name_similarity("John Smith", "John Smith") == 100

    def test_rearranged_with_comma(self):
        """'Smith, John' normalizes to 'smith john' and matches token-wise."""
        assert name_similarity("Smith, John", "John Smith") >= 90

    def test_empty(self):
        assert name_similarity("", "Anything") == 0
        assert name_similarity(None, "Anything") == 0

    def test_punctuation_and_case_ignored(self):
        assert name_similarity("Mary-Jane O'Neil", "mary jane o neil") == 100

    def test_single_edit(self):
        # "jon smith" vs "john smith": one insertion over ten characters
        assert name_similarity("Jon Smith", "John Smith") == pytest.approx(90.0)

    def test_unrelated_names_low(self):
        assert name_similarity("John Smith", "Alice Wong") < 50

    def test_rearranged_needs_same_token_count(self):
        assert rearranged_similarity("john smith", "john paul smith") == 0
        assert rearranged_similarity("john smith", "smith john") == 100
        assert rearranged_similarity("john smith", "john smyth") == 50

    def test_normalize_name(self):
        assert normalize_name('  Smith,  "John"  ') == "smith john"
        assert normalize_name(None) == ""


class TestDateProximity:
    def test_same_years(self):
        assert date_proximity("1850", "ABT 1850", "1900-01-01", "1900", 5) == 100

    def test_linear_decay(self):
        assert date_proximity("1850", "1852", None, None, 5) == pytest.approx(60.0)

    def test_beyond_threshold_counts_as_zero(self):
        # birth 10 years apart scores 0, death identical scores 100
        assert date_proximity("1850", "1860", "1900", "1900", 5) == pytest.approx(50.0)

    def test_no_comparable_dates_is_neutral(self):
        assert date_proximity(None, "1850", "unknown", None, 5) == 50

    def test_extract_year(self):
        assert extract_year("BET 1882 AND 1885") == 1882
        assert extract_year("15 MAR 1950") == 1950
        assert extract_year("spring") is None


# =============================================================================
# Matcher
# =============================================================================


def person(pid: str, name: str, **kw) -> PersonRecord:
    return PersonRecord(id=pid, name=name, **kw)


class TestScorePair:
    def test_exact_match_confidence(self):
        matcher = DuplicateMatcher(graph=None)
        a = person("a", "John Smith", birth_date="1850", sex=Sex.MALE)
        b = person("b", "John Smith", birth_date="1850", sex=Sex.MALE)
        match = matcher.score_pair(a, b)
        # 0.6 * 100 + 0.3 * 100 + 5
        assert match.confidence == 95
        assert match.reasons == [
            "Names are nearly identical",
            "Birth/death dates match closely",
            "Same sex",
        ]

    def test_confidence_capped_at_100(self):
        matcher = DuplicateMatcher(graph=None)
        shared = dict(
            birth_date="1850", sex=Sex.FEMALE, father_id="f", mother_id="m",
            spouse_ids=["s"], children_ids=["c1", "c2"],
        )
        match = matcher.score_pair(person("a", "Ann Lee", **shared), person("b", "Ann Lee", **shared))
        assert match.relationship_overlap == 5
        assert match.confidence == 100
        assert "5 shared relationship(s)" in match.reasons

    def test_low_name_similarity_short_circuits(self):
        matcher = DuplicateMatcher(graph=None)
        assert matcher.score_pair(person("a", "John Smith"), person("b", "Alice Wong")) is None

    def test_unknown_sex_gets_no_bonus(self):
        matcher = DuplicateMatcher(graph=None)
        match = matcher.score_pair(person("a", "John Smith"), person("b", "John Smith"))
        # 60 + 0.3 * 50 neutral dates
        assert match.confidence == 75
        assert "Same sex" not in match.reasons

    def test_round_half_up(self):
        assert round_half_up(72.5) == 73
        assert round_half_up(72.49) == 72

    def test_relationship_overlap(self):
        a = person("a", "A", father_id="f", spouse_ids=["s1", "s2"])
        b = person("b", "B", father_id="f", spouse_ids=["s2"], mother_id="m")
        assert relationship_overlap(a, b) == 2


class TestFindDuplicates:
    def test_ranking(self, graph, builder):
        builder.person("John Smith", "joh-111-smi-111", born="1850", sex="male")
        builder.person("John Smith", "joh-222-smi-222", stem="John Smith 2", born="1852", sex="male")
        builder.person("Jon Smyth", "jon-333-smy-333", born="1880")
        builder.person("Alice Wong", "ali-444-won-444", born="1850")

        matches = DuplicateMatcher(graph).find_duplicates()
        assert matches
        top = matches[0]
        assert {top.person_a.id, top.person_b.id} == {"joh-111-smi-111", "joh-222-smi-222"}
        assert top.confidence >= 60
        assert all(m.confidence >= 60 for m in matches)
        assert [m.confidence for m in matches] == sorted((m.confidence for m in matches), reverse=True)
        ids = {frozenset((m.person_a.id, m.person_b.id)) for m in matches}
        assert frozenset(("joh-111-smi-111", "ali-444-won-444")) not in ids

    def test_same_collection_only(self, graph, builder):
        builder.person("Ann Lee", "ann-111-lee-111", collection="Paternal")
        builder.person("Ann Lee", "ann-222-lee-222", stem="Ann Lee 2", collection="Maternal")
        opts = DuplicateDetectionConfig(same_collection_only=True)
        assert DuplicateMatcher(graph).find_duplicates(opts) == []
        assert len(DuplicateMatcher(graph).find_duplicates(DuplicateDetectionConfig(same_collection_only=False))) == 1

    def test_min_confidence_filter(self, graph, builder):
        builder.person("Ann Lee", "ann-111-lee-111")
        builder.person("Ann Lee", "ann-222-lee-222", stem="Ann Lee 2")
        # 60 + 15 = 75 without dates or sex
        assert DuplicateMatcher(graph, DuplicateDetectionConfig(min_confidence=76)).find_duplicates() == []
        assert len(DuplicateMatcher(graph, DuplicateDetectionConfig(min_confidence=75)).find_duplicates()) == 1

    def test_summary(self, graph, builder):
        builder.person("Ann Lee", "ann-111-lee-111", born="1800", sex="female")
        builder.person("Ann Lee", "ann-222-lee-222", stem="Ann Lee 2", born="1800", sex="female")
        builder.person("Bob Ray", "bob-111-ray-111")
        builder.person("Bob Ray", "bob-222-ray-222", stem="Bob Ray 2")
        matcher = DuplicateMatcher(graph, DuplicateDetectionConfig(min_confidence=0))
        summary = matcher.summarize(matcher.find_duplicates())
        assert summary.total == 2
        assert summary.high == 1
        assert summary.medium == 1
        assert summary.low == 0
