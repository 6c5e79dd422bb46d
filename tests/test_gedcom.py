"""Tests for GEDCOM lexing, parsing, date normalization and validation."""

import pytest

from kinvault.errors import GedcomParseError
from kinvault.gedcom.dates import normalize_gedcom_date, to_gedcom_date
from kinvault.gedcom.lexer import iter_lines, tokenize
from kinvault.gedcom.parser import GedcomParser
from kinvault.gedcom.validator import GedcomValidator, Severity

SAMPLE = "0 HEAD\n1 SOUR Test\n0 @I1@ INDI\n1 NAME John /Doe/\n1 SEX M\n1 BIRT\n2 DATE 15 MAR 1950\n0 TRLR"


# =============================================================================
# Lexer
# =============================================================================


class TestLexer:
    def test_levels_tags_and_xrefs(self):
        lines = tokenize(SAMPLE)
        assert lines[0].level == 0 and lines[0].tag == "HEAD"
        assert lines[2].xref == "I1" and lines[2].tag == "INDI"
        assert lines[3].value == "John /Doe/"
        assert lines[6].line_number == 7

    def test_crlf_bom_and_blank_lines(self):
        lines = tokenize("\ufeff0 HEAD\r\n\r\n1 SOUR X\r\n0 TRLR\r\n")
        assert [line.tag for line in lines] == ["HEAD", "SOUR", "TRLR"]
        assert lines[2].line_number == 4

    def test_bad_line_reports_number(self):
        with pytest.raises(GedcomParseError) as exc:
            list(iter_lines("0 HEAD\n1 SOUR X\nnot a gedcom line\n", path="bad.ged"))
        assert exc.value.line_number == 3
        assert exc.value.path == "bad.ged"
        assert "Invalid GEDCOM line format" in str(exc.value)


# =============================================================================
# Dates
# =============================================================================


class TestDates:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("15 MAR 1950", "1950-03-15"),
            ("3 jun 1910", "1910-06-03"),
            ("29 FEB 1952", "1952-02-29"),
            ("MAR 1950", "1950-03"),
            ("1950", "1950"),
            ("ABT 1950", "ABT 1950"),
            ("bef 12 DEC 1899", "BEF 1899-12-12"),
            ("EST MAR 1950", "EST 1950-03"),
            ("BET 1882 AND 1885", "BET 1882 AND 1885"),
            ("bet 1882 and 1885", "BET 1882 AND 1885"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_gedcom_date(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [None, "", "spring", "15 XYZ 1950", "ABT sometime", "1950s", "45 MAR 1950", "31 FEB 1950", "0 MAR 1950"],
    )
    def test_unparseable_is_none(self, raw):
        assert normalize_gedcom_date(raw) is None

    @pytest.mark.parametrize(
        "normalized,expected",
        [
            ("1950-03-15", "15 MAR 1950"),
            ("1950-03", "MAR 1950"),
            ("1950", "1950"),
            ("ABT 1950-03", "ABT MAR 1950"),
            ("BET 1882 AND 1885", "BET 1882 AND 1885"),
            ("circa 1900", "circa 1900"),
        ],
    )
    def test_to_gedcom(self, normalized, expected):
        assert to_gedcom_date(normalized) == expected


# =============================================================================
# Parser
# =============================================================================


class TestParser:
    def test_sample_individual(self):
        data = GedcomParser().parse(SAMPLE)
        assert list(data.individuals) == ["I1"]
        john = data.individuals["I1"]
        assert john.name == "John Doe"
        assert john.given_name == "John"
        assert john.surname == "Doe"
        assert john.sex == "M"
        assert john.birth_date == "15 MAR 1950"
        assert john.normalized_birth_date == "1950-03-15"
        assert data.header.source == "Test"

    def test_events_and_families(self, family_gedcom):
        data = GedcomParser().parse(family_gedcom)
        john = data.individuals["I1"]
        assert john.birth_place == "Boston, Massachusetts"
        assert john.death_date == "3 JUN 1910"
        assert john.death_place == "Salem, Massachusetts"
        assert john.occupation == "Cooper"
        assert john.families_as_spouse == ["F1"]

        fam = data.families["F1"]
        assert fam.husband_ref == "I1"
        assert fam.wife_ref == "I2"
        assert fam.children_refs == ["I3"]
        assert fam.marriage_date == "1872"
        assert fam.marriage_place == "Boston"

    def test_family_linking(self, family_gedcom):
        data = GedcomParser().parse(family_gedcom)
        william = data.individuals["I3"]
        assert william.father_ref == "I1"
        assert william.mother_ref == "I2"
        assert william.family_as_child == "F1"
        assert data.individuals["I1"].spouse_refs == ["I2"]
        assert data.individuals["I2"].spouse_refs == ["I1"]

    def test_header_version_only_under_gedc(self):
        text = "0 HEAD\n1 SOUR App\n2 VERS 9.1\n1 GEDC\n2 VERS 5.5.1\n0 TRLR\n"
        assert GedcomParser().parse(text).header.version == "5.5.1"

    def test_name_without_surname_slashes(self):
        data = GedcomParser().parse("0 HEAD\n0 @I9@ INDI\n1 NAME Madonna\n1 SEX X\n0 TRLR\n")
        indi = data.individuals["I9"]
        assert indi.name == "Madonna"
        assert indi.surname is None
        assert indi.sex == "U"

    def test_given_and_surname_tags(self):
        text = "0 HEAD\n0 @I1@ INDI\n1 NAME John/Doe/\n2 GIVN Jonathan\n2 SURN Doe\n0 TRLR\n"
        indi = GedcomParser().parse(text).individuals["I1"]
        assert indi.name == "John Doe"
        assert indi.given_name == "Jonathan"

    def test_parse_error_propagates(self):
        with pytest.raises(GedcomParseError):
            GedcomParser().parse("0 HEAD\n@@ broken\n")

    def test_parse_file_with_bom(self, tmp_path):
        path = tmp_path / "tree.ged"
        path.write_text("\ufeff" + SAMPLE, encoding="utf-8")
        data = GedcomParser().parse_file(path)
        assert data.individuals["I1"].name == "John Doe"


# =============================================================================
# Validator
# =============================================================================


class TestValidator:
    def test_valid_file(self, family_gedcom):
        report = GedcomValidator().validate(family_gedcom)
        assert report.valid
        assert report.warnings == []
        assert report.stats.individuals == 3
        assert report.stats.families == 1
        assert report.stats.version == "5.5.1"

    def test_empty(self):
        report = GedcomValidator().validate("   \n")
        assert not report.valid
        assert report.errors[0].message == "GEDCOM file is empty"

    def test_parse_error_carries_line(self):
        report = GedcomValidator().validate("0 HEAD\ngarbage here\n0 TRLR\n")
        assert not report.valid
        assert report.errors[0].line == 2
        assert report.errors[0].message.startswith("Parse error:")

    def test_missing_header_is_error(self):
        report = GedcomValidator().validate("0 @I1@ INDI\n1 NAME A /B/\n0 TRLR\n")
        assert not report.valid
        assert "Missing required GEDCOM header (0 HEAD)" in [i.message for i in report.errors]

    def test_missing_trailer_is_warning(self):
        report = GedcomValidator().validate("0 HEAD\n0 @I1@ INDI\n1 NAME A /B/\n")
        assert report.valid
        assert [i.message for i in report.warnings] == ["Missing GEDCOM trailer (0 TRLR)"]

    def test_unsupported_version_warns_with_line(self):
        text = "0 HEAD\n1 GEDC\n2 VERS 7.0\n0 @I1@ INDI\n0 TRLR\n"
        report = GedcomValidator().validate(text)
        assert report.valid
        warning = report.warnings[0]
        assert warning.severity is Severity.WARNING
        assert "7.0" in warning.message
        assert warning.line == 3

    def test_source_version_ignored(self):
        text = "0 HEAD\n1 SOUR App\n2 VERS 12.0\n0 @I1@ INDI\n0 TRLR\n"
        report = GedcomValidator().validate(text)
        assert report.warnings == []
        assert report.stats.version is None

    def test_no_individuals_warns(self):
        report = GedcomValidator().validate("0 HEAD\n0 TRLR\n")
        assert report.valid
        assert "No individual records found in GEDCOM file" in [i.message for i in report.warnings]

    def test_issue_str(self):
        report = GedcomValidator().validate("0 HEAD\nbad\n")
        assert str(report.errors[0]).endswith("(line 2)")
