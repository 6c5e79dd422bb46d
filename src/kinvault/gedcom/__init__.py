"""GEDCOM 5.5 parsing, validation, import and export."""

from kinvault.gedcom.dates import normalize_gedcom_date, to_gedcom_date
from kinvault.gedcom.exporter import GedcomExporter
from kinvault.gedcom.importer import GedcomImporter, ImportResult
from kinvault.gedcom.models import GedcomData, GedcomFamily, GedcomHeader, GedcomIndividual
from kinvault.gedcom.parser import GedcomParser
from kinvault.gedcom.validator import GedcomValidator, Severity, ValidationIssue, ValidationReport

__all__ = [
    "GedcomData",
    "GedcomExporter",
    "GedcomFamily",
    "GedcomHeader",
    "GedcomImporter",
    "GedcomIndividual",
    "GedcomParser",
    "GedcomValidator",
    "ImportResult",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
    "normalize_gedcom_date",
    "to_gedcom_date",
]
