"""Pre-import GEDCOM checks.

Runs over the lexed lines only, without building the model, so it is
cheap enough to run before every import.
"""
from __future__ import annotations

from enum import Enum

import structlog
from pydantic import BaseModel, Field

from kinvault.errors import GedcomParseError
from kinvault.gedcom.lexer import tokenize

logger = structlog.get_logger(__name__)

SUPPORTED_VERSION_PREFIX = "5.5"


class Severity(str, Enum):
    WARNING = "warning"  # advisory, import may proceed
    ERROR = "error"  # blocks import


class ValidationIssue(BaseModel):
    severity: Severity
    message: str
    line: int | None = None

    def __str__(self) -> str:
        where = f" (line {self.line})" if self.line else ""
        return f"{self.severity.value}: {self.message}{where}"


class ValidationStats(BaseModel):
    individuals: int = 0
    families: int = 0
    version: str | None = None


class ValidationReport(BaseModel):
    issues: list[ValidationIssue] = Field(default_factory=list)
    stats: ValidationStats = Field(default_factory=ValidationStats)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def valid(self) -> bool:
        return not self.errors

    def error(self, message: str, line: int | None = None) -> None:
        self.issues.append(ValidationIssue(severity=Severity.ERROR, message=message, line=line))

    def warn(self, message: str, line: int | None = None) -> None:
        self.issues.append(ValidationIssue(severity=Severity.WARNING, message=message, line=line))


class GedcomValidator:
    def validate(self, text: str) -> ValidationReport:
        report = ValidationReport()
        if not text or not text.strip():
            report.error("GEDCOM file is empty")
            return report

        try:
            lines = tokenize(text)
        except GedcomParseError as e:
            report.error(f"Parse error: {e.message}", line=e.line_number)
            logger.info("gedcom.validated", valid=False, reason="parse_error", line=e.line_number)
            return report

        top = [line for line in lines if line.level == 0]
        if not any(line.tag == "HEAD" for line in top):
            report.error("Missing required GEDCOM header (0 HEAD)")
        if not any(line.tag == "TRLR" for line in top):
            report.warn("Missing GEDCOM trailer (0 TRLR)")

        in_header = False
        level1 = ""
        for line in lines:
            if line.level == 0:
                in_header = line.tag == "HEAD"
                if line.xref and line.tag == "INDI":
                    report.stats.individuals += 1
                elif line.xref and line.tag == "FAM":
                    report.stats.families += 1
                continue
            if line.level == 1:
                level1 = line.tag
            if in_header and line.tag == "VERS" and level1 == "GEDC":
                report.stats.version = line.value
                if line.value and not line.value.startswith(SUPPORTED_VERSION_PREFIX):
                    report.warn(
                        f"GEDCOM version {line.value} may not be fully supported. "
                        "Recommended: 5.5 or 5.5.1",
                        line=line.line_number,
                    )

        if report.stats.individuals == 0:
            report.warn("No individual records found in GEDCOM file")

        logger.info(
            "gedcom.validated",
            valid=report.valid,
            errors=len(report.errors),
            warnings=len(report.warnings),
            individuals=report.stats.individuals,
            families=report.stats.families,
        )
        return report
