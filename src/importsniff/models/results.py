"""Data models for analysis results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from importsniff.models.imports import ImportRecord, UsageResult
from importsniff.models.resolution import ResolutionResult, Suggestion


class Severity(Enum):
    """Overall severity of a project report."""

    NONE = "none"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class AnalyzedImport:
    """An import record together with its usage and resolution results."""

    record: ImportRecord
    usage: tuple[UsageResult, ...]
    resolution: ResolutionResult
    ignored: bool = False  # specifier matched an excluded pattern

    @property
    def unused_bindings(self) -> tuple[str, ...]:
        if self.ignored:
            return ()
        return tuple(u.binding.local_name for u in self.usage if not u.is_used)

    @property
    def is_fully_unused(self) -> bool:
        return (
            not self.ignored
            and bool(self.usage)
            and all(not u.is_used for u in self.usage)
        )

    @property
    def is_broken(self) -> bool:
        return not self.ignored and self.resolution.is_broken

    def to_dict(self) -> dict:
        return {
            **self.record.to_dict(),
            "usage": [u.to_dict() for u in self.usage],
            "resolution": self.resolution.to_dict(),
            "ignored": self.ignored,
        }


@dataclass(frozen=True)
class FileReport:
    """All imports of one file, in source order."""

    file: Path
    imports: tuple[AnalyzedImport, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {
            "file": str(self.file),
            "imports": [imp.to_dict() for imp in self.imports],
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class Finding:
    """A single reportable defect (unused or broken import)."""

    type: str  # "unused_import" or "broken_import"
    file: Path
    line: int
    statement: str
    specifier: str | None
    classification: str
    bindings: tuple[str, ...] = ()
    suggestions: tuple[Suggestion, ...] = ()
    hint: str | None = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "file": str(self.file),
            "line": self.line,
            "statement": self.statement,
            "specifier": self.specifier,
            "classification": self.classification,
            "bindings": list(self.bindings),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "hint": self.hint,
        }


@dataclass(frozen=True)
class ReportSummary:
    """Aggregate counts over a project report."""

    files_scanned: int = 0
    files_with_errors: int = 0
    total_imports: int = 0
    unused_imports: int = 0
    unused_bindings: int = 0
    broken_imports: int = 0
    estimated_lines_removable: int = 0
    severity: Severity = Severity.NONE

    @property
    def potential_savings(self) -> str:
        if self.estimated_lines_removable == 0:
            return "0 lines"
        return f"~{self.estimated_lines_removable} lines of code"

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "files_with_errors": self.files_with_errors,
            "total_imports": self.total_imports,
            "unused_imports": self.unused_imports,
            "unused_bindings": self.unused_bindings,
            "broken_imports": self.broken_imports,
            "estimated_lines_removable": self.estimated_lines_removable,
            "potential_savings": self.potential_savings,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ProjectReport:
    """Complete import analysis of a project."""

    root: Path
    files: tuple[FileReport, ...] = ()
    summary: ReportSummary = field(default_factory=ReportSummary)

    @property
    def has_findings(self) -> bool:
        return self.summary.unused_imports > 0 or self.summary.broken_imports > 0

    def findings(self) -> list[Finding]:
        """Flatten the report into unused and broken findings, in file order."""
        findings: list[Finding] = []
        for file_report in self.files:
            for imp in file_report.imports:
                record = imp.record
                if imp.unused_bindings:
                    findings.append(
                        Finding(
                            type="unused_import",
                            file=record.file,
                            line=record.line,
                            statement=record.statement,
                            specifier=record.specifier,
                            classification="fully_unused" if imp.is_fully_unused else "partially_unused",
                            bindings=imp.unused_bindings,
                        )
                    )
                if imp.is_broken:
                    findings.append(
                        Finding(
                            type="broken_import",
                            file=record.file,
                            line=record.line,
                            statement=record.statement,
                            specifier=record.specifier,
                            classification=imp.resolution.status.name.lower(),
                            suggestions=imp.resolution.suggestions,
                            hint=imp.resolution.hint,
                        )
                    )
        return findings

    def to_dict(self, generated_at: datetime | None = None) -> dict:
        result: dict = {
            "root": str(self.root),
            "summary": self.summary.to_dict(),
            "findings": [f.to_dict() for f in self.findings()],
            "files": [fr.to_dict() for fr in self.files],
        }
        if generated_at:
            result["generated_at"] = generated_at.isoformat()
        return result
