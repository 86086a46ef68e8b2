"""Data models for importsniff."""

from importsniff.models.imports import (
    Binding,
    ExtractionResult,
    ImportKind,
    ImportRecord,
    UsagePass,
    UsageResult,
)
from importsniff.models.resolution import (
    ResolutionResult,
    ResolutionStatus,
    Suggestion,
)
from importsniff.models.results import (
    AnalyzedImport,
    FileReport,
    Finding,
    ProjectReport,
    ReportSummary,
    Severity,
)

__all__ = [
    # Import models
    "Binding",
    "ExtractionResult",
    "ImportKind",
    "ImportRecord",
    "UsagePass",
    "UsageResult",
    # Resolution models
    "ResolutionResult",
    "ResolutionStatus",
    "Suggestion",
    # Results models
    "AnalyzedImport",
    "FileReport",
    "Finding",
    "ProjectReport",
    "ReportSummary",
    "Severity",
]
