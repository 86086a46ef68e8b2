"""JSON output for import reports."""

import json
from datetime import datetime
from pathlib import Path

from importsniff import __version__
from importsniff.models.results import ProjectReport

COMMAND_NAME = "imports"


def build_envelope(report: ProjectReport, generated_at: datetime | None = None) -> dict:
    """Wrap a report in the machine-readable envelope."""
    generated_at = generated_at or datetime.now()
    return {
        "command": COMMAND_NAME,
        "timestamp": generated_at.isoformat(),
        "version": __version__,
        "data": report.to_dict(),
        "summary": report.summary.to_dict(),
    }


def dumps_report(report: ProjectReport, generated_at: datetime | None = None) -> str:
    """Serialize a report envelope to a JSON string."""
    return json.dumps(build_envelope(report, generated_at), indent=2)


def write_report(
    report: ProjectReport,
    output_path: Path,
    generated_at: datetime | None = None,
) -> None:
    """Write the report envelope to a JSON file."""
    data = build_envelope(report, generated_at)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def load_report(report_path: Path) -> dict:
    """Load a report envelope written by ``write_report``."""
    with open(report_path, "r", encoding="utf-8") as f:
        return json.load(f)
