"""Output modules for CLI display and file writing."""

from importsniff.output.json_writer import build_envelope, write_report
from importsniff.output.tree import build_report_tree, build_summary_table, display_tree

__all__ = [
    "build_envelope",
    "build_report_tree",
    "build_summary_table",
    "display_tree",
    "write_report",
]
