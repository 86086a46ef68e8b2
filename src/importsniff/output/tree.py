"""Rich rendering of import reports."""

from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from importsniff.models.results import Finding, ProjectReport, ReportSummary, Severity

console = Console()

_CLASSIFICATION_LABELS = {
    "fully_unused": "unused",
    "partially_unused": "partially unused",
    "file_not_found": "file not found",
    "module_not_installed": "module not installed",
}


def _relative(path: Path, root: Path) -> Path:
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def _finding_text(finding: Finding) -> Text:
    label = _CLASSIFICATION_LABELS.get(finding.classification, finding.classification)
    text = Text()
    if finding.type == "unused_import":
        text.append("- ", style="yellow bold")
        text.append(", ".join(finding.bindings), style="yellow")
    else:
        text.append("x ", style="red bold")
        text.append(finding.specifier or "<dynamic>", style="red")
    text.append(f" ({label}, line {finding.line})", style="dim")
    return text


def build_report_tree(report: ProjectReport) -> Tree:
    """Build a tree of findings grouped by file, files in report order."""
    by_file: dict[Path, list[Finding]] = defaultdict(list)
    for finding in report.findings():
        by_file[finding.file].append(finding)

    root = Tree(f"[bold]{report.root.name or report.root}[/]", guide_style="dim")

    for file_report in report.files:
        findings = by_file.get(file_report.file, [])
        rel_path = _relative(file_report.file, report.root)
        if file_report.error:
            node = root.add(f"[yellow]{rel_path}[/]")
            node.add(Text(f"! {file_report.error}", style="magenta"))
            continue
        if not findings:
            continue

        file_node = root.add(f"[yellow]{rel_path}[/]")
        for finding in findings:
            item = file_node.add(_finding_text(finding))
            if finding.hint:
                item.add(Text(finding.hint, style="cyan"))
            for suggestion in finding.suggestions:
                item.add(
                    Text.assemble(
                        ("did you mean ", "dim"),
                        (suggestion.candidate, "green"),
                        (f" ({suggestion.score:.0%})", "dim"),
                    )
                )

    return root


def _severity_style(severity: Severity) -> str:
    if severity is Severity.ERROR:
        return "red"
    if severity is Severity.WARNING:
        return "yellow"
    return "green"


def build_summary_table(summary: ReportSummary) -> Table:
    """Build the summary table shown after a scan."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Files scanned", str(summary.files_scanned))
    if summary.files_with_errors:
        table.add_row("Files skipped", f"[magenta]{summary.files_with_errors}[/]")
    table.add_row("Total imports", str(summary.total_imports))
    table.add_row("Unused imports", str(summary.unused_imports))
    table.add_row("  unused names", str(summary.unused_bindings))
    table.add_row("Broken imports", str(summary.broken_imports))
    table.add_row("", "")
    table.add_row("Potential savings", summary.potential_savings)
    style = _severity_style(summary.severity)
    table.add_row("Severity", f"[{style}]{summary.severity.value}[/]")
    return table


def display_tree(tree: Tree, target: Console | None = None) -> None:
    """Display the tree to console."""
    out = target or console
    out.print()
    out.print(tree)
    out.print()
