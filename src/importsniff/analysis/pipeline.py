"""Per-file import analysis, the worker pool and report aggregation."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable, Sequence

from importsniff.analysis.context import AnalysisContext
from importsniff.analysis.extractor import extract_imports
from importsniff.analysis.resolver import (
    load_installed_packages,
    load_path_aliases,
    resolve_specifier,
)
from importsniff.analysis.suggestions import DirectoryIndex, suggest_files
from importsniff.analysis.tokenizer import Dialect, tokenize
from importsniff.analysis.usage import TokenView, detect_usage
from importsniff.config import ImportsSettings
from importsniff.log import get_logger
from importsniff.models.imports import ImportRecord
from importsniff.models.resolution import ResolutionResult, ResolutionStatus
from importsniff.models.results import (
    AnalyzedImport,
    FileReport,
    ProjectReport,
    ReportSummary,
    Severity,
)

logger = get_logger(__name__)

ProgressCallback = Callable[[Path], None]


class BinaryFileError(ValueError):
    """Raised for files that look binary despite a source extension."""


def read_source(path: Path) -> str:
    """Read a source file as UTF-8 text.

    Raises:
        OSError: The file is missing or unreadable.
        BinaryFileError: The file contains NUL bytes.
        UnicodeDecodeError: The file is not valid UTF-8.
    """
    data = path.read_bytes()
    if b"\x00" in data:
        raise BinaryFileError("file appears to be binary")
    return data.decode("utf-8")


def build_context(
    project_root: Path,
    files: Iterable[Path],
    settings: ImportsSettings | None = None,
) -> AnalysisContext:
    """Load the shared snapshot for one run: manifest, aliases and listings."""
    settings = settings or ImportsSettings()
    return AnalysisContext(
        project_root=project_root,
        installed_packages=load_installed_packages(
            project_root, include_dev=settings.check_dev_dependencies
        ),
        excluded_patterns=settings.excluded_patterns,
        extensions=settings.extensions,
        aliases=load_path_aliases(project_root),
        directory_index=DirectoryIndex.build(files),
    )


def resolve_import(record: ImportRecord, context: AnalysisContext) -> ResolutionResult:
    """Resolve a record's specifier, adding suggestions when the file is missing."""
    resolution = resolve_specifier(record.specifier, record.file, context)
    if resolution.status is ResolutionStatus.FILE_NOT_FOUND and record.specifier:
        suggestions = suggest_files(record.specifier, record.file, context.directory_index)
        if suggestions:
            resolution = replace(resolution, suggestions=suggestions)
    return resolution


def analyze_source(source: str, path: Path, context: AnalysisContext) -> FileReport:
    """Analyze the imports of already-read source text."""
    dialect = Dialect.from_path(path)
    tokens = tokenize(source, jsx=dialect.supports_jsx)
    extraction = extract_imports(source, path, tokens)
    view = TokenView(tokens, extraction.declaration_spans, dialect)

    imports = []
    for record in extraction.records:
        usage = detect_usage(record, view)
        resolution = resolve_import(record, context)
        ignored = (
            resolution.status is ResolutionStatus.IGNORED
            or context.is_excluded(record.specifier)
            or context.is_excluded(resolution.package)
        )
        imports.append(AnalyzedImport(record, usage, resolution, ignored=ignored))
    return FileReport(file=path, imports=tuple(imports))


def analyze_file(path: Path, context: AnalysisContext) -> FileReport:
    """Analyze one file. Failures become a per-file error note, never an exception."""
    try:
        source = read_source(path)
    except (OSError, UnicodeDecodeError, BinaryFileError) as e:
        logger.warning("Skipping %s: %s", path, e)
        return FileReport(file=path, error=f"Unreadable file: {e}")

    try:
        return analyze_source(source, path, context)
    except Exception as e:  # noqa: BLE001
        logger.warning("Could not analyze %s: %s", path, e)
        logger.debug("Analysis failure details", exc_info=True)
        return FileReport(file=path, error=f"Error: {e}")


def analyze_files(
    files: Sequence[Path],
    context: AnalysisContext,
    parallel_threshold: int = 50,
    max_workers: int | None = None,
    on_file_done: ProgressCallback | None = None,
) -> list[FileReport]:
    """Analyze files sequentially or on a thread pool, keeping input order."""
    if len(files) <= parallel_threshold:
        logger.debug("Analyzing %d files sequentially", len(files))
        reports = []
        for path in files:
            reports.append(analyze_file(path, context))
            if on_file_done:
                on_file_done(path)
        return reports

    logger.debug("Analyzing %d files with a worker pool (max_workers=%s)", len(files), max_workers)
    results: list[FileReport | None] = [None] * len(files)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(analyze_file, path, context): index
            for index, path in enumerate(files)
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            results[index] = future.result()
            if on_file_done:
                on_file_done(files[index])
    return [r for r in results if r is not None]


# Aggregation


def classify_severity(
    unused_imports: int,
    broken_imports: int,
    settings: ImportsSettings,
) -> Severity:
    """Map finding counts to a severity using the configured thresholds."""
    if broken_imports > settings.broken_threshold:
        return Severity.ERROR
    if unused_imports > settings.unused_threshold:
        return Severity.WARNING
    return Severity.NONE


def summarize(
    file_reports: Sequence[FileReport],
    settings: ImportsSettings | None = None,
) -> ReportSummary:
    """Count findings over all file reports.

    One removable line is estimated per fully unused import; dropping single
    names from a partially used import saves nothing.
    """
    settings = settings or ImportsSettings()
    total = unused = unused_bindings = broken = removable = errors = 0

    for report in file_reports:
        if report.error:
            errors += 1
        for imp in report.imports:
            total += 1
            unused_bindings += len(imp.unused_bindings)
            if imp.is_fully_unused:
                unused += 1
                removable += 1
            elif imp.unused_bindings:
                unused += 1
            if imp.is_broken:
                broken += 1

    return ReportSummary(
        files_scanned=len(file_reports),
        files_with_errors=errors,
        total_imports=total,
        unused_imports=unused,
        unused_bindings=unused_bindings,
        broken_imports=broken,
        estimated_lines_removable=removable,
        severity=classify_severity(unused, broken, settings),
    )


def build_report(
    project_root: Path,
    file_reports: Sequence[FileReport],
    settings: ImportsSettings | None = None,
) -> ProjectReport:
    """Merge per-file reports into the project report."""
    return ProjectReport(
        root=project_root,
        files=tuple(file_reports),
        summary=summarize(file_reports, settings),
    )


def analyze_project(
    project_root: Path,
    files: Sequence[Path],
    settings: ImportsSettings | None = None,
    on_file_done: ProgressCallback | None = None,
) -> ProjectReport:
    """Analyze the imports of ``files`` and build the project report.

    Args:
        project_root: Root holding ``package.json`` and ``tsconfig.json``.
        files: Candidate source files, already filtered, in report order.
        settings: ``[imports]`` options; defaults apply when omitted.
        on_file_done: Called with each path once its analysis finishes.

    Returns:
        A report whose file entries follow the order of ``files``.
    """
    settings = settings or ImportsSettings()
    project_root = project_root.resolve()
    files = [f if f.is_absolute() else f.resolve() for f in files]

    context = build_context(project_root, files, settings)
    file_reports = analyze_files(
        files,
        context,
        parallel_threshold=settings.parallel_threshold,
        max_workers=settings.max_workers,
        on_file_done=on_file_done,
    )
    return build_report(project_root, file_reports, settings)
