"""Read-only snapshot shared by all per-file analysis workers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from importsniff.analysis.resolver import (
    DEFAULT_EXTENSIONS,
    PathAliases,
    matches_any,
)
from importsniff.analysis.suggestions import DirectoryIndex


@dataclass(frozen=True)
class AnalysisContext:
    """Everything per-file analysis may read besides the file itself.

    Built once per run and passed explicitly to every worker; nothing in it
    changes after construction.
    """

    project_root: Path
    installed_packages: frozenset[str] = frozenset()
    excluded_patterns: tuple[str, ...] = ()
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    aliases: PathAliases | None = None
    directory_index: DirectoryIndex = field(default_factory=DirectoryIndex)

    def is_excluded(self, name: str | None) -> bool:
        """Whether a specifier or package name matches an excluded pattern."""
        if not name:
            return False
        return matches_any(name, self.excluded_patterns)