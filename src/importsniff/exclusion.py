"""File discovery and exclusion for importsniff.

Handles .gitignore patterns, ``[scan] exclude`` patterns from the config file
and default patterns using the pathspec library for gitignore-style matching.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

from importsniff.log import get_logger

logger = get_logger(__name__)

# Source files the import analysis reads
SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".mts", ".cts")


@dataclass
class ExclusionConfig:
    """Configuration for file exclusion."""

    gitignore_patterns: list[str] = field(default_factory=list)
    config_patterns: list[str] = field(default_factory=list)
    default_patterns: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)  # For debugging/logging


# Build output, dependencies and bundles are never analyzed
DEFAULT_EXCLUDES = [
    "node_modules",
    ".next",
    "dist",
    "build",
    ".git",
    "target",
    "coverage",
    "*.min.js",
    "*.bundle.js",
]


class FileExcluder:
    """Handles file exclusion with gitignore-style pattern matching."""

    def __init__(
        self,
        project_root: Path,
        include_ignored: bool = False,
        extra_excludes: list[str] | None = None,
    ) -> None:
        """Initialize the file excluder.

        Args:
            project_root: Root directory of the project.
            include_ignored: If True, only the default excludes apply
                (.gitignore and configured patterns are bypassed).
            extra_excludes: Additional patterns to exclude.
        """
        self.project_root = project_root
        self.include_ignored = include_ignored
        self._config = ExclusionConfig()
        self._spec: pathspec.GitIgnoreSpec | None = None

        self._load_patterns(extra_excludes or [])
        self._build_spec()

    def _load_patterns(self, extra_excludes: list[str]) -> None:
        """Load patterns from all sources."""
        # 1. Default patterns
        self._config.default_patterns = list(DEFAULT_EXCLUDES)
        self._config.sources.append("defaults")

        if self.include_ignored:
            return

        # 2. .gitignore patterns
        self._load_gitignore()

        # 3. Patterns from the config file
        if extra_excludes:
            self._config.config_patterns = list(extra_excludes)
            self._config.sources.append("config")

    def _load_gitignore(self) -> None:
        """Load .gitignore patterns."""
        gitignore_path = self.project_root / ".gitignore"
        if not gitignore_path.exists():
            return
        try:
            content = gitignore_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.info("Ignoring unreadable %s: %s", gitignore_path, e)
            return
        patterns = [
            line.strip()
            for line in content.splitlines()
            if line.strip() and not line.startswith("#")
        ]
        self._config.gitignore_patterns = patterns
        self._config.sources.append(str(gitignore_path))

    def _build_spec(self) -> None:
        """Build the pathspec matcher from all patterns."""
        self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    def should_exclude(self, file_path: Path) -> bool:
        """Check if a file should be excluded.

        Args:
            file_path: Path to the file to check.

        Returns:
            True if the file should be excluded, False otherwise.
        """
        if self._spec is None:
            return False

        try:
            rel_path = file_path.relative_to(self.project_root)
        except ValueError:
            return False

        # Check the path and all its parent directories
        # This handles patterns like "dist" matching "dist/app.js"
        if self._spec.match_file(rel_path.as_posix()):
            return True

        for part in rel_path.parts[:-1]:
            if self._spec.match_file(part):
                return True

        return False

    def should_exclude_dir(self, dir_path: Path) -> bool:
        """Check if a directory, and so everything below it, should be excluded."""
        if self._spec is None:
            return False

        try:
            rel_path = dir_path.relative_to(self.project_root)
        except ValueError:
            return False

        # Trailing slash is the gitignore form for directories
        return self._spec.match_file(f"{rel_path.as_posix()}/")

    def filter_files(self, files: list[Path]) -> list[Path]:
        """Filter a list of files, removing excluded ones."""
        return [f for f in files if not self.should_exclude(f)]

    @property
    def sources(self) -> list[str]:
        """Return list of pattern sources used."""
        return self._config.sources

    @property
    def patterns(self) -> list[str]:
        """Return all loaded patterns."""
        return (
            self._config.default_patterns
            + self._config.gitignore_patterns
            + self._config.config_patterns
        )


def find_source_files(project_root: Path, excluder: FileExcluder | None = None) -> list[Path]:
    """Find JS/TS source files under a project, in a stable sorted order.

    Excluded directories are pruned during the walk rather than filtered
    afterwards, so ``node_modules`` is never traversed.
    """
    excluder = excluder or FileExcluder(project_root)
    found: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(project_root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames if not excluder.should_exclude_dir(current / d)
        )
        for name in sorted(filenames):
            if not name.endswith(SOURCE_EXTENSIONS):
                continue
            path = current / name
            if not excluder.should_exclude(path):
                found.append(path)

    logger.debug("Discovered %d source files under %s", len(found), project_root)
    return found
