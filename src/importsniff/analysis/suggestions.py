"""Fuzzy replacement suggestions for imports of missing files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from importsniff.analysis.resolver import DEFAULT_EXTENSIONS
from importsniff.log import get_logger
from importsniff.models.resolution import Suggestion

logger = get_logger(__name__)

MAX_SUGGESTIONS = 3
MIN_SCORE = 0.5

# Longest first so "x.d.ts" strips as a whole
_SOURCE_EXTENSIONS = tuple(
    sorted(set(DEFAULT_EXTENSIONS) | {".mts", ".cts"}, key=len, reverse=True)
)


def strip_source_extension(name: str) -> str | None:
    """Return ``name`` without its source extension, or None if it has none."""
    lowered = name.lower()
    for ext in _SOURCE_EXTENSIONS:
        if lowered.endswith(ext) and len(name) > len(ext):
            return name[: -len(ext)]
    return None


@dataclass(frozen=True)
class DirectoryListing:
    """Names of the files and subdirectories directly inside one directory."""

    files: tuple[str, ...] = ()
    dirs: tuple[str, ...] = ()


def _list_directory(directory: Path) -> DirectoryListing:
    files: list[str] = []
    dirs: list[str] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_dir():
                        dirs.append(entry.name)
                    elif entry.is_file():
                        files.append(entry.name)
                except OSError:
                    continue
    except OSError as e:
        logger.debug("Cannot list %s: %s", directory, e)
    return DirectoryListing(tuple(sorted(files)), tuple(sorted(dirs)))


@dataclass(frozen=True)
class DirectoryIndex:
    """Read-only snapshot of directory listings around the analyzed files.

    Built once before analysis starts and then shared by all workers, so the
    suggestion step never touches the filesystem concurrently.
    """

    listings: Mapping[Path, DirectoryListing] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "listings", MappingProxyType(dict(self.listings)))

    @classmethod
    def build(cls, files: Iterable[Path]) -> DirectoryIndex:
        """List every directory a suggestion for ``files`` may look at."""
        listings: dict[Path, DirectoryListing] = {}

        def visit(directory: Path) -> DirectoryListing:
            if directory not in listings:
                listings[directory] = _list_directory(directory)
            return listings[directory]

        for directory in sorted({f.parent for f in files}):
            own = visit(directory)
            visit(directory.parent)
            for sub in own.dirs:
                visit(directory / sub)
        return cls(listings)

    def listing(self, directory: Path) -> DirectoryListing:
        return self.listings.get(directory, DirectoryListing())


def _relative_specifier(target: Path, from_dir: Path) -> str:
    text = Path(os.path.relpath(target, from_dir)).as_posix()
    if text.startswith(".."):
        return text
    return f"./{text}"


def _candidates(importing_file: Path, index: DirectoryIndex) -> dict[Path, str]:
    """Extension-less candidate paths in the neighborhood, mapped to their base names."""
    directory = importing_file.parent
    found: dict[Path, str] = {}

    def add_files(where: Path) -> None:
        for name in index.listing(where).files:
            stem = strip_source_extension(name)
            if stem is None or where / name == importing_file:
                continue
            if stem == "index" and where != directory:
                # A folder's index stands for the folder itself
                found.setdefault(where, where.name)
                continue
            found.setdefault(where / stem, stem)

    add_files(directory)
    if directory.parent != directory:
        add_files(directory.parent)
    for sub in index.listing(directory).dirs:
        add_files(directory / sub)
    return found


def similarity(requested: str, candidate: str) -> float:
    """Case-insensitive similarity ratio between two base names, in [0, 1]."""
    return SequenceMatcher(None, requested.lower(), candidate.lower()).ratio()


def suggest_files(
    specifier: str,
    importing_file: Path,
    index: DirectoryIndex,
    limit: int = MAX_SUGGESTIONS,
    min_score: float = MIN_SCORE,
) -> tuple[Suggestion, ...]:
    """Propose existing files whose names resemble a missing import target.

    Only the importing file's directory, its parent and the immediate
    subdirectories are searched.

    Returns:
        Up to ``limit`` distinct suggestions sorted by descending score;
        ties go to the shorter, then lexicographically smaller, specifier.
    """
    requested = specifier.rstrip("/").rsplit("/", 1)[-1]
    requested = strip_source_extension(requested) or requested
    if requested in ("", ".", ".."):
        return ()

    from_dir = importing_file.parent
    best: dict[str, float] = {}
    for path, name in _candidates(importing_file, index).items():
        score = similarity(requested, name)
        if score < min_score:
            continue
        candidate = _relative_specifier(path, from_dir)
        if candidate == specifier:
            continue
        if score > best.get(candidate, -1.0):
            best[candidate] = score

    ranked = sorted(best.items(), key=lambda item: (-item[1], len(item[0]), item[0]))
    return tuple(Suggestion(candidate, round(score, 3)) for candidate, score in ranked[:limit])
