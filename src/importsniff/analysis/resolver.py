"""Specifier resolution: relative files, tsconfig aliases and npm packages."""

from __future__ import annotations

import fnmatch
import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from importsniff.log import get_logger
from importsniff.models.resolution import ResolutionResult, ResolutionStatus

if TYPE_CHECKING:
    from importsniff.analysis.context import AnalysisContext

logger = get_logger(__name__)

# Extension preference for extensionless relative specifiers
DEFAULT_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".d.ts",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".json",
)

# TypeScript lets "./x.js" point at the "./x.ts" source
_SOURCE_MAPPED_EXTENSIONS = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}

NODE_BUILTINS = frozenset(
    {
        "assert", "async_hooks", "buffer", "child_process", "cluster",
        "console", "constants", "crypto", "dgram", "diagnostics_channel",
        "dns", "domain", "events", "fs", "http", "http2", "https",
        "inspector", "module", "net", "os", "path", "perf_hooks",
        "process", "punycode", "querystring", "readline", "repl", "stream",
        "string_decoder", "sys", "timers", "tls", "trace_events", "tty",
        "url", "util", "v8", "vm", "wasi", "worker_threads", "zlib",
        "test", "sqlite",
    }
)  # fmt: skip

_URL_RE = re.compile(r"^(?:https?|data|file|blob):")

MANIFEST_FILE = "package.json"
TSCONFIG_FILE = "tsconfig.json"

_RUNTIME_DEPENDENCY_KEYS = ("dependencies", "peerDependencies", "optionalDependencies")
_DEV_DEPENDENCY_KEY = "devDependencies"


def split_package_name(specifier: str) -> tuple[str, str]:
    """Split a bare specifier into package name and subpath.

    ``@scope/pkg/sub/mod`` gives ``("@scope/pkg", "sub/mod")``, ``lodash/fp``
    gives ``("lodash", "fp")``.
    """
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2]), "/".join(parts[2:])
    return parts[0], "/".join(parts[1:])


def is_node_builtin(specifier: str) -> bool:
    """Whether a specifier names a Node.js core module (``fs``, ``node:fs``, ``fs/promises``)."""
    if specifier.startswith("node:"):
        return True
    return specifier.split("/")[0] in NODE_BUILTINS


def is_relative(specifier: str) -> bool:
    return specifier.startswith((".", "/"))


# Manifest and tsconfig loading


def load_installed_packages(project_root: Path, include_dev: bool = True) -> frozenset[str]:
    """Read the set of declared dependency names from ``package.json``.

    A missing or unparseable manifest yields an empty set, so every package
    import will later classify as not installed.
    """
    manifest_path = project_root / MANIFEST_FILE
    if not manifest_path.exists():
        logger.info("No %s in %s; treating every package as not installed", MANIFEST_FILE, project_root)
        return frozenset()

    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.info("Could not parse %s: %s", manifest_path, e)
        return frozenset()

    if not isinstance(data, dict):
        logger.info("Ignoring %s: top level is not an object", manifest_path)
        return frozenset()

    keys = _RUNTIME_DEPENDENCY_KEYS + ((_DEV_DEPENDENCY_KEY,) if include_dev else ())
    names: set[str] = set()
    for key in keys:
        section = data.get(key)
        if isinstance(section, dict):
            names.update(section)
    return frozenset(names)


@dataclass(frozen=True)
class PathAliases:
    """``compilerOptions.paths`` from tsconfig, resolved against ``baseUrl``."""

    base_url: Path
    mappings: tuple[tuple[str, tuple[str, ...]], ...] = ()

    def match(self, specifier: str) -> list[Path] | None:
        """Candidate target paths for an aliased specifier, or None if no alias applies.

        Exact patterns win over wildcard ones; among wildcards the longest
        prefix wins, the way the TypeScript compiler picks them.
        """
        best: tuple[int, str, tuple[str, ...]] | None = None
        for pattern, targets in self.mappings:
            if "*" not in pattern:
                if pattern == specifier:
                    return [self.base_url / t for t in targets]
                continue
            prefix, _, suffix = pattern.partition("*")
            if (
                specifier.startswith(prefix)
                and specifier.endswith(suffix)
                and len(specifier) >= len(prefix) + len(suffix)
            ):
                if best is None or len(prefix) > best[0]:
                    star = specifier[len(prefix) : len(specifier) - len(suffix)]
                    best = (len(prefix), star, targets)
        if best is None:
            return None
        _, star, targets = best
        return [self.base_url / t.replace("*", star) for t in targets]


_JSON_COMMENT_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


def _loads_jsonc(text: str) -> object:
    """Parse JSON that may carry comments and trailing commas (tsconfig style)."""
    text = _JSON_COMMENT_RE.sub(lambda m: m.group(1) or "", text)
    text = _TRAILING_COMMA_RE.sub(lambda m: m.group(1) or m.group(2), text)
    return json.loads(text)


def load_path_aliases(project_root: Path) -> PathAliases | None:
    """Load path aliases from ``tsconfig.json``; None when there are none."""
    tsconfig_path = project_root / TSCONFIG_FILE
    if not tsconfig_path.exists():
        return None

    try:
        data = _loads_jsonc(tsconfig_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.info("Could not parse %s: %s", tsconfig_path, e)
        return None

    options = data.get("compilerOptions") if isinstance(data, dict) else None
    if not isinstance(options, dict):
        return None
    paths = options.get("paths")
    if not isinstance(paths, dict) or not paths:
        return None

    base_url = project_root / str(options.get("baseUrl", "."))
    mappings = tuple(
        (pattern, tuple(str(t) for t in targets))
        for pattern, targets in paths.items()
        if isinstance(targets, list) and targets
    )
    logger.debug("Loaded %d path aliases from %s", len(mappings), tsconfig_path)
    return PathAliases(base_url=base_url, mappings=mappings)


# File probing


def probe_file(base: Path, extensions: tuple[str, ...]) -> Path | None:
    """Find the file a specifier path refers to, in extension preference order.

    Tries the exact path, then each extension suffix, then the ``.js`` to
    ``.ts`` source mapping, then ``index.<ext>`` inside the path. The first
    existing file wins.
    """
    if base.is_file():
        return base

    if base.name:
        for ext in extensions:
            candidate = base.with_name(base.name + ext)
            if candidate.is_file():
                return candidate

    mapped = _SOURCE_MAPPED_EXTENSIONS.get(base.suffix)
    if mapped:
        for ext in mapped:
            candidate = base.with_suffix(ext)
            if candidate.is_file():
                return candidate

    if base.is_dir():
        for ext in extensions:
            candidate = base / f"index{ext}"
            if candidate.is_file():
                return candidate

    return None


def _normalize(path: Path) -> Path:
    return Path(os.path.normpath(path))


# Resolution strategies. Each returns a result to stop the search, or None
# to hand the specifier to the next one.

ResolutionStrategy = Callable[[str, Path, "AnalysisContext"], "ResolutionResult | None"]


def _unresolvable(specifier: str, importing_file: Path, context: AnalysisContext) -> ResolutionResult | None:
    if not specifier or not specifier.strip():
        return ResolutionResult(ResolutionStatus.UNRESOLVABLE, hint="Empty module specifier")
    if _URL_RE.match(specifier):
        return ResolutionResult(ResolutionStatus.UNRESOLVABLE, hint="URL imports are not checked")
    return None


def _relative_file(specifier: str, importing_file: Path, context: AnalysisContext) -> ResolutionResult | None:
    if not is_relative(specifier):
        return None
    if specifier.startswith("/"):
        base = context.project_root / specifier.lstrip("/")
    else:
        base = importing_file.parent / specifier
    base = _normalize(base)

    found = probe_file(base, context.extensions)
    if found is not None:
        return ResolutionResult(ResolutionStatus.RESOLVED, path=found)
    return ResolutionResult(ResolutionStatus.FILE_NOT_FOUND, path=base)


def _path_alias(specifier: str, importing_file: Path, context: AnalysisContext) -> ResolutionResult | None:
    if context.aliases is None:
        return None
    targets = context.aliases.match(specifier)
    if targets is None:
        return None

    for target in targets:
        found = probe_file(_normalize(target), context.extensions)
        if found is not None:
            return ResolutionResult(ResolutionStatus.RESOLVED, path=found)

    # Catch-all aliases such as "*" also match real packages
    package, _ = split_package_name(specifier)
    if package in context.installed_packages or is_node_builtin(specifier):
        return None

    missing = _normalize(targets[0])
    return ResolutionResult(
        ResolutionStatus.FILE_NOT_FOUND,
        path=missing,
        hint=f"Path alias '{specifier}' resolves to '{missing}' but file not found",
    )


def _node_builtin(specifier: str, importing_file: Path, context: AnalysisContext) -> ResolutionResult | None:
    if is_node_builtin(specifier):
        package = specifier if specifier.startswith("node:") else specifier.split("/")[0]
        return ResolutionResult(ResolutionStatus.RESOLVED, package=package)
    return None


def _installed_package(specifier: str, importing_file: Path, context: AnalysisContext) -> ResolutionResult | None:
    package, _ = split_package_name(specifier)
    if package in context.installed_packages:
        return ResolutionResult(ResolutionStatus.RESOLVED, package=package)
    return None


def _excluded_package(specifier: str, importing_file: Path, context: AnalysisContext) -> ResolutionResult | None:
    package, _ = split_package_name(specifier)
    if context.is_excluded(specifier) or context.is_excluded(package):
        return ResolutionResult(ResolutionStatus.IGNORED, package=package)
    return None


def _not_installed(specifier: str, importing_file: Path, context: AnalysisContext) -> ResolutionResult | None:
    package, _ = split_package_name(specifier)
    return ResolutionResult(
        ResolutionStatus.MODULE_NOT_INSTALLED,
        package=package,
        hint=f"Run: npm install {package}",
    )


# Evaluated in order; the first strategy returning a result wins
RESOLUTION_STRATEGIES: tuple[ResolutionStrategy, ...] = (
    _unresolvable,
    _relative_file,
    _path_alias,
    _node_builtin,
    _installed_package,
    _excluded_package,
    _not_installed,
)


def resolve_specifier(
    specifier: str | None,
    importing_file: Path,
    context: AnalysisContext,
) -> ResolutionResult:
    """Classify a module specifier as resolved, missing or not installed.

    Args:
        specifier: The module string from the import, or None when the
            statement had no literal specifier.
        importing_file: File containing the import.
        context: Shared read-only analysis snapshot.

    Returns:
        Exactly one classification. Suggestions are not computed here.
    """
    if specifier is None:
        return ResolutionResult(ResolutionStatus.UNRESOLVABLE, hint="Specifier is not a string literal")

    for strategy in RESOLUTION_STRATEGIES:
        result = strategy(specifier, importing_file, context)
        if result is not None:
            return result

    # _not_installed always answers
    raise AssertionError("no resolution strategy matched")


def matches_any(name: str, patterns: tuple[str, ...]) -> bool:
    """Glob-match a specifier or package name against excluded patterns."""
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)
