"""Configuration loading for importsniff."""

from dataclasses import dataclass
from pathlib import Path

import tomli

from importsniff.analysis.resolver import DEFAULT_EXTENSIONS

# Looked up in the project root, first match wins
CONFIG_FILE_NAMES = (
    "sniff.toml",
    "sniff-check.toml",
    ".sniff.toml",
    ".sniffrc.toml",
)

DEFAULT_EXCLUDED_PATTERNS = ["react", "@types/*"]


class ConfigError(Exception):
    """Raised when a configuration file exists but cannot be used."""


def find_config(project_root: Path) -> Path | None:
    """Return the first config file present in the project root."""
    for name in CONFIG_FILE_NAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    try:
        with open(config_path, "rb") as f:
            return tomli.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e


def load_project_config(project_root: Path, config_path: Path | None = None) -> dict:
    """Load the explicit config file, or the one found in the project root.

    Returns an empty dict when no config file exists.
    """
    path = config_path or find_config(project_root)
    if path is None:
        return {}
    return load_config(path)


def get_excluded_patterns(config: dict) -> list[str]:
    """Get specifier patterns that are never reported."""
    return config.get("imports", {}).get("excluded_patterns", list(DEFAULT_EXCLUDED_PATTERNS))


def should_check_dev_dependencies(config: dict) -> bool:
    """Check if devDependencies count as installed packages."""
    return config.get("imports", {}).get("check_dev_dependencies", True)


def get_auto_fix(config: dict) -> bool:
    """Reserved option; has no effect on analysis."""
    return config.get("imports", {}).get("auto_fix", False)


def get_parallel_threshold(config: dict) -> int:
    """Get the file count above which files are analyzed in parallel."""
    return config.get("imports", {}).get("parallel_threshold", 50)


def get_max_workers(config: dict) -> int | None:
    """Get the worker pool size (None lets the executor decide)."""
    return config.get("imports", {}).get("max_workers")


def get_unused_threshold(config: dict) -> int:
    """Get the unused import count tolerated before the report is a warning."""
    return config.get("imports", {}).get("unused_threshold", 0)


def get_broken_threshold(config: dict) -> int:
    """Get the broken import count tolerated before the report is an error."""
    return config.get("imports", {}).get("broken_threshold", 0)


def get_extensions(config: dict) -> list[str]:
    """Get the extension preference order for relative imports."""
    return config.get("imports", {}).get("extensions", list(DEFAULT_EXTENSIONS))


def get_scan_excludes(config: dict) -> list[str]:
    """Get extra gitignore-style patterns excluded from file discovery."""
    return config.get("scan", {}).get("exclude", [])


@dataclass(frozen=True)
class ImportsSettings:
    """Validated options of the ``[imports]`` table."""

    excluded_patterns: tuple[str, ...] = tuple(DEFAULT_EXCLUDED_PATTERNS)
    check_dev_dependencies: bool = True
    auto_fix: bool = False
    parallel_threshold: int = 50
    max_workers: int | None = None
    unused_threshold: int = 0
    broken_threshold: int = 0
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    @classmethod
    def from_config(cls, config: dict) -> "ImportsSettings":
        """Build settings from a loaded config dict, checking value types."""
        imports = config.get("imports", {})
        if not isinstance(imports, dict):
            raise ConfigError("[imports] must be a table")

        excluded = get_excluded_patterns(config)
        extensions = get_extensions(config)
        for key, value in (("excluded_patterns", excluded), ("extensions", extensions)):
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"imports.{key} must be a list of strings")

        max_workers = get_max_workers(config)
        if max_workers is not None and (not isinstance(max_workers, int) or max_workers < 1):
            raise ConfigError("imports.max_workers must be a positive integer")

        counts = {
            "parallel_threshold": get_parallel_threshold(config),
            "unused_threshold": get_unused_threshold(config),
            "broken_threshold": get_broken_threshold(config),
        }
        for key, value in counts.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"imports.{key} must be a non-negative integer")

        return cls(
            excluded_patterns=tuple(excluded),
            check_dev_dependencies=bool(should_check_dev_dependencies(config)),
            auto_fix=bool(get_auto_fix(config)),
            max_workers=max_workers,
            extensions=tuple(extensions),
            **counts,
        )
