"""Data models for specifier resolution."""

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path


class ResolutionStatus(Enum):
    """Outcome of resolving one import specifier."""

    RESOLVED = auto()
    FILE_NOT_FOUND = auto()
    MODULE_NOT_INSTALLED = auto()
    UNRESOLVABLE = auto()
    IGNORED = auto()  # bare specifier matched an excluded pattern

    @property
    def is_broken(self) -> bool:
        return self in (ResolutionStatus.FILE_NOT_FOUND, ResolutionStatus.MODULE_NOT_INSTALLED)


@dataclass(frozen=True)
class Suggestion:
    """A candidate replacement specifier for a missing file."""

    candidate: str
    score: float

    def to_dict(self) -> dict:
        return {"candidate": self.candidate, "score": self.score}


@dataclass(frozen=True)
class ResolutionResult:
    """Classification of an import specifier."""

    status: ResolutionStatus
    path: Path | None = None
    package: str | None = None
    hint: str | None = None
    suggestions: tuple[Suggestion, ...] = ()

    @property
    def is_broken(self) -> bool:
        return self.status.is_broken

    def to_dict(self) -> dict:
        return {
            "status": self.status.name.lower(),
            "path": str(self.path) if self.path else None,
            "package": self.package,
            "hint": self.hint,
            "suggestions": [s.to_dict() for s in self.suggestions],
        }
