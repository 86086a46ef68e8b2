"""Data models for extracted import statements."""

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path


class ImportKind(Enum):
    """Shape of an import statement."""

    DEFAULT = auto()
    NAMED = auto()
    NAMESPACE = auto()
    TYPE_ONLY = auto()
    SIDE_EFFECT = auto()
    DYNAMIC = auto()
    RE_EXPORT = auto()

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


# Kinds whose bindings enter the file's scope and can therefore go unused
BINDING_KINDS = frozenset(
    {ImportKind.DEFAULT, ImportKind.NAMED, ImportKind.NAMESPACE, ImportKind.TYPE_ONLY}
)


class UsagePass(Enum):
    """Detection pass that found a binding's usage, in evaluation order."""

    IDENTIFIER = auto()
    JSX = auto()
    TYPE_POSITION = auto()
    DESTRUCTURED_CALL = auto()
    RE_EXPORT = auto()


@dataclass(frozen=True)
class Binding:
    """A single identifier introduced by an import statement."""

    name: str
    alias: str | None = None
    is_type: bool = False

    @property
    def local_name(self) -> str:
        return self.alias or self.name

    def to_dict(self) -> dict:
        return {"name": self.name, "alias": self.alias, "is_type": self.is_type}


@dataclass(frozen=True)
class ImportRecord:
    """One import statement found in a source file."""

    file: Path
    line: int
    statement: str
    kind: ImportKind
    specifier: str | None
    bindings: tuple[Binding, ...] = ()
    commonjs: bool = False
    malformed: bool = False
    span: tuple[int, int] = (0, 0)  # character offsets [start, end)

    @property
    def introduces_bindings(self) -> bool:
        return self.kind in BINDING_KINDS and bool(self.bindings)

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "statement": self.statement,
            "kind": self.kind.label,
            "specifier": self.specifier,
            "bindings": [b.to_dict() for b in self.bindings],
            "commonjs": self.commonjs,
            "malformed": self.malformed,
        }


@dataclass(frozen=True)
class UsageResult:
    """Whether a binding is referenced outside its import statement."""

    binding: Binding
    is_used: bool
    matched_by: UsagePass | None = None

    def to_dict(self) -> dict:
        return {
            "binding": self.binding.local_name,
            "is_used": self.is_used,
            "matched_by": self.matched_by.name.lower() if self.matched_by else None,
        }


@dataclass(frozen=True)
class ExtractionResult:
    """Import records of one file plus the spans excluded from usage scanning."""

    records: tuple[ImportRecord, ...] = ()
    declaration_spans: tuple[tuple[int, int], ...] = field(default_factory=tuple)
