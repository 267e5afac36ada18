"""Data models for the type-bundle pipeline."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from pathlib import Path

# (file_path, declaration name)
DeclKey = tuple[str, str]


class DeclarationKind(enum.Enum):
    INTERFACE = "interface"
    TYPE_ALIAS = "typeAlias"
    ENUM = "enum"
    CLASS = "class"
    UNKNOWN = "unknown"


class ImportStyle(enum.Enum):
    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"


class TargetKind(enum.Enum):
    FILE = "file"
    EXTERNAL_PACKAGE = "externalPackage"
    UNRESOLVED = "unresolved"


class VisitState(enum.Enum):
    IN_PROGRESS = "inProgress"
    DONE = "done"


@dataclass(frozen=True)
class ReferenceSpan:
    """One occurrence of a referenced name, in character offsets into raw_text."""
    name: str
    start: int
    end: int


@dataclass(frozen=True)
class DeclarationRecord:
    """A named declaration as reported by the declaration index."""
    file_path: str
    name: str
    kind: DeclarationKind
    raw_text: str
    referenced_names: frozenset[str] = frozenset()
    name_span: tuple[int, int] | None = None
    reference_spans: tuple[ReferenceSpan, ...] = ()

    @property
    def key(self) -> DeclKey:
        return (self.file_path, self.name)


@dataclass(frozen=True)
class ImportEdge:
    from_file: str
    local_identifier: str
    exported_name: str
    import_style: ImportStyle
    module_specifier: str


@dataclass(frozen=True)
class ReExportEdge:
    """`export { source_name as exported_name } from '...'`.

    A star re-export uses "*" for both names. A source-less
    `export { A as B }` has module_specifier None.
    """
    from_file: str
    exported_name: str
    source_name: str
    module_specifier: str | None = None

    @property
    def is_star(self) -> bool:
        return self.exported_name == "*"


@dataclass
class FileDeclarations:
    """Everything the index knows about one file."""
    file_path: str
    interface_decls: dict[str, DeclarationRecord] = field(default_factory=dict)
    type_decls: dict[str, DeclarationRecord] = field(default_factory=dict)
    import_edges: list[ImportEdge] = field(default_factory=list)
    re_exports: list[ReExportEdge] = field(default_factory=list)
    default_export: str | None = None
    # A file with top-level import/export only exposes `declare global` names
    is_module: bool = False
    global_names: set[str] = field(default_factory=set)

    def lookup(self, name: str) -> DeclarationRecord | None:
        return self.interface_decls.get(name) or self.type_decls.get(name)

    def find_import(self, local_identifier: str) -> ImportEdge | None:
        for edge in self.import_edges:
            if edge.local_identifier == local_identifier:
                return edge
        return None

    @property
    def declarations(self) -> list[DeclarationRecord]:
        return [*self.interface_decls.values(), *self.type_decls.values()]


@dataclass(frozen=True)
class ResolvedTarget:
    kind: TargetKind
    path: str = ""


@dataclass
class CollectedDeclaration:
    """A declaration reached by the walker."""
    record: DeclarationRecord
    rename_hint: str | None = None
    visit_state: VisitState = VisitState.IN_PROGRESS
    # referenced name -> key of the collected declaration it resolved to
    bindings: dict[str, DeclKey] = field(default_factory=dict)

    @property
    def key(self) -> DeclKey:
        return self.record.key

    @property
    def file_path(self) -> str:
        return self.record.file_path

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def kind(self) -> DeclarationKind:
        return self.record.kind

    @property
    def display_name(self) -> str:
        """Name the importing context asked for; the collision group key."""
        return self.rename_hint or self.record.name


@dataclass(frozen=True)
class NamespaceFlattening:
    """`NS.Member` inside file_path is emitted as flattened_name."""
    file_path: str
    qualified_name: str
    flattened_name: str


@dataclass
class NameAssignment:
    final_names: dict[DeclKey, str] = field(default_factory=dict)
    used_names: set[str] = field(default_factory=set)

    def assign(self, key: DeclKey, final_name: str) -> None:
        self.final_names[key] = final_name
        self.used_names.add(final_name)

    def __getitem__(self, key: DeclKey) -> str:
        return self.final_names[key]

    def __contains__(self, key: object) -> bool:
        return key in self.final_names

    def renamed(self, key: DeclKey) -> bool:
        return self.final_names[key] != key[1]


@dataclass(frozen=True)
class BundleEntry:
    """Result of the rewrite stage; the unit the emitter serializes."""
    file_path: str
    original_name: str
    final_name: str
    kind: DeclarationKind
    rewritten_text: str


@dataclass(frozen=True)
class ResolutionWarning:
    file_path: str
    name: str
    reason: str = "no declaration or import found"

    def __str__(self) -> str:
        return f"{self.file_path}: cannot resolve {self.name!r} ({self.reason})"


_ENTRY_RE = re.compile(
    r"(?P<path>.+?):(?P<type>[A-Za-z_$][\w$]*)(?::(?P<alias>[A-Za-z_$][\w$]*))?"
)


@dataclass(frozen=True)
class EntryPoint:
    """A (file, type) pair a bundling request starts from."""
    file_path: str
    type_name: str
    alias: str | None = None

    @classmethod
    def parse(cls, spec: str) -> EntryPoint:
        """Parse "path:Type" or "path:Type:Alias"."""
        m = _ENTRY_RE.fullmatch(spec.strip())
        if not m:
            raise ValueError(
                f"Invalid entry point {spec!r}, expected 'path:Type[:Alias]'"
            )
        return cls(m.group("path"), m.group("type"), m.group("alias"))

    @property
    def output_name(self) -> str:
        return self.alias or self.type_name


@dataclass
class BundleConfig:
    """Configuration for a bundling run."""
    project_root: Path | None = None
    entry_keeps_name: bool = False
    include_globals: bool = True
    banner: bool = True
    extensions: list[str] = field(default_factory=lambda: [
        ".ts", ".tsx", ".d.ts", ".mts", ".cts",
    ])
    skip_dirs: list[str] = field(default_factory=lambda: [
        "node_modules", ".git", "dist", "build", ".next", "coverage",
    ])


@dataclass
class BundleResult:
    """Result of one bundling session."""
    text: str
    entries: list[BundleEntry] = field(default_factory=list)
    warnings: list[ResolutionWarning] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    entry_points: list[EntryPoint] = field(default_factory=list)


@dataclass
class BatchResult:
    """Result of a batch run: one bundle file per entry point."""
    output_dir: Path
    results: dict[str, BundleResult] = field(default_factory=dict)
    files_created: list[Path] = field(default_factory=list)
    skipped: list[tuple[EntryPoint, str]] = field(default_factory=list)
    manifest_path: Path | None = None
