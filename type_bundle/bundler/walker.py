"""Dependency walker: expands an entry type into every declaration it reaches.

The walk uses an explicit stack. Each (file, name) key moves from unseen to
IN_PROGRESS when it is expanded and to DONE when the closing frame pushed
below its children is popped. Meeting an IN_PROGRESS key means the reference
graph has a cycle; the key is already being expanded, so nothing is pushed.

Lookup order for a name in a file:

1. the default export, for the `default` key a default import forwards to
   (files without a default export are searched for the importer's name)
2. a local interface/type/enum/class/namespace declaration
3. a default or named import binding
4. a qualified name (`NS.Member`) through a namespace import, or through a
   local/imported head such as an enum
5. re-exports: `export { A as B } from`, `export { A as B }`, `export * from`
6. ambient global declarations

Anything else becomes a ResolutionWarning and the branch stops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from type_bundle.index.base import DeclarationIndex
from type_bundle.index.builtins import is_basic_or_utility_type
from type_bundle.models import (
    CollectedDeclaration,
    DeclKey,
    FileDeclarations,
    ImportEdge,
    ImportStyle,
    NamespaceFlattening,
    ResolutionWarning,
    TargetKind,
    VisitState,
)
from type_bundle.resolver.base import ModuleResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Frame:
    file_path: str
    name: str
    hint: str | None = None
    closing: bool = False

    @property
    def key(self) -> DeclKey:
        return (self.file_path, self.name)


@dataclass
class WalkResult:
    collected: dict[DeclKey, CollectedDeclaration] = field(default_factory=dict)
    warnings: list[ResolutionWarning] = field(default_factory=list)
    flattenings: list[NamespaceFlattening] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    entry_key: DeclKey | None = None


class DependencyWalker:
    """Collects declarations reachable from one or more entry points.

    Successive walk() calls share state, so several entries can be merged
    into one collected set.
    """

    def __init__(
        self,
        index: DeclarationIndex,
        resolver: ModuleResolver,
        is_leaf: Callable[[str], bool] = is_basic_or_utility_type,
        include_globals: bool = True,
    ):
        self.index = index
        self.resolver = resolver
        self.is_leaf = is_leaf
        self.include_globals = include_globals

        self.collected: dict[DeclKey, CollectedDeclaration] = {}
        self.states: dict[DeclKey, VisitState] = {}
        # lookup key -> key it was forwarded to by an import or re-export
        self.links: dict[DeclKey, DeclKey] = {}
        self.flattenings: dict[DeclKey, NamespaceFlattening] = {}
        self.warnings: list[ResolutionWarning] = []
        self.notes: list[str] = []

    def walk(self, entry_file: str, entry_name: str, hint: str | None = None) -> WalkResult:
        stack = [_Frame(entry_file, entry_name, hint)]
        while stack:
            frame = stack.pop()
            key = frame.key
            if frame.closing:
                self._finish(key)
                continue

            state = self.states.get(key)
            if state is VisitState.DONE:
                continue
            if state is VisitState.IN_PROGRESS:
                self._note_cycle(key)
                continue

            self.states[key] = VisitState.IN_PROGRESS
            stack.append(replace(frame, closing=True))
            self._expand(frame, stack)

        self._bind_references()
        entry_key = self.follow((entry_file, entry_name))
        logger.info(
            "Walked %s:%s, %d declaration(s) collected, %d warning(s)",
            entry_file, entry_name, len(self.collected), len(self.warnings),
        )
        return WalkResult(
            collected=self.collected,
            warnings=self.warnings,
            flattenings=list(self.flattenings.values()),
            notes=self.notes,
            entry_key=entry_key,
        )

    def follow(self, key: DeclKey) -> DeclKey | None:
        """The collected declaration a lookup key ends at, if any."""
        seen: set[DeclKey] = set()
        while key not in self.collected:
            if key in seen or key not in self.links:
                return None
            seen.add(key)
            key = self.links[key]
        return key

    # ── Expansion ──────────────────────────────────────────────

    def _expand(self, frame: _Frame, stack: list[_Frame]) -> None:
        file_path, name = frame.key
        decls = self.index.get_declarations(file_path)
        if decls is None:
            self._warn(file_path, name, "file could not be indexed")
            return

        if name == "default":
            target = decls.default_export
            if target is None:
                self._warn(file_path, name, "no default export")
                return
            hint = frame.hint if frame.hint != target else None
            self._forward(frame, file_path, target, hint, stack)
            return

        record = decls.lookup(name)
        if record is not None:
            self.collected[record.key] = CollectedDeclaration(record, rename_hint=frame.hint)
            logger.debug("Collected %s from %s (hint=%s)", name, file_path, frame.hint)
            # Reverse order so siblings pop alphabetically
            for ref in sorted(record.referenced_names, reverse=True):
                if not self.is_leaf(ref):
                    stack.append(_Frame(file_path, ref))
            return

        edge = decls.find_import(name)
        if edge is not None and edge.import_style != ImportStyle.NAMESPACE:
            self._follow_import(frame, edge, stack)
            return

        if "." in name and self._follow_qualified(frame, decls, stack):
            return

        if self._follow_re_export(frame, decls, stack):
            return

        if self.include_globals:
            global_record = self.index.find_global(name)
            if global_record is not None and global_record.key != frame.key:
                self._forward(frame, global_record.file_path, global_record.name, frame.hint, stack)
                return

        self._warn(file_path, name)

    def _follow_import(self, frame: _Frame, edge: ImportEdge, stack: list[_Frame]) -> None:
        target = self.resolver.resolve(frame.file_path, edge.module_specifier)
        if target.kind != TargetKind.FILE:
            self._warn(
                frame.file_path, frame.name,
                f"{target.kind.value} module {edge.module_specifier!r}",
            )
            return
        exported = edge.exported_name
        if edge.import_style == ImportStyle.DEFAULT:
            target_decls = self.index.get_declarations(target.path)
            # Without a default export the importer's name is looked up as is
            if target_decls is None or target_decls.default_export is not None:
                self._forward(frame, target.path, "default", frame.hint or frame.name, stack)
                return
        # An alias keeps the importer's spelling
        hint = frame.name if frame.name != exported else frame.hint
        self._forward(frame, target.path, exported, hint, stack)

    def _follow_qualified(self, frame: _Frame, decls: FileDeclarations, stack: list[_Frame]) -> bool:
        head = frame.name.split(".", 1)[0]
        member = frame.name.rsplit(".", 1)[1]
        edge = decls.find_import(head)

        if edge is not None and edge.import_style == ImportStyle.NAMESPACE:
            target = self.resolver.resolve(frame.file_path, edge.module_specifier)
            if target.kind != TargetKind.FILE:
                self._warn(
                    frame.file_path, frame.name,
                    f"{target.kind.value} module {edge.module_specifier!r}",
                )
                return True
            flattened = f"{head}_{member}"
            self.flattenings[frame.key] = NamespaceFlattening(
                frame.file_path, frame.name, flattened,
            )
            self._forward(frame, target.path, member, flattened, stack)
            return True

        # Enum member or local namespace access depends on the head
        if edge is not None or decls.lookup(head) is not None:
            self._forward(frame, frame.file_path, head, None, stack)
            return True
        return False

    def _follow_re_export(self, frame: _Frame, decls: FileDeclarations, stack: list[_Frame]) -> bool:
        name = frame.name
        for edge in decls.re_exports:
            if edge.is_star or edge.exported_name != name:
                continue
            hint = name if name != edge.source_name else frame.hint
            if edge.module_specifier is None:
                if edge.source_name == name:
                    # `export { X }` re-exports a binding that was already searched
                    continue
                self._forward(frame, frame.file_path, edge.source_name, hint, stack)
                return True
            target = self.resolver.resolve(frame.file_path, edge.module_specifier)
            if target.kind != TargetKind.FILE:
                self._warn(
                    frame.file_path, name,
                    f"re-exported from {target.kind.value} module {edge.module_specifier!r}",
                )
                return True
            self._forward(frame, target.path, edge.source_name, hint, stack)
            return True

        for edge in decls.re_exports:
            if not edge.is_star or edge.module_specifier is None:
                continue
            target = self.resolver.resolve(frame.file_path, edge.module_specifier)
            if target.kind == TargetKind.FILE and self._provides(target.path, name, set()):
                self._forward(frame, target.path, name, frame.hint, stack)
                return True
        return False

    def _provides(self, file_path: str, name: str, seen: set[str]) -> bool:
        """True if file_path declares or re-exports name."""
        if file_path in seen:
            return False
        seen.add(file_path)
        decls = self.index.get_declarations(file_path)
        if decls is None:
            return False
        if decls.lookup(name) is not None:
            return True
        for edge in decls.re_exports:
            if not edge.is_star:
                if edge.exported_name == name:
                    return True
                continue
            if edge.module_specifier is None:
                continue
            target = self.resolver.resolve(file_path, edge.module_specifier)
            if target.kind == TargetKind.FILE and self._provides(target.path, name, seen):
                return True
        return False

    def _forward(
        self,
        frame: _Frame,
        file_path: str,
        name: str,
        hint: str | None,
        stack: list[_Frame],
    ) -> None:
        self.links[frame.key] = (file_path, name)
        stack.append(_Frame(file_path, name, hint))

    # ── Bookkeeping ────────────────────────────────────────────

    def _finish(self, key: DeclKey) -> None:
        self.states[key] = VisitState.DONE
        decl = self.collected.get(key)
        if decl is not None:
            decl.visit_state = VisitState.DONE

    def _bind_references(self) -> None:
        for decl in self.collected.values():
            for ref in decl.record.referenced_names:
                if self.is_leaf(ref) or ref in decl.bindings:
                    continue
                target = self.follow((decl.file_path, ref))
                if target is not None:
                    decl.bindings[ref] = target

    def _note_cycle(self, key: DeclKey) -> None:
        note = f"cycle through {key[1]} in {key[0]}"
        if note not in self.notes:
            logger.debug("Reference %s", note)
            self.notes.append(note)

    def _warn(self, file_path: str, name: str, reason: str | None = None) -> None:
        warning = (
            ResolutionWarning(file_path, name, reason) if reason
            else ResolutionWarning(file_path, name)
        )
        logger.debug("Unresolved: %s", warning)
        self.warnings.append(warning)
