"""Module resolver over a fixed set of in-memory file paths."""

from __future__ import annotations

from collections.abc import Iterable

from type_bundle.models import ResolvedTarget, TargetKind
from type_bundle.resolver.base import ModuleResolver, is_relative


class InMemoryResolver(ModuleResolver):
    """Resolves relative specifiers against known POSIX paths.

    Bare specifiers are external packages unless an explicit override
    maps them.
    """

    def __init__(
        self,
        files: Iterable[str],
        overrides: dict[tuple[str, str], ResolvedTarget] | None = None,
        extensions: tuple[str, ...] | None = None,
    ):
        super().__init__(extensions)
        self.files = set(files)
        self.overrides = dict(overrides or {})

    def add_override(self, from_file: str, specifier: str, target: ResolvedTarget) -> None:
        self.overrides[(from_file, specifier)] = target

    def resolve(self, from_file: str, specifier: str) -> ResolvedTarget:
        override = self.overrides.get((from_file, specifier))
        if override is not None:
            return override

        if is_relative(specifier) or specifier.startswith("/"):
            base = self.pathmod.join(self.pathmod.dirname(from_file), specifier)
            found = self.probe(base)
            if found is None:
                return ResolvedTarget(TargetKind.UNRESOLVED, specifier)
            return ResolvedTarget(TargetKind.FILE, found)

        return ResolvedTarget(TargetKind.EXTERNAL_PACKAGE, specifier)

    def _exists(self, path: str) -> bool:
        return path in self.files
