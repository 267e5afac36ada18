"""Module resolver for TypeScript projects on disk."""

from __future__ import annotations

import logging
import os
import os.path
from pathlib import Path

from type_bundle.models import ResolvedTarget, TargetKind
from type_bundle.resolver.base import ModuleResolver, is_relative
from type_bundle.resolver.tsconfig import TsConfig, load_tsconfig

logger = logging.getLogger(__name__)


class FileSystemResolver(ModuleResolver):
    """Relative paths, tsconfig paths/baseUrl aliases, and extension probing."""

    pathmod = os.path

    def __init__(
        self,
        root: Path,
        tsconfig: TsConfig | None = None,
        extensions: tuple[str, ...] | list[str] | None = None,
    ):
        super().__init__(extensions)
        self.root = root
        self.tsconfig = tsconfig if tsconfig is not None else load_tsconfig(root)
        self._cache: dict[tuple[str, str], ResolvedTarget] = {}
        # Longest literal prefix first, as tsc does
        self._patterns = sorted(
            self.tsconfig.paths.items(),
            key=lambda item: len(item[0].split("*", 1)[0]),
            reverse=True,
        )

    def resolve(self, from_file: str, specifier: str) -> ResolvedTarget:
        cache_key = (os.path.dirname(from_file), specifier)
        if cache_key not in self._cache:
            self._cache[cache_key] = self._resolve(cache_key[0], specifier)
        return self._cache[cache_key]

    def _resolve(self, from_dir: str, specifier: str) -> ResolvedTarget:
        if is_relative(specifier) or os.path.isabs(specifier):
            found = self.probe(os.path.join(from_dir, specifier))
            if found is None:
                logger.debug("Unresolved relative import %r from %s", specifier, from_dir)
                return ResolvedTarget(TargetKind.UNRESOLVED, specifier)
            return ResolvedTarget(TargetKind.FILE, found)

        for candidate in self._alias_candidates(specifier):
            found = self.probe(candidate)
            if found is not None:
                return ResolvedTarget(TargetKind.FILE, found)

        if self.tsconfig.base_url is not None:
            found = self.probe(str(self.tsconfig.base_url / specifier))
            if found is not None:
                return ResolvedTarget(TargetKind.FILE, found)

        return ResolvedTarget(TargetKind.EXTERNAL_PACKAGE, specifier)

    def _alias_candidates(self, specifier: str):
        base = self.tsconfig.paths_base
        for pattern, targets in self._patterns:
            if "*" in pattern:
                prefix, _, suffix = pattern.partition("*")
                if not (specifier.startswith(prefix) and specifier.endswith(suffix)):
                    continue
                if len(specifier) < len(prefix) + len(suffix):
                    continue
                matched = specifier[len(prefix):len(specifier) - len(suffix)]
                for target in targets:
                    yield str(base / target.replace("*", matched, 1))
            elif pattern == specifier:
                for target in targets:
                    yield str(base / target)

    def _exists(self, path: str) -> bool:
        return os.path.isfile(path)
