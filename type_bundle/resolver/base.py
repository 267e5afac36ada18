"""Abstract base module resolver with shared extension probing."""

from __future__ import annotations

import abc
import posixpath

from type_bundle.models import ResolvedTarget

DEFAULT_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".mts", ".cts")

# Specifier suffix written in ESM style -> source extensions to try instead
_JS_TO_TS = {
    ".js": (".ts", ".tsx", ".d.ts"),
    ".jsx": (".tsx",),
    ".mjs": (".mts", ".d.mts"),
    ".cjs": (".cts", ".d.cts"),
}


def is_relative(specifier: str) -> bool:
    return specifier in (".", "..") or specifier.startswith(("./", "../"))


class ModuleResolver(abc.ABC):
    """Resolves an import specifier relative to the importing file."""

    pathmod = posixpath

    def __init__(self, extensions: tuple[str, ...] | list[str] | None = None):
        self.extensions = tuple(extensions or DEFAULT_EXTENSIONS)

    @abc.abstractmethod
    def resolve(self, from_file: str, specifier: str) -> ResolvedTarget:
        """Resolve specifier as imported from from_file."""

    @abc.abstractmethod
    def _exists(self, path: str) -> bool:
        """True if path names an indexable file."""

    def probe(self, candidate: str) -> str | None:
        """Find the file a module path refers to, trying extensions and index files."""
        candidate = self.pathmod.normpath(candidate)
        if candidate.endswith(self.extensions) and self._exists(candidate):
            return candidate

        for js_ext, ts_exts in _JS_TO_TS.items():
            if candidate.endswith(js_ext):
                stem = candidate[:-len(js_ext)]
                for ext in ts_exts:
                    if self._exists(stem + ext):
                        return stem + ext

        for ext in self.extensions:
            if self._exists(candidate + ext):
                return candidate + ext

        for ext in self.extensions:
            index_file = self.pathmod.join(candidate, "index" + ext)
            if self._exists(index_file):
                return index_file

        return None
