"""Abstract base declaration index."""

from __future__ import annotations

import abc
import fnmatch
from pathlib import Path

from type_bundle.models import DeclarationRecord, FileDeclarations


class DeclarationIndex(abc.ABC):
    """Per-file declaration records consumed by the walker."""

    extensions: tuple[str, ...] = ()

    def __init__(self, skip_dirs: list[str] | None = None):
        self.skip_dirs = skip_dirs or [
            "node_modules", ".git", "dist", "build", ".next", "coverage",
        ]

    @abc.abstractmethod
    def get_declarations(self, file_path: str) -> FileDeclarations | None:
        """Return the declarations of a file, or None if it cannot be indexed."""

    def find_global(self, name: str) -> DeclarationRecord | None:
        """Look up an ambient declaration visible without an import."""
        return None

    def iter_source_files(self, directory: Path, suffixes: tuple[str, ...] | None = None):
        """Yield indexable files under directory in sorted order."""
        suffixes = suffixes or self.extensions
        for path in sorted(directory.rglob("*")):
            if path.is_dir():
                continue
            if self._should_skip(path.relative_to(directory)):
                continue
            if path.name.endswith(suffixes):
                yield path

    def _should_skip(self, path: Path) -> bool:
        for part in path.parts:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False
