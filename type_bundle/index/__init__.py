"""Declaration index implementations."""

from __future__ import annotations

from pathlib import Path

from type_bundle.index.base import DeclarationIndex
from type_bundle.index.builtins import is_basic_or_utility_type
from type_bundle.index.memory import InMemoryIndex


def build_index(root: Path | None = None, skip_dirs: list[str] | None = None) -> DeclarationIndex:
    """Create the tree-sitter backed index for a project root."""
    from type_bundle.index.typescript import TypeScriptIndex

    return TypeScriptIndex(root=root, skip_dirs=skip_dirs)


__all__ = [
    "DeclarationIndex",
    "InMemoryIndex",
    "build_index",
    "is_basic_or_utility_type",
]
