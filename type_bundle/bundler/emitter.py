"""Serialize rewritten declarations into one grouped, deterministic bundle."""

from __future__ import annotations

import os.path
from collections.abc import Iterable
from pathlib import Path, PurePath

from type_bundle.models import BundleEntry, DeclarationKind

GROUP_ORDER: list[tuple[DeclarationKind, str]] = [
    (DeclarationKind.ENUM, "Enums"),
    (DeclarationKind.INTERFACE, "Interfaces"),
    (DeclarationKind.TYPE_ALIAS, "Type Aliases"),
    (DeclarationKind.CLASS, "Classes"),
    (DeclarationKind.UNKNOWN, "Other Declarations"),
]


class BundleEmitter:
    """Groups entries by kind and sorts each group by final name.

    Output depends only on the entries, never on their input order, so the
    same collected set always produces byte-identical text.
    """

    def __init__(self, root: Path | None = None):
        self.root = root

    def emit(self, entries: Iterable[BundleEntry], banner: list[str] | None = None) -> str:
        by_kind: dict[DeclarationKind, list[BundleEntry]] = {}
        for entry in entries:
            by_kind.setdefault(entry.kind, []).append(entry)

        sections: list[str] = []
        if banner:
            sections.append("\n".join(f"// {line}" for line in banner))

        for kind, title in GROUP_ORDER:
            group = by_kind.get(kind)
            if not group:
                continue
            group.sort(key=lambda e: (e.final_name, e.file_path, e.original_name))
            blocks = [f"// ===== {title} ====="]
            for entry in group:
                blocks.append(
                    f"// {entry.original_name} from {self.display_path(entry.file_path)}\n"
                    f"{entry.rewritten_text.rstrip()}"
                )
            sections.append("\n\n".join(blocks))

        if not sections:
            return ""
        return "\n\n".join(sections) + "\n"

    def display_path(self, file_path: str) -> str:
        """Path relative to the project root when inside it, always with '/'."""
        if self.root is not None:
            root = str(self.root)
            try:
                rel = os.path.relpath(file_path, root)
            except ValueError:
                # Different drive on Windows
                rel = file_path
            if not rel.startswith(".."):
                return PurePath(rel).as_posix()
        return file_path.replace("\\", "/")
