"""Collision resolver: assigns every collected declaration a unique final name."""

from __future__ import annotations

import hashlib
import logging
import posixpath
import re
from collections.abc import Iterable, Mapping

from type_bundle.errors import NameAssignmentExhausted
from type_bundle.models import CollectedDeclaration, DeclKey, NameAssignment

logger = logging.getLogger(__name__)

_SOURCE_SUFFIXES = (
    ".d.ts", ".d.mts", ".d.cts", ".tsx", ".ts", ".mts", ".cts",
    ".jsx", ".js", ".mjs", ".cjs",
)
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_]")


def file_suffix(file_path: str) -> str:
    """Identifier-safe suffix derived from a file's base name."""
    base = posixpath.basename(file_path.replace("\\", "/"))
    for ext in _SOURCE_SUFFIXES:
        if base.endswith(ext):
            base = base[:-len(ext)]
            break
    suffix = _UNSAFE_RE.sub("_", base)
    if not suffix.strip("_"):
        suffix = hashlib.md5(file_path.encode("utf-8")).hexdigest()[:6]
    return suffix


class CollisionResolver:
    """Groups declarations by display name and disambiguates each group.

    Groups are processed in sorted name order and members in file path
    order; the first member keeps the bare name, the rest get
    `<name>_<file>` with `_1`, `_2`, ... appended while that is taken.
    Members listed in `privileged` sort ahead of the rest of their group.
    """

    def __init__(self, privileged: Iterable[DeclKey] = ()):
        self.privileged = set(privileged)

    def resolve(self, collected: Mapping[DeclKey, CollectedDeclaration]) -> NameAssignment:
        groups: dict[str, list[CollectedDeclaration]] = {}
        for decl in collected.values():
            groups.setdefault(decl.display_name, []).append(decl)

        assignment = NameAssignment()
        # Bare names are never handed out as suffixed names
        reserved = set(groups)

        for name in sorted(groups):
            members = sorted(
                groups[name],
                key=lambda d: (d.key not in self.privileged, d.file_path, d.name),
            )
            for i, decl in enumerate(members):
                if i == 0 and name not in assignment.used_names:
                    final_name = name
                else:
                    final_name = self._unique_name(name, decl.file_path, assignment.used_names, reserved)
                assignment.assign(decl.key, final_name)

            if len(members) > 1:
                logger.info(
                    "Name collision on %s: %s", name,
                    ", ".join(f"{d.file_path} -> {assignment[d.key]}" for d in members),
                )
        return assignment

    @staticmethod
    def _unique_name(name: str, file_path: str, used: set[str], reserved: set[str]) -> str:
        candidate = f"{name}_{file_suffix(file_path)}"
        if candidate not in used and candidate not in reserved:
            return candidate
        # At most len(used) + len(reserved) suffixes can be taken
        for counter in range(1, len(used) + len(reserved) + 2):
            numbered = f"{candidate}_{counter}"
            if numbered not in used and numbered not in reserved:
                return numbered
        raise NameAssignmentExhausted(name)
