"""Reference rewriter: applies final names to declaration headers and references."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping

from type_bundle.models import (
    BundleEntry,
    CollectedDeclaration,
    DeclKey,
    NameAssignment,
    NamespaceFlattening,
)

logger = logging.getLogger(__name__)

_DECL_KEYWORDS = r"(?:interface|type|class|enum|namespace|module)"
_KEYWORD_BEFORE_RE = re.compile(rf"\b{_DECL_KEYWORDS}\s+$")

Edit = tuple[int, int, str]


def token_pattern(name: str) -> re.Pattern[str]:
    """Whole-token pattern for a plain or dotted identifier."""
    body = r"\s*\.\s*".join(re.escape(part) for part in name.split("."))
    return re.compile(rf"(?<![\w$.]){body}(?![\w$])")


def apply_edits(text: str, edits: Iterable[Edit]) -> str:
    """Apply non-overlapping (start, end, replacement) edits, last offset first."""
    accepted: list[Edit] = []
    last_end = -1
    # Longest edit wins when two start at the same offset
    for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[0] - e[1])):
        if start < last_end:
            continue
        accepted.append((start, end, replacement))
        last_end = end
    for start, end, replacement in reversed(accepted):
        text = text[:start] + replacement + text[end:]
    return text


class ReferenceRewriter:
    """Rewrites declaration text against a NameAssignment.

    References recorded as bindings by the walker map straight to their
    target's final name. Unbound references fall back to a locality
    preference: a same-file declaration first, then the group member that
    kept the bare name, then the first member by file path.
    """

    def __init__(
        self,
        assignment: NameAssignment,
        collected: Mapping[DeclKey, CollectedDeclaration],
        flattenings: Iterable[NamespaceFlattening] = (),
    ):
        self.assignment = assignment
        self.collected = collected
        self.flattened = {
            (f.file_path, f.qualified_name): f.flattened_name for f in flattenings
        }
        self.groups: dict[str, list[CollectedDeclaration]] = {}
        for decl in collected.values():
            self.groups.setdefault(decl.display_name, []).append(decl)
        for members in self.groups.values():
            members.sort(key=lambda d: (d.file_path, d.name))

    def rewrite_all(self) -> list[BundleEntry]:
        return [
            BundleEntry(
                file_path=decl.file_path,
                original_name=decl.name,
                final_name=self.assignment[decl.key],
                kind=decl.kind,
                rewritten_text=self.rewrite(decl),
            )
            for decl in self.collected.values()
        ]

    def rewrite(self, decl: CollectedDeclaration) -> str:
        text = decl.record.raw_text
        edits: list[Edit] = []

        header = self._header_span(decl)
        final_name = self.assignment[decl.key]
        if final_name != decl.name:
            if header is None:
                logger.debug("No header for %s in %s, name left as is", decl.name, decl.file_path)
            else:
                edits.append((header[0], header[1], final_name))

        if decl.record.reference_spans:
            for span in decl.record.reference_spans:
                if header is not None and span.start < header[1] and span.end > header[0]:
                    continue
                replacement = self._replacement(decl, span.name)
                if replacement is not None:
                    edits.append((span.start, span.end, replacement))
        else:
            for name in self._candidate_names(decl):
                replacement = self._replacement(decl, name)
                if replacement is None:
                    continue
                for m in token_pattern(name).finditer(text):
                    if header is not None and m.start() < header[1] and m.end() > header[0]:
                        continue
                    if _KEYWORD_BEFORE_RE.search(text, max(0, m.start() - 40), m.start()):
                        continue
                    edits.append((m.start(), m.end(), replacement))

        return apply_edits(text, edits)

    # ── Helpers ────────────────────────────────────────────────

    def _header_span(self, decl: CollectedDeclaration) -> tuple[int, int] | None:
        if decl.record.name_span is not None:
            return decl.record.name_span
        m = re.search(
            rf"\b{_DECL_KEYWORDS}\s+({re.escape(decl.name)})(?![\w$])",
            decl.record.raw_text,
        )
        return m.span(1) if m else None

    def _candidate_names(self, decl: CollectedDeclaration) -> list[str]:
        names = set(decl.record.referenced_names) | set(decl.bindings)
        for other in self.collected.values():
            if other.key != decl.key and self.assignment[other.key] != other.name:
                names.add(other.name)
                names.add(other.display_name)
        names.update(q for (f, q) in self.flattened if f == decl.file_path)
        return sorted(names, key=lambda n: (-len(n), n))

    def _replacement(self, decl: CollectedDeclaration, name: str) -> str | None:
        """New text for a reference to name inside decl, or None to keep it."""
        target = decl.bindings.get(name)
        target_final = self.assignment.final_names.get(target) if target else None

        if "." in name:
            flattened = self.flattened.get((decl.file_path, name))
            if flattened is not None:
                return target_final or self._preferred_final(decl, flattened) or flattened
            head, _, rest = name.partition(".")
            head_final = target_final or self._preferred_final(decl, head)
            if head_final is None or head_final == head:
                return None
            return f"{head_final}.{rest}"

        final_name = target_final or self._preferred_final(decl, name)
        if final_name is None or final_name == name:
            return None
        return final_name

    def _preferred_final(self, decl: CollectedDeclaration, name: str) -> str | None:
        """Final name of the declaration an unbound reference to name means."""
        local = self.collected.get((decl.file_path, name))
        if local is not None:
            return self.assignment[local.key]

        members = self.groups.get(name)
        if not members:
            return None
        for member in members:
            if member.file_path == decl.file_path:
                return self.assignment[member.key]
        for member in members:
            if self.assignment[member.key] == name:
                return name
        return self.assignment[members[0].key]
