"""Write bundle text to .d.ts files."""

from __future__ import annotations

import re
from pathlib import Path

from type_bundle.models import BatchResult, BundleResult, EntryPoint

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_]")


def bundle_file_name(entry: EntryPoint, taken: set[str] | None = None) -> str:
    """`<Alias or Type>.d.ts`, numbered `_2`, `_3`, ... when already taken."""
    stem = _UNSAFE_RE.sub("_", entry.output_name) or "bundle"
    name = f"{stem}.d.ts"
    if taken is None:
        return name
    counter = 2
    while name in taken:
        name = f"{stem}_{counter}.d.ts"
        counter += 1
    taken.add(name)
    return name


def write_bundle(text: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def export_bundles(
    bundles: list[tuple[EntryPoint, BundleResult]],
    output_dir: Path,
) -> BatchResult:
    """Write one file per bundle into output_dir."""
    output_dir.mkdir(parents=True, exist_ok=True)
    result = BatchResult(output_dir=output_dir)

    taken: set[str] = set()
    for entry, bundle in bundles:
        file_name = bundle_file_name(entry, taken)
        result.files_created.append(write_bundle(bundle.text, output_dir / file_name))
        result.results[file_name] = bundle

    return result
