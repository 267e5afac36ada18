"""Generate manifest.json for batch runs."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from type_bundle.models import BatchResult, EntryPoint


def _entry_dict(entry: EntryPoint) -> dict:
    return {"file": entry.file_path, "type": entry.type_name, "alias": entry.alias}


def generate_manifest(result: BatchResult, project_root: Path | None = None) -> Path:
    """Write manifest.json summarizing every bundle in the batch."""
    bundles = []
    for file_name, bundle in result.results.items():
        bundles.append({
            "file": file_name,
            "entry_points": [_entry_dict(e) for e in bundle.entry_points],
            "declarations": len(bundle.entries),
            "renamed": sorted(
                f"{e.original_name} -> {e.final_name}"
                for e in bundle.entries if e.final_name != e.original_name
            ),
            "warnings": [str(w) for w in bundle.warnings],
            "cycles": bundle.cycles,
        })

    manifest = {
        "version": "1.0",
        "generated": datetime.now().isoformat(),
        "project_root": str(project_root) if project_root else None,
        "output_directory": str(result.output_dir),
        "total_bundles": len(bundles),
        "bundles": bundles,
        "skipped": [
            {**_entry_dict(entry), "reason": reason}
            for entry, reason in result.skipped
        ],
        "files_created": [str(f) for f in result.files_created],
    }

    manifest_path = result.output_dir / "manifest.json"
    manifest_path.write_text(
        json.dumps(manifest, indent=2) + "\n",
        encoding="utf-8",
    )
    return manifest_path
