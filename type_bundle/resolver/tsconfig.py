"""tsconfig.json loading and project root detection."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_ROOT_MARKERS = ("tsconfig.json", "package.json", ".git")
_MAX_ROOT_DEPTH = 10


@dataclass
class TsConfig:
    """The subset of compilerOptions the resolver needs."""
    config_dir: Path
    base_url: Path | None = None
    paths: dict[str, list[str]] = field(default_factory=dict)

    @property
    def paths_base(self) -> Path:
        return self.base_url or self.config_dir


def find_project_root(entry_file: Path, explicit_root: Path | None = None) -> Path:
    """Nearest ancestor of entry_file holding a project marker."""
    if explicit_root is not None:
        return explicit_root.resolve()
    current = entry_file.resolve().parent
    start = current
    for _ in range(_MAX_ROOT_DEPTH):
        if any((current / marker).exists() for marker in _ROOT_MARKERS):
            return current
        if current.parent == current:
            break
        current = current.parent
    return start


def strip_json_comments(text: str) -> str:
    """Remove // and /* */ comments and trailing commas outside of strings."""
    out: list[str] = []
    i = 0
    n = len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
        elif ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        elif ch in "}]":
            # Drop a trailing comma before the closing bracket
            j = len(out) - 1
            while j >= 0 and out[j].isspace():
                j -= 1
            if j >= 0 and out[j] == ",":
                del out[j]
            out.append(ch)
            i += 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _read_config(path: Path, seen: set[Path]) -> dict:
    path = path.resolve()
    if path in seen:
        logger.warning("Circular tsconfig extends at %s", path)
        return {}
    seen.add(path)
    data = json.loads(strip_json_comments(path.read_text(encoding="utf-8")))

    options: dict = {}
    extends = data.get("extends")
    if isinstance(extends, str) and extends.startswith("."):
        parent = (path.parent / extends)
        if parent.suffix != ".json":
            parent = parent.with_name(parent.name + ".json")
        if parent.exists():
            options = _read_config(parent, seen)
        else:
            logger.warning("tsconfig %s extends missing file %s", path, parent)

    merged = dict(options)
    own = data.get("compilerOptions") or {}
    # Relative options resolve against the file that declares them
    if "baseUrl" in own:
        merged["baseUrl"] = str((path.parent / own["baseUrl"]).resolve())
    if "paths" in own:
        merged["paths"] = own["paths"]
        merged["pathsDir"] = str(path.parent)
    return merged


def load_tsconfig(root: Path) -> TsConfig:
    """Load root/tsconfig.json; a missing or unreadable file yields defaults."""
    config_path = root / "tsconfig.json"
    config = TsConfig(config_dir=root)
    if not config_path.exists():
        return config
    try:
        options = _read_config(config_path, set())
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable %s: %s", config_path, e)
        return config

    if options.get("baseUrl"):
        config.base_url = Path(options["baseUrl"])
    if options.get("pathsDir"):
        config.config_dir = Path(options["pathsDir"])
    paths = options.get("paths") or {}
    config.paths = {
        pattern: [t for t in targets if isinstance(t, str)]
        for pattern, targets in paths.items()
        if isinstance(targets, list)
    }
    logger.debug("Loaded %s: baseUrl=%s, %d path alias(es)", config_path, config.base_url, len(config.paths))
    return config
