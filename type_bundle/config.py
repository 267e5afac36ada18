"""Batch configuration files (YAML or JSON), validated with pydantic."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from type_bundle.errors import BundleError
from type_bundle.models import BundleConfig, EntryPoint

logger = logging.getLogger(__name__)


class EntrySettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    file: str
    type_name: str = Field(alias="type", pattern=r"^[A-Za-z_$][\w$]*$")
    alias: str | None = Field(default=None, pattern=r"^[A-Za-z_$][\w$]*$")


class BatchSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    root: str | None = None
    output_dir: str = "bundles"
    entry_keeps_name: bool = False
    include_globals: bool = True
    entries: list[EntrySettings] = Field(default_factory=list)


class BatchConfig:
    """A loaded batch file with its paths resolved against the file's directory."""

    def __init__(self, settings: BatchSettings, base_dir: Path):
        self.settings = settings
        self.base_dir = base_dir

    def _path(self, value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else (self.base_dir / path)

    @property
    def output_dir(self) -> Path:
        return self._path(self.settings.output_dir)

    @property
    def entries(self) -> list[EntryPoint]:
        return [
            EntryPoint(str(self._path(e.file)), e.type_name, e.alias)
            for e in self.settings.entries
        ]

    def bundle_config(self) -> BundleConfig:
        return BundleConfig(
            project_root=self._path(self.settings.root) if self.settings.root else None,
            entry_keeps_name=self.settings.entry_keeps_name,
            include_globals=self.settings.include_globals,
        )


def load_batch_config(path: Path) -> BatchConfig:
    """Read a .yaml/.yml/.json batch file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise BundleError(f"Cannot read config {path}: {e}") from e

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise BundleError(f"Cannot parse config {path}: {e}") from e

    try:
        settings = BatchSettings.model_validate(data or {})
    except ValidationError as e:
        raise BundleError(f"Invalid config {path}:\n{e}") from e

    logger.debug("Loaded %d entry point(s) from %s", len(settings.entries), path)
    return BatchConfig(settings, path.resolve().parent)
