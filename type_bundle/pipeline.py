"""Bundling pipeline: walk -> name -> rewrite -> emit, plus batch and scan runs."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Callable

from type_bundle.bundler import (
    BundleEmitter,
    CollisionResolver,
    DependencyWalker,
    ReferenceRewriter,
    build_reference_graph,
    find_cycles,
)
from type_bundle.errors import BundleError, EntryNotFoundError, SessionReusedError
from type_bundle.exporter import export_bundles, generate_manifest, write_bundle
from type_bundle.index import DeclarationIndex, build_index
from type_bundle.models import (
    BatchResult,
    BundleConfig,
    BundleResult,
    DeclKey,
    EntryPoint,
    FileDeclarations,
)
from type_bundle.resolver import FileSystemResolver, ModuleResolver, find_project_root

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]

MERGED_FILE_NAME = "bundle.d.ts"


class BundlingSession:
    """One bundling invocation.

    A session owns its collected set and name assignment, so it can only be
    used once; concurrent requests each need their own session. The index and
    resolver may be shared, they only cache.
    """

    def __init__(
        self,
        index: DeclarationIndex,
        resolver: ModuleResolver,
        config: BundleConfig | None = None,
    ):
        self.index = index
        self.resolver = resolver
        self.config = config or BundleConfig()
        self._used = False

    def bundle(
        self,
        entries: list[EntryPoint],
        progress: ProgressCallback | None = None,
    ) -> BundleResult:
        if self._used:
            raise SessionReusedError()
        self._used = True
        if not entries:
            raise BundleError("No entry points given")

        # Stage 1: Walk
        walker = DependencyWalker(
            self.index, self.resolver, include_globals=self.config.include_globals,
        )
        entry_keys: list[DeclKey] = []
        walk = None
        for i, entry in enumerate(entries):
            if progress:
                progress("Walking", i, len(entries))
            if self.index.get_declarations(entry.file_path) is None:
                raise EntryNotFoundError(entry.file_path, entry.type_name, "file could not be read")
            walk = walker.walk(entry.file_path, entry.type_name, hint=entry.alias)
            if walk.entry_key is None:
                raise EntryNotFoundError(entry.file_path, entry.type_name)
            entry_keys.append(walk.entry_key)
        if progress:
            progress("Walking", len(entries), len(entries))

        # Stage 2: Name
        if progress:
            progress("Naming", 0, 1)
        privileged = entry_keys if self.config.entry_keeps_name else ()
        assignment = CollisionResolver(privileged).resolve(walk.collected)
        renamed = sum(1 for key in walk.collected if assignment.renamed(key))
        logger.info("Assigned %d name(s), %d renamed", len(walk.collected), renamed)

        # Stage 3: Rewrite
        if progress:
            progress("Rewriting", 0, 1)
        bundle_entries = ReferenceRewriter(assignment, walk.collected, walk.flattenings).rewrite_all()

        # Stage 4: Emit
        if progress:
            progress("Emitting", 0, 1)
        emitter = BundleEmitter(self.config.project_root)
        banner = _banner(entries, emitter, len(bundle_entries)) if self.config.banner else None
        text = emitter.emit(bundle_entries, banner)
        cycles = [
            [f"{emitter.display_path(file_path)}:{name}" for file_path, name in cycle]
            for cycle in find_cycles(build_reference_graph(walk.collected))
        ]
        if progress:
            progress("Emitting", 1, 1)

        return BundleResult(
            text=text,
            entries=bundle_entries,
            warnings=list(walk.warnings),
            notes=list(walk.notes),
            cycles=cycles,
            entry_points=list(entries),
        )


def _banner(entries: list[EntryPoint], emitter: BundleEmitter, count: int) -> list[str]:
    lines = []
    for entry in entries:
        line = f"Bundled: {entry.type_name} from {emitter.display_path(entry.file_path)}"
        if entry.alias:
            line += f" as {entry.alias}"
        lines.append(line)
    lines.append(f"Declarations: {count}")
    return lines


def prepare(
    entries: list[EntryPoint],
    config: BundleConfig | None = None,
) -> tuple[list[EntryPoint], BundleConfig, DeclarationIndex, ModuleResolver]:
    """Absolutize entries, settle the project root, and build the collaborators."""
    if not entries:
        raise BundleError("No entry points given")
    config = config or BundleConfig()

    resolved: list[EntryPoint] = []
    for entry in entries:
        path = Path(entry.file_path).expanduser()
        if not path.is_file():
            raise EntryNotFoundError(entry.file_path, entry.type_name, "file does not exist")
        resolved.append(dataclasses.replace(entry, file_path=str(path.resolve())))

    root = find_project_root(Path(resolved[0].file_path), config.project_root)
    config = dataclasses.replace(config, project_root=root)
    logger.info("Project root: %s", root)

    index = build_index(root, config.skip_dirs)
    resolver = FileSystemResolver(root, extensions=config.extensions)
    return resolved, config, index, resolver


def run_bundle(
    entries: list[EntryPoint],
    config: BundleConfig | None = None,
    progress: ProgressCallback | None = None,
) -> BundleResult:
    """Bundle one or more entry points into a single text."""
    entries, config, index, resolver = prepare(entries, config)
    return BundlingSession(index, resolver, config).bundle(entries, progress)


def run_batch(
    entries: list[EntryPoint],
    output_dir: Path,
    config: BundleConfig | None = None,
    merge: bool = False,
    progress: ProgressCallback | None = None,
) -> BatchResult:
    """Bundle each entry into its own file, or all of them into one with merge."""
    entries, config, index, resolver = prepare(entries, config)

    if merge:
        bundle = BundlingSession(index, resolver, config).bundle(entries, progress)
        output_dir.mkdir(parents=True, exist_ok=True)
        result = BatchResult(output_dir=output_dir)
        path = write_bundle(bundle.text, output_dir / MERGED_FILE_NAME)
        result.files_created.append(path)
        result.results[MERGED_FILE_NAME] = bundle
    else:
        bundles: list[tuple[EntryPoint, BundleResult]] = []
        skipped: list[tuple[EntryPoint, str]] = []
        for i, entry in enumerate(entries):
            if progress:
                progress("Bundling", i, len(entries))
            try:
                bundles.append((entry, BundlingSession(index, resolver, config).bundle([entry])))
            except EntryNotFoundError as e:
                logger.warning("Skipping %s: %s", entry.output_name, e)
                skipped.append((entry, str(e)))
        if progress:
            progress("Bundling", len(entries), len(entries))
        result = export_bundles(bundles, output_dir)
        result.skipped = skipped

    result.manifest_path = generate_manifest(result, config.project_root)
    result.files_created.append(result.manifest_path)
    return result


def run_scan(file_path: Path, config: BundleConfig | None = None) -> FileDeclarations:
    """Declarations, imports and re-exports the index sees in one file."""
    config = config or BundleConfig()
    if not file_path.is_file():
        raise BundleError(f"File not found: {file_path}")
    path = file_path.resolve()
    root = find_project_root(path, config.project_root)
    decls = build_index(root, config.skip_dirs).get_declarations(str(path))
    if decls is None:
        raise BundleError(f"Cannot index {file_path}")
    return decls
