"""Click CLI with bundle, batch, and scan subcommands."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from type_bundle.config import load_batch_config
from type_bundle.models import BundleConfig, BundleResult, EntryPoint
from type_bundle.pipeline import run_batch, run_bundle, run_scan


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _report(result: BundleResult, verbose: bool) -> None:
    for warning in result.warnings:
        click.echo(click.style(f"warning: {warning}", fg="yellow"), err=True)
    if verbose:
        for note in result.notes:
            click.echo(click.style(f"note: {note}", dim=True), err=True)
        for cycle in result.cycles:
            click.echo(click.style(f"cycle: {' -> '.join(cycle)}", dim=True), err=True)


def _progress(stage: str, current: int, total: int):
    if total > 0:
        click.echo(f"  {stage}: {current}/{total}", err=True, nl=(current == total))
    else:
        click.echo(f"  {stage}...", err=True)


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """type-bundle: Bundle a TypeScript type and everything it references into one file."""


@cli.command()
@click.option("-i", "--input", "input_file", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Entry file")
@click.option("-t", "--type", "type_name", required=True, help="Entry type name")
@click.option("-a", "--alias", help="Name to emit the entry type under")
@click.option("-o", "--output", default="-", help="Output file, '-' for stdout")
@click.option("-r", "--root", type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Project root (default: nearest tsconfig.json/package.json/.git)")
@click.option("--entry-keeps-name", is_flag=True, help="Entry type never gets a collision suffix")
@click.option("--no-globals", is_flag=True, help="Do not search .d.ts files for ambient declarations")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and cycle notes")
def bundle(
    input_file: Path,
    type_name: str,
    alias: str | None,
    output: str,
    root: Path | None,
    entry_keeps_name: bool,
    no_globals: bool,
    verbose: bool,
):
    """Bundle one type and its dependencies."""
    _setup_logging(verbose)
    config = BundleConfig(
        project_root=root,
        entry_keeps_name=entry_keeps_name,
        include_globals=not no_globals,
    )

    try:
        result = run_bundle([EntryPoint(str(input_file), type_name, alias)], config)
    except ValueError as e:
        raise click.ClickException(str(e))

    _report(result, verbose)
    if output == "-":
        click.echo(result.text, nl=False)
    else:
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.text, encoding="utf-8")
        click.echo(f"Wrote {len(result.entries)} declaration(s) to {out_path}", err=True)


@cli.command()
@click.option("-e", "--entry", "entry_specs", multiple=True, help="Entry point as FILE:TYPE[:ALIAS]")
@click.option("-c", "--config", "config_file",
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="YAML or JSON batch file")
@click.option("-d", "--output-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Output directory (default: bundles)")
@click.option("-r", "--root", type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Project root")
@click.option("--merge", is_flag=True, help="Write all entries into a single bundle")
@click.option("--entry-keeps-name", is_flag=True, help="Entry types never get a collision suffix")
@click.option("--no-globals", is_flag=True, help="Do not search .d.ts files for ambient declarations")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and cycle notes")
def batch(
    entry_specs: tuple[str, ...],
    config_file: Path | None,
    output_dir: Path | None,
    root: Path | None,
    merge: bool,
    entry_keeps_name: bool,
    no_globals: bool,
    verbose: bool,
):
    """Bundle several entry points, one file each."""
    _setup_logging(verbose)

    try:
        entries: list[EntryPoint] = []
        config = BundleConfig()
        default_output = Path("bundles")
        if config_file is not None:
            batch_config = load_batch_config(config_file)
            entries.extend(batch_config.entries)
            config = batch_config.bundle_config()
            default_output = batch_config.output_dir
        entries.extend(EntryPoint.parse(spec) for spec in entry_specs)
    except ValueError as e:
        raise click.ClickException(str(e))

    if not entries:
        raise click.UsageError("Specify at least one --entry or a --config file with entries")

    if root is not None:
        config.project_root = root
    if entry_keeps_name:
        config.entry_keeps_name = True
    if no_globals:
        config.include_globals = False
    output_dir = output_dir or default_output

    click.echo(f"Bundling {len(entries)} entry point(s) -> {output_dir}\n", err=True)
    try:
        result = run_batch(entries, output_dir, config, merge=merge, progress=_progress)
    except ValueError as e:
        raise click.ClickException(str(e))

    for bundle_result in result.results.values():
        _report(bundle_result, verbose)
    for _entry, reason in result.skipped:
        click.echo(click.style(f"skipped: {reason}", fg="yellow"), err=True)

    click.echo(f"\nDone! Created {len(result.files_created)} file(s) in {result.output_dir}")
    for f in result.files_created:
        click.echo(f"  {f}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-r", "--root", type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Project root")
def scan(file: Path, root: Path | None):
    """List the declarations, imports and re-exports of one file."""
    try:
        decls = run_scan(file, BundleConfig(project_root=root))
    except ValueError as e:
        raise click.ClickException(str(e))

    kind_color = {
        "enum": "bright_green",
        "interface": "cyan",
        "typeAlias": "green",
        "class": "yellow",
        "unknown": "white",
    }

    click.echo(click.style(str(file), fg="cyan"))
    if not decls.declarations:
        click.echo("  No declarations found.")
    for record in sorted(decls.declarations, key=lambda r: r.name):
        refs = ", ".join(sorted(record.referenced_names))
        click.echo(
            f"  {click.style(record.kind.value, fg=kind_color[record.kind.value]):>20}  "
            f"{record.name}"
            + (f"  {click.style('-> ' + refs, dim=True)}" if refs else "")
        )

    if decls.import_edges:
        click.echo("\nImports:")
        for edge in decls.import_edges:
            click.echo(
                f"  {edge.local_identifier} = {edge.exported_name} "
                f"from {edge.module_specifier!r} ({edge.import_style.value})"
            )

    if decls.re_exports:
        click.echo("\nRe-exports:")
        for edge in decls.re_exports:
            source = edge.module_specifier or "(local)"
            click.echo(f"  {edge.exported_name} = {edge.source_name} from {source}")

    if decls.default_export:
        click.echo(f"\nDefault export: {decls.default_export}")


if __name__ == "__main__":
    cli()
