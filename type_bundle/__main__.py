from type_bundle.cli import cli

cli()
