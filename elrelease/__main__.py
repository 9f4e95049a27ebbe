from elrelease.cli import cli

cli()
