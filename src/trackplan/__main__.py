from trackplan.cli import cli

cli()
