from pangrowth.main import cli

cli()
