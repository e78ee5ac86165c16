from trade_engine.cli import cli

cli()
