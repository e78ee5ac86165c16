# Command line entry points for the trade engine
import asyncio
import json
import os
import click
from app_config import get_config, load_config
from broker_connector_base import ProcessedSignals, SchwabCredential, TradeSignal
from trade_engine.engine import TradeEngine
from trade_engine.logger import configure_root_logger
from trade_engine.redis_credential_store import RedisCredentialStore
from trade_engine.summary import format_summary

DEFAULT_CONFIG_PATH = "config.yaml"


async def _with_engine(config_path, action):
    load_config(config_path)
    config = get_config()
    configure_root_logger(config.logging)
    store = RedisCredentialStore(config.redis.url)
    try:
        return await action(TradeEngine(config, store))
    finally:
        await store.close()


def _run(ctx, action):
    return asyncio.run(_with_engine(ctx.obj["config_path"], action))


def _read_json(path):
    with open(path, "r") as f:
        return json.load(f)


@click.group()
@click.option(
    "--config", "config_path",
    default=lambda: os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH),
    show_default="CONFIG_PATH or config.yaml",
    help="Path to config.yaml"
)
@click.pass_context
def cli(ctx, config_path):
    """Brokerage trade engine CLI"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("portfolio_id", type=int)
@click.argument("signals_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def execute(ctx, portfolio_id, signals_file):
    """Reconcile a processed-signals JSON file against live positions and trade"""
    signals = ProcessedSignals.model_validate(_read_json(signals_file))
    summary = _run(ctx, lambda engine: engine.execute_trades(portfolio_id, signals))
    click.echo(format_summary(summary))


@cli.command("execute-actions")
@click.argument("portfolio_id", type=int)
@click.argument("actions_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def execute_actions(ctx, portfolio_id, actions_file):
    """Place a JSON list of trade actions as given"""
    actions = [TradeSignal.model_validate(item) for item in _read_json(actions_file)]
    summary = _run(ctx, lambda engine: engine.execute_trades_from_actions(portfolio_id, actions))
    click.echo(format_summary(summary))


@cli.command("run-all")
@click.argument("signals_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def run_all(ctx, signals_file):
    """Execute a processed-signals file for every stored portfolio"""
    signals = ProcessedSignals.model_validate(_read_json(signals_file))
    summaries = _run(ctx, lambda engine: engine.execute_for_all_portfolios(signals))
    for portfolio_id, summary in summaries.items():
        click.echo(format_summary(summary, title=f"Portfolio {portfolio_id}"))
        click.echo("")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.pass_context
def positions(ctx, portfolio_id):
    """Print live positions of a portfolio"""
    result = _run(ctx, lambda engine: engine.get_portfolio_positions(portfolio_id))
    if not result:
        click.echo("No positions")
    for position in result:
        click.echo(f"{position.symbol}: {position.long_quantity} shares")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.pass_context
def verify(ctx, portfolio_id):
    """Check that the portfolio's brokerage connection works"""
    status = _run(ctx, lambda engine: engine.verify_connection(portfolio_id))
    click.echo(status.message)
    if not status.ok:
        raise SystemExit(1)


@cli.command("connect-tradier")
@click.argument("portfolio_id", type=int)
@click.option("--api-key", prompt=True, hide_input=True, help="Tradier API key")
@click.option("--sandbox", is_flag=True, help="Use the Tradier sandbox")
@click.pass_context
def connect_tradier(ctx, portfolio_id, api_key, sandbox):
    """Bind a portfolio to a Tradier account"""
    credential = _run(ctx, lambda engine: engine.connect_tradier(portfolio_id, api_key, sandbox))
    click.echo(f"Connected portfolio {portfolio_id} to Tradier account {credential.account_id}")


@cli.command("save-schwab")
@click.argument("portfolio_id", type=int)
@click.argument("tokens_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def save_schwab(ctx, portfolio_id, tokens_file):
    """Store Schwab OAuth tokens from a JSON file"""
    credential = SchwabCredential.model_validate(_read_json(tokens_file))
    _run(ctx, lambda engine: engine.save_schwab_credentials(portfolio_id, credential))
    click.echo(f"Saved Schwab credentials for portfolio {portfolio_id}")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.pass_context
def disconnect(ctx, portfolio_id):
    """Remove a portfolio's brokerage binding"""
    _run(ctx, lambda engine: engine.disconnect(portfolio_id))
    click.echo(f"Disconnected portfolio {portfolio_id}")


if __name__ == "__main__":
    cli()
