"""Command-line interface for Coin Whisperer."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from coinwhisperer.config.settings import get_settings
from coinwhisperer.core.errors import CoinWhispererError
from coinwhisperer.core.types import Coin, Trade, TradeType
from coinwhisperer.storage import Store, create_store

app = typer.Typer(
    name="coinwhisperer",
    help="Coin Whisperer - crypto social sentiment dashboard with simulated trading",
    add_completion=False,
)

console = Console()

# Sub-commands
coins_app = typer.Typer(help="Coin management commands")
trades_app = typer.Typer(help="Trade commands")
config_app = typer.Typer(help="Trading config and settings commands")
stats_app = typer.Typer(help="Dashboard statistics commands")
db_app = typer.Typer(help="Database commands")

app.add_typer(coins_app, name="coins")
app.add_typer(trades_app, name="trades")
app.add_typer(config_app, name="config")
app.add_typer(stats_app, name="stats")
app.add_typer(db_app, name="db")


def run_async(coro):
    """Run an async function, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except CoinWhispererError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


@asynccontextmanager
async def open_store(writes: bool = False) -> AsyncIterator[Store]:
    """
    Connect the configured store for the duration of a command.

    Args:
        writes: The command changes data, which the memory backend would
            drop as soon as the command exits
    """
    settings = get_settings()
    if writes and settings.storage.backend == "memory":
        raise CoinWhispererError(
            "The memory backend keeps nothing between commands; "
            "set storage.backend to sql or document to save changes"
        )
    async with create_store(settings) as store:
        yield store


def _coin_table(coins: list[Coin], title: str = "Coins") -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("24h %", justify="right")
    table.add_column("Tracked")

    for coin in coins:
        change = coin.price_change_percentage
        color = "green" if change >= 0 else "red"
        table.add_row(
            str(coin.id),
            coin.symbol,
            coin.name,
            f"{coin.current_price}",
            f"[{color}]{change:+}[/{color}]",
            "✓" if coin.is_tracked else "",
        )
    return table


def _trade_table(trades: list[Trade]) -> Table:
    table = Table(title="Trades")
    table.add_column("ID", justify="right")
    table.add_column("Time")
    table.add_column("Type")
    table.add_column("Coin", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Sentiment", justify="right")
    table.add_column("Threshold", justify="right")

    for trade in trades:
        color = "green" if trade.type == TradeType.BUY else "red"
        table.add_row(
            str(trade.id),
            trade.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{color}]{trade.type}[/{color}]",
            trade.coin_symbol,
            f"{trade.amount}",
            f"{trade.price}",
            f"{trade.sentiment_score:.2f}",
            "-" if trade.threshold is None else f"{trade.threshold:.2f}",
        )
    return table


# =============================================================================
# Server and Analysis
# =============================================================================


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
):
    """Start the HTTP and websocket server."""
    import uvicorn

    from coinwhisperer.api import create_app

    settings = get_settings()
    host = host or settings.server.host
    port = port or settings.server.port

    console.print(f"[bold]Serving Coin Whisperer on http://{host}:{port}[/bold]")
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level=settings.logging_config.level.lower(),
    )


@app.command()
def analyze(
    latency: Optional[float] = typer.Option(
        None, "--latency", help="Override the simulated feed latency (seconds)"
    ),
):
    """Fetch one batch of posts, score them and trade on them."""
    from coinwhisperer.ingestion import AnalysisService, MockPostFeed
    from coinwhisperer.trading import TradeService

    settings = get_settings()
    ingestion = settings.ingestion

    async def _analyze():
        async with open_store() as store:
            feed = MockPostFeed(
                min_batch=ingestion.min_batch,
                max_batch=ingestion.max_batch,
                latency_seconds=ingestion.latency_seconds if latency is None else latency,
            )
            service = AnalysisService(
                store,
                feed,
                trades=TradeService(store, base_amount=settings.trading.base_amount),
                sentiment_window=settings.trading.sentiment_window,
            )
            return await service.run_once(timeout=ingestion.timeout_seconds)

    report = run_async(_analyze())

    table = Table(title="Analysis")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in report.to_dict().items():
        table.add_row(key.replace("_", " ").title(), "-" if value is None else str(value))
    console.print(table)


# =============================================================================
# Coin Commands
# =============================================================================


@coins_app.command("list")
def coins_list(
    tracked: bool = typer.Option(False, "--tracked", "-t", help="Only tracked coins"),
):
    """List coins."""

    async def _list():
        async with open_store() as store:
            return await store.list_coins(tracked_only=tracked)

    console.print(_coin_table(run_async(_list())))


@coins_app.command("add")
def coins_add(symbol: str = typer.Argument(..., help="Coin symbol, e.g. WIF")):
    """Add a tracked coin."""
    from coinwhisperer.market import CoinService

    async def _add():
        async with open_store(writes=True) as store:
            return await CoinService(store).add_coin(symbol)

    coin = run_async(_add())
    console.print(f"[green]✓ Added {coin.symbol} ({coin.name})[/green]")


def _set_tracked(key: str, tracked: bool) -> Coin:
    from coinwhisperer.market import CoinService

    async def _update():
        async with open_store(writes=True) as store:
            return await CoinService(store).set_tracked(key, tracked)

    return run_async(_update())


@coins_app.command("track")
def coins_track(key: str = typer.Argument(..., help="Coin symbol or id")):
    """Start tracking a coin."""
    coin = _set_tracked(key, True)
    console.print(f"[green]✓ Tracking {coin.symbol}[/green]")


@coins_app.command("untrack")
def coins_untrack(key: str = typer.Argument(..., help="Coin symbol or id")):
    """Stop tracking a coin."""
    coin = _set_tracked(key, False)
    console.print(f"[yellow]Stopped tracking {coin.symbol}[/yellow]")


# =============================================================================
# Trade Commands
# =============================================================================


@trades_app.command("list")
def trades_list(
    limit: int = typer.Option(50, "--limit", "-n", help="Number of trades"),
):
    """List the most recent trades."""

    async def _list():
        async with open_store() as store:
            return await store.list_trades(limit=limit)

    trades = run_async(_list())
    if not trades:
        console.print("[yellow]No trades yet[/yellow]")
        return
    console.print(_trade_table(trades))


@trades_app.command("place")
def trades_place(
    symbol: str = typer.Argument(..., help="Coin symbol"),
    trade_type: str = typer.Argument(..., metavar="TYPE", help="BUY or SELL"),
    amount: str = typer.Argument(..., help="Amount in currency units"),
):
    """Place a manual trade at the coin's current price."""
    from coinwhisperer.trading import TradeService

    settings = get_settings()

    async def _place():
        async with open_store(writes=True) as store:
            service = TradeService(store, base_amount=settings.trading.base_amount)
            return await service.place_manual_trade(symbol, trade_type, amount)

    trade = run_async(_place())
    console.print(
        f"[green]✓ {trade.type} {trade.amount} {trade.coin_symbol} "
        f"@ {trade.price} (trade #{trade.id})[/green]"
    )


# =============================================================================
# Config Commands
# =============================================================================


@config_app.command("show")
def config_show():
    """Show the trading config stored in the backend."""

    async def _show():
        async with open_store() as store:
            return await store.get_config()

    config = run_async(_show())
    console.print("[bold]Trading config:[/bold]")
    for key, value in config.to_dict().items():
        console.print(f"  {key}: {value}")


@config_app.command("set")
def config_set(
    buy_threshold: Optional[float] = typer.Option(None, "--buy-threshold"),
    sell_threshold: Optional[float] = typer.Option(None, "--sell-threshold"),
    auto_trading: Optional[bool] = typer.Option(
        None, "--auto-trading/--no-auto-trading"
    ),
    notifications: Optional[bool] = typer.Option(
        None, "--notifications/--no-notifications"
    ),
    risk_level: Optional[str] = typer.Option(None, "--risk-level", help="Low, Medium, High"),
):
    """Update trading config fields; unspecified fields keep their value."""
    changes = {
        name: value
        for name, value in {
            "buy_threshold": buy_threshold,
            "sell_threshold": sell_threshold,
            "auto_trading": auto_trading,
            "notifications": notifications,
            "risk_level": risk_level,
        }.items()
        if value is not None
    }
    if not changes:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(code=1)

    async def _set():
        async with open_store(writes=True) as store:
            return await store.update_config(changes)

    config = run_async(_set())
    console.print("[green]✓ Trading config updated[/green]")
    for key, value in config.to_dict().items():
        console.print(f"  {key}: {value}")


@config_app.command("validate")
def config_validate():
    """Validate the configuration files."""
    settings = get_settings()
    problems = settings.validate()
    if problems:
        for problem in problems:
            console.print(f"[red]Configuration error: {escape(problem)}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ Configuration in {settings.config_dir} is valid[/green]")


# =============================================================================
# Stats Commands
# =============================================================================


def _print_stats(stats) -> None:
    console.print("[bold]Stats:[/bold]")
    for key, value in stats.to_dict().items():
        console.print(f"  {key}: {value}")


@stats_app.command("show")
def stats_show():
    """Show dashboard statistics."""

    async def _show():
        async with open_store() as store:
            return await store.get_stats()

    _print_stats(run_async(_show()))


@stats_app.command("refresh")
def stats_refresh():
    """Recompute tracked coin and trade counts."""

    async def _refresh():
        async with open_store() as store:
            return await store.refresh_stats()

    _print_stats(run_async(_refresh()))


# =============================================================================
# Database Commands
# =============================================================================


@db_app.command("init")
def db_init():
    """Create the SQL tables for the configured database."""
    from sqlalchemy.exc import SQLAlchemyError

    from coinwhisperer.core.errors import StorageError
    from coinwhisperer.storage.sql import Database

    storage = get_settings().storage
    if storage.backend != "sql":
        console.print(
            f"[yellow]Storage backend is '{storage.backend}', nothing to initialise[/yellow]"
        )
        raise typer.Exit(code=1)

    async def _init():
        database = Database(storage.sql_url)
        try:
            await database.create_all()
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot create tables: {e}") from e
        finally:
            await database.close()

    run_async(_init())
    console.print("[green]✓ Database tables created[/green]")


@db_app.command("backends")
def db_backends():
    """List the available storage backends."""
    from coinwhisperer.storage import document, memory  # noqa: F401
    from coinwhisperer.storage import store_registry
    from coinwhisperer.storage.sql import store  # noqa: F401

    current = get_settings().storage.backend
    table = Table(title="Storage backends")
    table.add_column("Name", style="cyan")
    table.add_column("Class")
    table.add_column("Description")

    for name, info in store_registry.list_with_metadata().items():
        marker = " (configured)" if name == current else ""
        table.add_row(f"{name}{marker}", info["class"], info["description"])
    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================


@app.command()
def version():
    """Show version information."""
    from coinwhisperer import __version__
    console.print(f"Coin Whisperer v{__version__}")


@app.callback()
def main(
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir", "-c", help="Directory holding settings.yaml and coins.yaml"
    ),
):
    """
    Coin Whisperer

    Crypto social sentiment dashboard with simulated, threshold-driven trading.
    """
    try:
        get_settings(config_dir).setup_logging()
    except (yaml.YAMLError, ValueError) as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
