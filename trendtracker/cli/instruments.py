"""Instrument management commands for Trend Tracker CLI.

Handles listing, adding, updating and removing instruments, and browsing
their stored candles.
"""

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from trendtracker.cli.common import console, error_panel, get_data_store


def _require_instrument(store, symbol: str):
    """Look up an instrument or exit with an error panel."""
    instrument = store.get_instrument_by_symbol(symbol)
    if instrument is None:
        error_panel(f"Instrument not found: {symbol.upper()}")
        raise SystemExit(1)
    return instrument


@click.group("instruments")
def instruments() -> None:
    """Manage tracked instruments.

    \b
    Examples:
      trendtracker instruments list
      trendtracker instruments add IBM "International Business Machines" --exchange NYSE
      trendtracker instruments show AAPL
      trendtracker instruments candles AAPL --limit 10
    """
    pass


@instruments.command("list")
@click.option("--exchange", default=None, help="Only instruments on this exchange.")
@click.option("--search", "term", default=None, help="Filter by symbol or name.")
@click.pass_context
def list_instruments(ctx: click.Context, exchange: Optional[str], term: Optional[str]) -> None:
    """List tracked instruments."""
    store = get_data_store(ctx)

    if term:
        items = store.search_instruments(term)
    elif exchange:
        items = store.instruments_by_exchange(exchange)
    else:
        items = store.list_instruments()

    if exchange and term:
        items = [i for i in items if i.exchange == exchange]

    if not items:
        console.print(Panel(
            "[dim]No instruments found. Use 'trendtracker seed' or "
            "'trendtracker instruments add' to create some.[/dim]",
            title="[bold]Instruments[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Instruments", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    table.add_column("Exchange")
    table.add_column("Updated", style="dim")

    for i, instrument in enumerate(items, 1):
        table.add_row(
            str(i),
            instrument.symbol,
            instrument.name,
            instrument.exchange or "-",
            instrument.updated_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(items)} instruments[/dim]")


@instruments.command("add")
@click.argument("symbol")
@click.argument("name")
@click.option("--exchange", default=None, help="Listing exchange.")
@click.pass_context
def add_instrument(ctx: click.Context, symbol: str, name: str, exchange: Optional[str]) -> None:
    """Track a new instrument."""
    store = get_data_store(ctx)

    if store.instrument_exists(symbol):
        console.print(f"[yellow]{symbol.upper()} is already tracked[/yellow]")
        return

    try:
        instrument = store.create_instrument(symbol, name, exchange)
    except ValueError as e:
        error_panel("Failed to add instrument:", e)
        raise SystemExit(1)

    console.print(f"[green]✓ Added {instrument.symbol} ({instrument.name})[/green]")


@instruments.command("update")
@click.argument("symbol")
@click.option("--name", default=None, help="New display name.")
@click.option("--exchange", default=None, help="New exchange.")
@click.pass_context
def update_instrument(
    ctx: click.Context, symbol: str, name: Optional[str], exchange: Optional[str]
) -> None:
    """Update an instrument's name or exchange."""
    if name is None and exchange is None:
        console.print("[yellow]Nothing to update (pass --name or --exchange)[/yellow]")
        return

    store = get_data_store(ctx)
    instrument = _require_instrument(store, symbol)
    updated = store.update_instrument(instrument.id, name=name, exchange=exchange)
    console.print(
        f"[green]✓ Updated {updated.symbol}: {updated.name} ({updated.exchange or '-'})[/green]"
    )


@instruments.command("remove")
@click.argument("symbol")
@click.pass_context
def remove_instrument(ctx: click.Context, symbol: str) -> None:
    """Stop tracking an instrument and delete its candles."""
    store = get_data_store(ctx)
    instrument = _require_instrument(store, symbol)
    removed = store.delete_instrument(instrument.id)
    console.print(f"[green]✓ Removed {instrument.symbol} and {removed} candles[/green]")


@instruments.command("show")
@click.argument("symbol")
@click.pass_context
def show_instrument(ctx: click.Context, symbol: str) -> None:
    """Show an instrument with its candle statistics."""
    store = get_data_store(ctx)
    instrument = _require_instrument(store, symbol)

    count = store.count_candles(instrument.id)
    timeframes = store.distinct_timeframes(instrument.id)
    latest = store.latest_candle(instrument.id)

    lines = [
        f"Name:       {instrument.name}",
        f"Exchange:   {instrument.exchange or '-'}",
        f"Candles:    {count}",
        f"Timeframes: {', '.join(timeframes) or '-'}",
        f"Created:    {instrument.created_at:%Y-%m-%d %H:%M}",
        f"Updated:    {instrument.updated_at:%Y-%m-%d %H:%M}",
    ]
    if latest:
        lines.append(f"Last close: {latest.close} @ {latest.timestamp:%Y-%m-%d %H:%M}")

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{instrument.symbol}[/bold]",
        border_style="cyan",
    ))


@instruments.command("candles")
@click.argument("symbol")
@click.option("-n", "--limit", default=20, type=click.IntRange(min=1), help="Candles per page.")
@click.option("-p", "--page", default=1, type=click.IntRange(min=1), help="Page number.")
@click.pass_context
def list_candles(ctx: click.Context, symbol: str, limit: int, page: int) -> None:
    """Show an instrument's candles, newest first."""
    store = get_data_store(ctx)
    instrument = _require_instrument(store, symbol)

    total = store.count_candles(instrument.id)
    candles = store.recent_candles(instrument.id, limit=limit, offset=(page - 1) * limit)

    if not candles:
        console.print(f"[dim]No candles for {instrument.symbol} on page {page}[/dim]")
        return

    table = Table(
        title=f"{instrument.symbol} Candles",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Time", style="dim")
    table.add_column("TF")
    table.add_column("Open", justify="right")
    table.add_column("High", justify="right")
    table.add_column("Low", justify="right")
    table.add_column("Close", justify="right")
    table.add_column("Volume", justify="right")

    for candle in candles:
        close_style = "green" if candle.close >= candle.open else "red"
        table.add_row(
            candle.timestamp.strftime("%Y-%m-%d %H:%M"),
            candle.timeframe,
            str(candle.open),
            str(candle.high),
            str(candle.low),
            f"[{close_style}]{candle.close}[/{close_style}]",
            f"{candle.volume:,}",
        )

    console.print(table)
    pages = (total + limit - 1) // limit
    console.print(f"\n[dim]Page {page} of {pages} ({total} candles)[/dim]")


@instruments.command("exchanges")
@click.pass_context
def list_exchanges(ctx: click.Context) -> None:
    """List the exchanges in use."""
    store = get_data_store(ctx)
    exchanges = store.distinct_exchanges()
    if not exchanges:
        console.print("[dim]No exchanges recorded[/dim]")
        return
    for exchange in exchanges:
        console.print(exchange)
