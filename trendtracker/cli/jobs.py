"""Job commands for Trend Tracker CLI.

Runs the scheduler in the foreground or triggers a single job on demand.
"""

from datetime import timedelta
from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from trendtracker.cli.common import console, error_panel, get_data_store, get_settings
from trendtracker.models import TaskRun

STATUS_STYLES = {
    "succeeded": "green",
    "failed": "red",
    "skipped": "yellow",
}


def _build_scheduler(ctx: click.Context, blocking: bool = False):
    """Create the job scheduler from the loaded settings."""
    from apscheduler.schedulers.blocking import BlockingScheduler

    from trendtracker.scheduler import JobScheduler

    settings = get_settings(ctx)
    store = get_data_store(ctx)
    scheduler = None
    if blocking:
        kwargs = {}
        if settings.schedule.timezone:
            kwargs["timezone"] = settings.schedule.timezone
        scheduler = BlockingScheduler(**kwargs)
    return JobScheduler(store, settings, scheduler=scheduler)


def _print_run(run: TaskRun) -> None:
    """Render a task run as a panel."""
    style = STATUS_STYLES[run.status]
    lines = [f"[bold {style}]{run.status.upper()}[/bold {style}]"]
    for key, value in run.summary.items():
        lines.append(f"{key.replace('_', ' ').capitalize()}: {value}")
    if run.error:
        lines.append(f"\n[red]{run.error}[/red]")
    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{run.task}[/bold]",
        border_style=style,
    ))
    if run.status == "failed":
        raise SystemExit(1)


@click.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write a configuration template with the default settings."""
    from trendtracker.config import DEFAULT_CONFIG_PATH, create_template_config

    config_path: Optional[Path] = ctx.obj.get("config_path") or DEFAULT_CONFIG_PATH
    if config_path.exists() and not force:
        console.print(f"[yellow]{config_path} already exists (use --force to overwrite)[/yellow]")
        return

    path = create_template_config(config_path)
    console.print(f"[green]✓ Wrote configuration template to {path}[/green]")


@click.command("run")
@click.pass_context
def run_scheduler(ctx: click.Context) -> None:
    """Run the scheduler in the foreground until interrupted.

    \b
    Jobs:
      price_update    every N minutes (first run at start-up)
      retention       daily at the configured time
      trend_analysis  weekly on the configured day and time
    """
    job_scheduler = _build_scheduler(ctx, blocking=True)

    table = Table(title="Scheduled Jobs", show_header=True, header_style="bold cyan")
    table.add_column("Job", style="bold")
    table.add_column("Cadence")
    table.add_column("Next Run", style="dim")
    next_runs = job_scheduler.next_fire_times()
    for name, cadence in job_scheduler.cadences.items():
        table.add_row(name, str(cadence), next_runs[name].strftime("%Y-%m-%d %H:%M"))
    console.print(table)
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    try:
        job_scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        job_scheduler.shutdown(wait=False)
        console.print("[yellow]Scheduler stopped[/yellow]")


@click.command("tick")
@click.argument("symbol", required=False)
@click.pass_context
def tick(ctx: click.Context, symbol: Optional[str]) -> None:
    """Generate candles now instead of waiting for the next interval.

    With SYMBOL, only that instrument gets a new candle.

    \b
    Examples:
      trendtracker tick
      trendtracker tick AAPL
    """
    from trendtracker.scheduler import PRICE_UPDATE

    job_scheduler = _build_scheduler(ctx)

    if symbol is None:
        _print_run(job_scheduler.run_task(PRICE_UPDATE))
        return

    instrument = job_scheduler.store.get_instrument_by_symbol(symbol)
    if instrument is None:
        error_panel(f"Instrument not found: {symbol.upper()}")
        raise SystemExit(1)

    try:
        candle = job_scheduler.generator.generate(instrument)
    except Exception as e:
        error_panel(f"Failed to generate candle for {instrument.symbol}:", e)
        raise SystemExit(1)

    console.print(Panel(
        f"Open:   {candle.open}\n"
        f"High:   {candle.high}\n"
        f"Low:    {candle.low}\n"
        f"Close:  {candle.close}\n"
        f"Volume: {candle.volume:,}",
        title=f"[bold]{instrument.symbol} {candle.timeframe} @ "
              f"{candle.timestamp:%Y-%m-%d %H:%M:%S}[/bold]",
        border_style="green",
    ))


@click.command("purge")
@click.option(
    "-d", "--days",
    type=click.IntRange(min=1),
    default=None,
    help="Retention horizon in days (default: from configuration).",
)
@click.pass_context
def purge(ctx: click.Context, days: Optional[int]) -> None:
    """Delete candles older than the retention horizon now."""
    from trendtracker.scheduler import RETENTION

    job_scheduler = _build_scheduler(ctx)

    if days is None:
        _print_run(job_scheduler.run_task(RETENTION))
        return

    try:
        deleted = job_scheduler.retention.purge(timedelta(days=days))
    except Exception as e:
        error_panel("Failed to purge candles:", e)
        raise SystemExit(1)
    console.print(f"[green]✓ Deleted {deleted} candles older than {days} days[/green]")


@click.command("trends")
@click.pass_context
def trends(ctx: click.Context) -> None:
    """Summarize stored candle history per instrument now."""
    from trendtracker.scheduler import TREND_ANALYSIS

    job_scheduler = _build_scheduler(ctx)
    run = job_scheduler.run_task(TREND_ANALYSIS)
    if run.status != "succeeded":
        _print_run(run)
        return

    summaries = job_scheduler.last_trends
    if not summaries:
        console.print(Panel(
            "[dim]No instruments tracked yet. Run 'trendtracker seed' or 'trendtracker tick'.[/dim]",
            title="[bold]Trends[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Trend Summary", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    table.add_column("Candles", justify="right")
    table.add_column("Timeframes")
    table.add_column("Last Close", justify="right")
    table.add_column("Avg Close", justify="right")

    for i, summary in enumerate(summaries, 1):
        table.add_row(
            str(i),
            summary.symbol,
            summary.name,
            str(summary.candle_count),
            ", ".join(sorted(summary.timeframes)) or "-",
            str(summary.latest_close) if summary.latest_close is not None else "-",
            str(summary.average_close) if summary.average_close is not None else "-",
        )
    console.print(table)

    failed = run.summary.get("failed", 0)
    if failed:
        console.print(f"[yellow]{failed} instruments could not be summarized (see log)[/yellow]")


@click.command("seed")
@click.pass_context
def seed(ctx: click.Context) -> None:
    """Add the demonstration instruments that are not tracked yet."""
    from trendtracker.jobs import DEMO_INSTRUMENTS, seed_instruments

    store = get_data_store(ctx)
    try:
        created = seed_instruments(store)
    except Exception as e:
        error_panel("Failed to seed instruments:", e)
        raise SystemExit(1)

    console.print(Panel(
        f"[bold green]Seeding Complete[/bold green]\n\n"
        f"Added:   {created} instruments\n"
        f"Skipped: {len(DEMO_INSTRUMENTS) - created} (already tracked)",
        title="[bold]Seed[/bold]",
        border_style="green",
    ))
