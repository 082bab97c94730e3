"""KB Index CLI.

Commands:
- init: Initialize database schema
- ingest: Import one weekly workbook (XLSX/CSV)
- collect: Run the weekly collection for the current week
- status: Show whether the current week still needs collecting
- sample: Write a sample workbook in the publisher layout
- timeseries: Show a region's series, rebased or as published
- stats: Show the latest sample and week-over-week change for a region
- settings show|set: Inspect or replace the global rebasing settings
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
import math
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from kbindex.config import get_config
from kbindex.core.logging import configure_logging
from kbindex.db.connection import close_db, get_session, init_db
from kbindex.indexing.service import (
    get_region_statistics,
    get_user_settings,
    recalculate_indexes,
    update_user_settings,
)
from kbindex.indexing.weeks import current_week
from kbindex.ingestion.collector import WeeklyCollector
from kbindex.ingestion.workbook import write_sample_workbook
from kbindex.models import RebaseQuery, UserSettings

app = typer.Typer(
    name="kbindex",
    help="KB Index - weekly housing price indices with custom baselines",
    no_args_is_help=True,
)
settings_cli = typer.Typer(help="Global rebasing settings")
app.add_typer(settings_cli, name="settings")

web_cli = typer.Typer(help="Web API")
app.add_typer(web_cli, name="web")

console = Console()


def _run(coro):
    """Run a coroutine and dispose the engine afterwards."""

    async def _wrapped():
        try:
            return await coro
        finally:
            await close_db()

    return asyncio.run(_wrapped())


def _fmt(value: float) -> str:
    return f"{value:.2f}" if math.isfinite(value) else str(value)


def _print_failure(result) -> None:
    console.print(f"[red]✗[/red] {result.error_type}: {result.error}")


@app.callback()
def main():
    config = get_config()
    configure_logging(config.log_level, "text")


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")
    _run(init_db(drop=drop))
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def ingest(
    file: Path = typer.Argument(..., help="Weekly workbook (XLSX/CSV)"),
    week: str | None = typer.Option(None, "--week", help="Week key YYYYMMDD (default: current week)"),
):
    """Import one weekly workbook, replacing any rows already stored for that week."""
    week = week or current_week()
    console.print(f"[bold]Ingesting:[/bold] {file} as week {week}")

    result = _run(WeeklyCollector().ingest_file(file, week))

    if not result.success:
        _print_failure(result)
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓[/bold green] {result.data.record_count} records stored")
    if result.data.skipped_rows:
        console.print(f"[yellow]⚠[/yellow] {len(result.data.skipped_rows)} rows skipped")
        for err in result.data.skipped_rows[:5]:  # Show first 5 errors
            console.print(f"  {err}", style="dim")


@app.command()
def collect():
    """Run the weekly collection for the current week."""
    result = _run(WeeklyCollector().collect())

    if not result.success:
        _print_failure(result)
        raise typer.Exit(code=1)

    if result.data is None:
        console.print(f"[green]✓[/green] {result.message}")
    else:
        console.print(
            f"[bold green]✓[/bold green] Week {result.data.week}: "
            f"{result.data.record_count} records from {result.data.file_name}"
        )


@app.command()
def status():
    """Show whether the current week still needs collecting."""
    check = _run(WeeklyCollector().check_for_new_data())

    if check.has_new_data:
        console.print(f"[yellow]Pending:[/yellow] week {check.week}, expecting {check.file_name}")
    else:
        console.print(f"[green]✓[/green] Week {check.week} already collected")


@app.command()
def sample(
    path: Path = typer.Argument(..., help="Output workbook path"),
    week: str | None = typer.Option(None, "--week", help="Week key YYYYMMDD (default: current week)"),
):
    """Write a small sample workbook in the publisher layout."""
    write_sample_workbook(path, week or current_week())
    console.print(f"[green]✓[/green] Sample written to {path}")


@app.command()
def timeseries(
    region: str = typer.Argument(..., help="Region code"),
    start: str | None = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)"),
    end: str | None = typer.Option(None, "--end", help="End / reference date (YYYY-MM-DD)"),
    custom: bool | None = typer.Option(
        None, "--custom/--original", help="Rebase to a custom baseline or keep publisher values"
    ),
    years: int | None = typer.Option(None, "--years", min=1, max=10, help="Lookback in years"),
):
    """Show a region's series, rebased or as published."""

    async def _query():
        async with get_session() as session:
            return await recalculate_indexes(
                session,
                RebaseQuery(
                    region_code=region,
                    start_date=start,
                    end_date=end,
                    use_custom_base=custom,
                    base_period_years=years,
                ),
            )

    result = _run(_query())
    if not result.success:
        _print_failure(result)
        raise typer.Exit(code=1)

    points = result.data
    base = points[0].custom_base_date or points[0].base_date
    table = Table(title=f"{points[0].region_name} ({region}) - base {base} = 100")
    table.add_column("Week")
    table.add_column("Sale", justify="right")
    table.add_column("Lease", justify="right")
    table.add_column("Sale (rebased)", justify="right")
    table.add_column("Lease (rebased)", justify="right")

    for point in points:
        table.add_row(
            point.week,
            _fmt(point.original_sale_index),
            _fmt(point.original_lease_index),
            _fmt(point.recalculated_sale_index),
            _fmt(point.recalculated_lease_index),
        )

    console.print(table)
    console.print(f"[dim]{result.message}[/dim]")


@app.command()
def stats(region: str = typer.Argument(..., help="Region code")):
    """Show the latest sample and week-over-week change for a region."""

    async def _query():
        async with get_session() as session:
            return await get_region_statistics(session, region)

    result = _run(_query())
    if not result.success:
        _print_failure(result)
        raise typer.Exit(code=1)

    s = result.data
    console.print(f"[bold]{s.region_name}[/bold] ({s.region_code}) week {s.week}")
    console.print(f"  Sale index:  {_fmt(s.sale_index)} ({s.sale_change_rate:+.2f}%)")
    console.print(f"  Lease index: {_fmt(s.lease_index)} ({s.lease_change_rate:+.2f}%)")


@settings_cli.command("show")
def settings_show():
    """Show stored settings (created with defaults on first read)."""

    async def _query():
        async with get_session() as session:
            return await get_user_settings(session)

    result = _run(_query())
    if not result.success:
        _print_failure(result)
        raise typer.Exit(code=1)

    console.print(f"Base period years: {result.data.base_period_years}")
    console.print(f"Use custom base:   {result.data.use_custom_base}")


@settings_cli.command("set")
def settings_set(
    years: int = typer.Option(..., "--years", min=1, max=10, help="Lookback in years (1-10)"),
    custom: bool = typer.Option(True, "--custom/--original", help="Default rebasing mode"),
):
    """Replace the stored settings."""

    async def _update():
        async with get_session() as session:
            return await update_user_settings(
                session, UserSettings(base_period_years=years, use_custom_base=custom)
            )

    result = _run(_update())
    if not result.success:
        _print_failure(result)
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] {result.message}")


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(3001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"Starting KB Index API on http://{host}:{port}")
    uvicorn.run("kbindex.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
