from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_overview, render_records, render_refresh, render_series


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Terminal view of the trash-rake monitoring dashboard.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _filters(
    start: Optional[str], end: Optional[str], trash: Optional[str], level: Optional[str]
) -> Dict[str, str]:
    filters: Dict[str, str] = {}
    if start:
        filters["start_date"] = start
    if end:
        filters["end_date"] = end
    if trash:
        filters["trash"] = trash.upper()
    if level:
        filters["level"] = level.upper()
    return filters


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("overview")
def overview_command(ctx: typer.Context) -> None:
    """Show the newest reading and its derived alerts."""
    state = _get_state(ctx)
    render_overview(state.client.get_overview())


@app.command("series")
def series_command(
    ctx: typer.Context,
    day: Optional[str] = typer.Option(
        None, "--day", "-d", help="Drill into one day (DD-MM-YYYY) instead of the daily view."
    ),
) -> None:
    """Show detection counts, the level trend and depth history."""
    state = _get_state(ctx)
    render_series(state.client.get_series(day))


@app.command("log")
def log_command(
    ctx: typer.Context,
    start: Optional[str] = typer.Option(None, "--start", help="Earliest day, YYYY-MM-DD."),
    end: Optional[str] = typer.Option(None, "--end", help="Latest day, YYYY-MM-DD."),
    trash: Optional[str] = typer.Option(None, "--trash", help="DETECTED or 'NOT DETECTED'."),
    level: Optional[str] = typer.Option(None, "--level", help="LOW, NORMAL or HIGH."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Rows to show, newest first."),
) -> None:
    """List the filtered sensor log."""
    state = _get_state(ctx)
    records = state.client.get_records(_filters(start, end, trash, level))
    render_records(records[:limit])
    if len(records) > limit:
        typer.echo(f"... {len(records) - limit} more")


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="Destination file (defaults to the server's name)."
    ),
    start: Optional[str] = typer.Option(None, "--start", help="Earliest day, YYYY-MM-DD."),
    end: Optional[str] = typer.Option(None, "--end", help="Latest day, YYYY-MM-DD."),
    trash: Optional[str] = typer.Option(None, "--trash", help="DETECTED or 'NOT DETECTED'."),
    level: Optional[str] = typer.Option(None, "--level", help="LOW, NORMAL or HIGH."),
) -> None:
    """Save the filtered sensor log as CSV."""
    state = _get_state(ctx)
    filename, content = state.client.export_records(_filters(start, end, trash, level))
    target = output or Path(filename)
    target.write_text(content, encoding="utf-8")
    typer.secho(f"Exported to {target}", fg=typer.colors.GREEN)


@app.command("refresh")
def refresh_command(ctx: typer.Context) -> None:
    """Ask the service to fetch the feed immediately."""
    state = _get_state(ctx)
    render_refresh(state.client.refresh())


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Seconds between updates (defaults to CLI_WATCH_INTERVAL or 30)."
    ),
    count: Optional[int] = typer.Option(
        None, "--count", "-c", min=1, help="Stop after this many updates."
    ),
) -> None:
    """Keep printing the overview until interrupted."""
    state = _get_state(ctx)
    delay = interval if interval is not None else state.config.watch_interval
    shown = 0
    while True:
        render_overview(state.client.get_overview())
        shown += 1
        if count is not None and shown >= count:
            return
        typer.echo()
        time.sleep(delay)
