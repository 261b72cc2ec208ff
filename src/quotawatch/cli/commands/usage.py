"""Usage display commands for quotawatch."""

from __future__ import annotations

import asyncio
import time

import typer
from rich.console import Console

from quotawatch.cli.app import ExitCode
from quotawatch.cli.app import app
from quotawatch.cli.app import create_engine
from quotawatch.cli.app import fail_validation
from quotawatch.errors.exceptions import ValidationError
from quotawatch.errors.types import ErrorCategory
from quotawatch.models import ProviderStatus


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Poll all enabled providers once and show their usage."""
    console = Console()
    json_mode = ctx.meta.get("json", False)
    verbose = ctx.meta.get("verbose", False)

    start_time = time.monotonic()
    engine = asyncio.run(poll_once())
    duration_ms = (time.monotonic() - start_time) * 1000

    statuses = engine.all_statuses()
    rules = engine.get_alert_rules()

    if json_mode:
        from quotawatch.display.json import output_json_pretty
        from quotawatch.display.json import rule_to_dict
        from quotawatch.display.json import status_to_dict

        output_json_pretty(
            {
                "providers": {
                    pid: status_to_dict(status) for pid, status in statuses.items()
                },
                "alerts": [rule_to_dict(rule) for rule in rules],
                "triggered_count": engine.triggered_count,
            }
        )
    else:
        display_statuses(console, engine, verbose=verbose)
        if verbose:
            console.print(f"\n[dim]Fetched in {duration_ms:.0f}ms[/dim]")

    code = exit_code_for(statuses)
    if code != ExitCode.SUCCESS:
        raise typer.Exit(code)


async def poll_once():
    """Run a single poll round and return the engine for inspection."""
    engine = create_engine()
    try:
        await engine.refresh_now()
    finally:
        await engine.shutdown()
    return engine


def display_statuses(console: Console, engine, verbose: bool = False) -> None:
    from quotawatch.display.rich import alerts_table
    from quotawatch.display.rich import status_table

    statuses = engine.all_statuses()
    if not statuses:
        console.print("[yellow]No providers enabled.[/yellow]")
        console.print("[dim]Run 'quotawatch providers add <provider>' to start.[/dim]")
        return

    console.print(status_table(statuses, verbose=verbose))

    rules = engine.get_alert_rules()
    if rules:
        console.print(alerts_table(rules))
    if engine.triggered_count:
        console.print(
            f"[bold red]{engine.triggered_count} alert(s) triggered[/bold red]"
        )

    for status in statuses.values():
        if status.needs_reconnect:
            console.print(
                f"[dim]Reconnect {status.provider_id}: "
                f"quotawatch key set {status.provider_id}[/dim]"
            )


def exit_code_for(statuses: dict[str, ProviderStatus]) -> ExitCode:
    """Map a round's outcome to an exit code."""
    failed = [s for s in statuses.values() if not s.connected]
    if not failed:
        return ExitCode.SUCCESS
    if len(failed) < len(statuses):
        return ExitCode.PARTIAL_FAILURE
    if all(s.error_category == ErrorCategory.AUTHENTICATION for s in failed):
        return ExitCode.AUTH_ERROR
    return ExitCode.NETWORK_ERROR


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    interval: int = typer.Option(
        None,
        "--interval",
        "-i",
        help="Poll interval in seconds (30, 60, 120 or 300); saved to settings",
    ),
) -> None:
    """Poll continuously, printing tray updates and alerts until interrupted."""
    from quotawatch.display.rich import ConsoleTray

    console = Console()
    verbose = ctx.meta.get("verbose", False)
    engine = create_engine(tray=ConsoleTray(console))

    if interval is not None:
        try:
            engine.set_poll_interval(interval)
        except ValidationError as e:
            fail_validation(console, e, ctx.meta.get("json", False))

    if verbose:
        engine.subscribe(
            lambda status: console.print(
                f"[dim]{status.provider_id}: "
                f"{'connected' if status.connected else status.error or 'pending'}[/dim]"
            )
        )

    console.print(
        f"[bold]Watching {', '.join(engine.enabled_providers) or 'no providers'}[/bold] "
        f"[dim](every {engine.settings.poll_interval_seconds}s, Ctrl+C to stop)[/dim]"
    )

    try:
        asyncio.run(watch(engine))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")


async def watch(engine) -> None:
    async with engine:
        await asyncio.Event().wait()
