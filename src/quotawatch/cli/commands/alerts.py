"""Usage alert rule commands for quotawatch."""

from __future__ import annotations

import msgspec
import typer
from rich.console import Console

from quotawatch.cli.app import ExitCode
from quotawatch.cli.app import create_engine
from quotawatch.cli.app import fail_validation
from quotawatch.errors.exceptions import ValidationError
from quotawatch.models import AlertMetric
from quotawatch.models import AlertRule

alerts_app = typer.Typer(help="Manage usage alert rules.")


@alerts_app.command("list")
def alerts_list_command(ctx: typer.Context) -> None:
    """List alert rules."""
    console = Console()
    engine = create_engine()
    rules = engine.get_alert_rules()

    if ctx.meta.get("json", False):
        from quotawatch.display.json import output_json_pretty
        from quotawatch.display.json import rule_to_dict

        output_json_pretty(
            {
                "notifications_enabled": engine.settings.notifications_enabled,
                "alerts": [rule_to_dict(rule) for rule in rules],
            }
        )
        return

    if not rules:
        console.print("[dim]No alert rules. Add one with 'quotawatch alerts add'.[/dim]")
        return

    from quotawatch.display.rich import alerts_table

    console.print(alerts_table(rules))
    if not engine.settings.notifications_enabled:
        console.print("[yellow]Notifications are disabled[/yellow]")


@alerts_app.command("add")
def alerts_add_command(
    ctx: typer.Context,
    metric: AlertMetric = typer.Option(
        ..., "--metric", "-m", help="Utilization metric to watch"
    ),
    threshold: float = typer.Option(
        ..., "--threshold", "-t", help="Trigger at or above this percentage (0-100)"
    ),
    label: str = typer.Option(None, "--label", "-l", help="Display name"),
    provider: str = typer.Option(
        None,
        "--provider",
        "-p",
        help="Provider to watch (default: first with utilization windows)",
    ),
) -> None:
    """Add an alert rule."""
    console = Console()
    engine = create_engine()

    try:
        rule = engine.upsert_alert_rule(
            AlertRule(
                id="",
                metric=metric,
                threshold_percent=threshold,
                label=label,
                provider_id=provider,
            )
        )
    except ValidationError as e:
        fail_validation(console, e, ctx.meta.get("json", False))

    console.print(f"[green]✓[/green] Added alert {rule.id}: {rule.display_name()}")


@alerts_app.command("remove")
def alerts_remove_command(
    rule_id: str = typer.Argument(..., help="Alert rule id"),
) -> None:
    """Delete an alert rule."""
    console = Console()
    if not create_engine().delete_alert_rule(rule_id):
        console.print(f"[yellow]No alert rule with id {rule_id}[/yellow]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)
    console.print(f"[green]✓[/green] Removed alert {rule_id}")


def _set_enabled(rule_id: str, enabled: bool) -> None:
    console = Console()
    engine = create_engine()

    rule = next((r for r in engine.get_alert_rules() if r.id == rule_id), None)
    if rule is None:
        console.print(f"[yellow]No alert rule with id {rule_id}[/yellow]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    engine.upsert_alert_rule(msgspec.structs.replace(rule, enabled=enabled))
    state = "Enabled" if enabled else "Disabled"
    console.print(f"[green]✓[/green] {state} alert {rule_id}")


@alerts_app.command("enable")
def alerts_enable_command(
    rule_id: str = typer.Argument(..., help="Alert rule id"),
) -> None:
    """Enable an alert rule."""
    _set_enabled(rule_id, True)


@alerts_app.command("disable")
def alerts_disable_command(
    rule_id: str = typer.Argument(..., help="Alert rule id"),
) -> None:
    """Disable an alert rule."""
    _set_enabled(rule_id, False)
