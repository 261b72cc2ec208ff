"""Provider enable/disable commands for quotawatch."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from quotawatch.cli.app import ExitCode
from quotawatch.cli.app import create_engine
from quotawatch.providers import create_provider
from quotawatch.providers import get_all_providers
from quotawatch.providers import list_provider_ids

providers_app = typer.Typer(help="Enable, disable and list providers.")


@providers_app.command("list")
def providers_list_command(ctx: typer.Context) -> None:
    """List available providers and whether they are enabled."""
    console = Console()
    enabled = create_engine().enabled_providers

    rows = []
    for provider_id, provider_cls in get_all_providers().items():
        rows.append(
            {
                "id": provider_id,
                "name": provider_cls.metadata.name,
                "usage_shape": provider_cls.metadata.usage_shape.value,
                "enabled": provider_id in enabled,
                "configured": create_provider(provider_id).is_configured(),
            }
        )

    if ctx.meta.get("json", False):
        from quotawatch.display.json import output_json_pretty

        output_json_pretty(rows)
        return

    table = Table(title="Providers", show_header=True, header_style="bold")
    table.add_column("Provider", style="cyan")
    table.add_column("Name")
    table.add_column("Reports", style="dim")
    table.add_column("Enabled")
    table.add_column("Credentials")

    for row in rows:
        table.add_row(
            row["id"],
            row["name"],
            row["usage_shape"].replace("_", " "),
            "[green]✓[/green]" if row["enabled"] else "[dim]-[/dim]",
            "[green]found[/green]" if row["configured"] else "[yellow]missing[/yellow]",
        )
    console.print(table)


@providers_app.command("add")
def providers_add_command(
    provider_id: str = typer.Argument(..., help="Provider to enable"),
) -> None:
    """Enable a provider."""
    console = Console()
    available = list_provider_ids()
    if provider_id not in available:
        console.print(
            f"[red]Unknown provider:[/red] {provider_id}. "
            f"Available: {', '.join(available)}"
        )
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    engine = create_engine()
    if provider_id in engine.enabled_providers:
        console.print(f"[dim]{provider_id} is already enabled[/dim]")
        return

    engine.add_provider(provider_id)
    console.print(f"[green]✓[/green] Enabled {provider_id}")


@providers_app.command("remove")
def providers_remove_command(
    provider_id: str = typer.Argument(..., help="Provider to disable"),
) -> None:
    """Disable a provider and drop its status."""
    console = Console()
    engine = create_engine()
    was_enabled = provider_id in engine.enabled_providers

    engine.remove_provider(provider_id)
    if was_enabled:
        console.print(f"[green]✓[/green] Disabled {provider_id}")
    else:
        console.print(f"[dim]{provider_id} was not enabled[/dim]")
