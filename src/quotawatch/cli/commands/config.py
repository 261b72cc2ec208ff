"""Config and credential management commands for quotawatch."""

from __future__ import annotations

import msgspec
import tomli_w
import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from quotawatch.cli.app import ExitCode
from quotawatch.cli.app import create_engine
from quotawatch.cli.app import fail_validation
from quotawatch.config.paths import cache_dir
from quotawatch.config.paths import config_dir
from quotawatch.config.paths import config_file
from quotawatch.config.paths import credentials_dir
from quotawatch.config.paths import settings_file
from quotawatch.config.settings import get_config
from quotawatch.config.store import settings_to_dict
from quotawatch.errors.exceptions import ValidationError

# Create config group
config_app = typer.Typer(help="Manage configuration and engine settings.")


@config_app.command("show")
def config_show_command(ctx: typer.Context) -> None:
    """Display application config and engine settings."""
    console = Console()

    config = get_config()
    settings = settings_to_dict(create_engine().settings)
    json_mode = ctx.meta.get("json", False)
    verbose = ctx.meta.get("verbose", False)

    if json_mode:
        from quotawatch.display.json import output_json_pretty

        output_json_pretty(
            {
                "config": msgspec.to_builtins(config),
                "settings": settings,
                "path": str(config_file()),
            }
        )
        return

    toml_data = tomli_w.dumps(msgspec.to_builtins(config))
    console.print(
        Panel(Syntax(toml_data or "# defaults", "toml"), title=f"Config: {config_file()}")
    )
    console.print(
        Panel(
            Syntax(msgspec.json.format(msgspec.json.encode(settings)).decode(), "json"),
            title=f"Settings: {settings_file()}",
        )
    )

    if verbose and not config_file().exists():
        console.print("[dim]Using default configuration (file not created yet)[/dim]")


@config_app.command("path")
def config_path_command(ctx: typer.Context) -> None:
    """Show directory paths used by quotawatch."""
    console = Console()
    paths = {
        "config_dir": str(config_dir()),
        "config_file": str(config_file()),
        "settings_file": str(settings_file()),
        "cache_dir": str(cache_dir()),
        "credentials_dir": str(credentials_dir()),
    }

    if ctx.meta.get("json", False):
        from quotawatch.display.json import output_json_pretty

        output_json_pretty(paths)
        return

    console.print(f"Config dir:    {paths['config_dir']}")
    console.print(f"Config file:   {paths['config_file']}")
    console.print(f"Settings:      {paths['settings_file']}")
    console.print(f"Cache dir:     {paths['cache_dir']}")
    console.print(f"Credentials:   {paths['credentials_dir']}")


@config_app.command("interval")
def config_interval_command(
    ctx: typer.Context,
    seconds: int = typer.Argument(..., help="Poll interval: 30, 60, 120 or 300"),
) -> None:
    """Set the poll interval."""
    console = Console()
    try:
        create_engine().set_poll_interval(seconds)
    except ValidationError as e:
        fail_validation(console, e, ctx.meta.get("json", False))
    console.print(f"[green]✓[/green] Poll interval set to {seconds}s")


@config_app.command("notifications")
def config_notifications_command(
    state: str = typer.Argument(..., help="on or off"),
) -> None:
    """Turn alert notifications on or off."""
    console = Console()
    normalized = state.strip().lower()
    if normalized not in ("on", "off"):
        console.print(f"[red]Expected 'on' or 'off', got '{state}'[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    create_engine().set_notifications_enabled(normalized == "on")
    console.print(f"[green]✓[/green] Notifications {normalized}")


@config_app.command("reset")
def config_reset_command(
    confirm: bool = typer.Option(
        False, "--confirm", "-y", help="Skip confirmation prompt"
    ),
) -> None:
    """Delete config.toml, restoring default application config."""
    console = Console()

    if not confirm and not typer.confirm(
        "This will reset your configuration to defaults. Continue?", default=False
    ):
        console.print("Reset cancelled")
        raise typer.Exit()

    cfg_path = config_file()
    if cfg_path.exists():
        cfg_path.unlink()
        console.print("[green]✓[/green] Configuration reset to defaults")
        console.print(f"\nDeleted: {cfg_path}")
    else:
        console.print("[yellow]No custom configuration to reset[/yellow]")


# Create key group
key_app = typer.Typer(help="Manage provider API keys in the system keyring.")


@key_app.callback(invoke_without_command=True)
def key_callback(ctx: typer.Context) -> None:
    """Show credential status for all providers."""
    if ctx.invoked_subcommand is not None:
        return

    from quotawatch.providers import create_provider
    from quotawatch.providers import list_provider_ids

    console = Console()
    found = {pid: create_provider(pid).is_configured() for pid in list_provider_ids()}

    if ctx.meta.get("json", False):
        from quotawatch.display.json import output_json_pretty

        output_json_pretty({pid: {"configured": ok} for pid, ok in found.items()})
        return

    for provider_id, ok in found.items():
        mark = "[green]✓[/green]" if ok else "[yellow]✗[/yellow]"
        console.print(f"{mark} {provider_id}")


@key_app.command("set")
def key_set_command(
    provider_id: str = typer.Argument(..., help="Provider id"),
    value: str = typer.Argument(None, help="Secret (or enter interactively)"),
) -> None:
    """Store a provider API key in the system keyring."""
    from quotawatch.config.keyring import store_api_key

    console = Console()
    if value is None:
        value = typer.prompt(f"Enter {provider_id} API key", hide_input=True)

    if not value:
        console.print("[red]Credential cannot be empty[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    if not store_api_key(provider_id, value):
        console.print(
            "[red]Could not store the key.[/red] "
            "Check that a keyring backend is available and credentials.use_keyring is on."
        )
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    console.print(f"[green]✓[/green] Key saved for {provider_id}")


@key_app.command("delete")
def key_delete_command(
    provider_id: str = typer.Argument(..., help="Provider id"),
) -> None:
    """Delete a provider API key from the system keyring."""
    from quotawatch.config.keyring import delete_api_key

    console = Console()
    if delete_api_key(provider_id):
        console.print(f"[green]✓[/green] Deleted key for {provider_id}")
    else:
        console.print(f"[yellow]No key stored for {provider_id}[/yellow]")
