"""Main CLI application for quotawatch."""

from __future__ import annotations

from enum import IntEnum

import typer
from rich.console import Console

from quotawatch.errors.exceptions import ValidationError

# Create the main app
app = typer.Typer(
    name="quotawatch",
    help="Monitor API usage quotas and alert on thresholds",
    add_completion=True,
    no_args_is_help=False,
)


class ExitCode(IntEnum):
    """Exit codes for quotawatch."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    NETWORK_ERROR = 3
    CONFIG_ERROR = 4
    PARTIAL_FAILURE = 5


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    json: bool = typer.Option(False, "--json", "-j", help="Enable JSON output mode"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output and debug logging"
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Quotawatch - Monitor API usage quotas across providers."""
    if version:
        from quotawatch import __version__

        typer.echo(f"quotawatch {__version__}")
        raise typer.Exit()

    from quotawatch.config.settings import get_config
    from quotawatch.logging import configure_from_config
    from quotawatch.logging import configure_logging

    if verbose:
        configure_logging("debug", get_config().logging.json)
    else:
        configure_from_config()

    ctx.meta["json"] = json
    ctx.meta["verbose"] = verbose

    # No command: show status
    if ctx.invoked_subcommand is None:
        from quotawatch.cli.commands.usage import status_command

        ctx.invoke(status_command, ctx=ctx)


def create_engine(tray=None):
    """Build a UsageEngine with the default fetcher and settings file."""
    from quotawatch.core.engine import UsageEngine

    return UsageEngine(tray=tray)


def fail_validation(console: Console, error: ValidationError, json_mode: bool) -> None:
    """Report a validation error and exit with CONFIG_ERROR."""
    if json_mode:
        from quotawatch.display.json import output_json_error

        output_json_error(error.message, category=error.category.value, severity="warning")
    else:
        console.print(f"[red]Invalid value:[/red] {error.message}")
    raise typer.Exit(ExitCode.CONFIG_ERROR)


def run_app() -> None:
    """Run the CLI app."""
    app()


# Import command modules - they register themselves via @app.command() decorators
from quotawatch.cli.commands import usage  # noqa: E402,F401
from quotawatch.cli.commands import alerts as alerts_cmd  # noqa: E402
from quotawatch.cli.commands import config as config_cmd  # noqa: E402
from quotawatch.cli.commands import providers as providers_cmd  # noqa: E402

# Register typer groups
app.add_typer(providers_cmd.providers_app, name="providers")
app.add_typer(alerts_cmd.alerts_app, name="alerts")
app.add_typer(config_cmd.config_app, name="config")
app.add_typer(config_cmd.key_app, name="key")
