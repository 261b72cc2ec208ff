"""CLI commands for quotawatch."""

from quotawatch.cli.commands.usage import status_command, watch_command

# Command groups (registered with the main app in cli.app)
from quotawatch.cli.commands import (
    alerts,
    config,
    providers,
)

__all__ = [
    # Top-level commands
    "status_command",
    "watch_command",
    # Command groups
    "alerts",
    "config",
    "providers",
]
