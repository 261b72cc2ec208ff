"""Rich-based rendering utilities for quotawatch."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from quotawatch.models import AlertRule
from quotawatch.models import ProviderStatus
from quotawatch.models import TokenCostCounter
from quotawatch.models import UtilizationWindow
from quotawatch.models import format_reset_countdown
from quotawatch.models import remaining_to_color
from quotawatch.models import time_until


def render_usage_bar(
    utilization: float,
    width: int = 20,
    color: str | None = None,
) -> Text:
    """Render a usage progress bar.

    Args:
        utilization: Usage percentage (0-100)
        width: Bar width in characters
        color: Optional color override

    Returns:
        Rich Text with the progress bar
    """
    filled = int(utilization * width // 100)
    bar = "█" * filled + "░" * (width - filled)

    text = Text()
    text.append(bar, style=color or "default")
    return text


def format_window_line(
    name: str,
    utilization: float | None,
    resets_at=None,
) -> Text:
    """Format one window as `name  bar  pct  resets in ...`."""
    text = Text()
    text.append(f"{name:<8} ", style="dim")

    if utilization is None:
        text.append("n/a", style="dim")
        return text

    color = remaining_to_color(100.0 - utilization)
    text.append_text(render_usage_bar(utilization, width=12, color=color))
    text.append(f" {utilization:>3.0f}%", style="bold")

    countdown = format_reset_countdown(time_until(resets_at))
    if countdown:
        text.append(f"   resets in {countdown}", style="dim")
    return text


def format_counter(usage: TokenCostCounter) -> Text:
    text = Text()
    text.append(f"{usage.total_tokens:,} tokens", style="bold")
    text.append(f" ({usage.input_tokens:,} in / {usage.output_tokens:,} out)", style="dim")
    text.append(f"  {usage.total_requests:,} requests", style="dim")
    text.append(f"  ${usage.total_cost_usd:.2f}", style="bold yellow")
    text.append(f" over {usage.period_days}d", style="dim")
    return text


def format_usage(usage) -> Text:
    """Format a normalized usage value for a table cell."""
    if isinstance(usage, UtilizationWindow):
        text = format_window_line(
            "5-Hour", usage.period_utilization, usage.period_resets_at
        )
        text.append("\n")
        text.append_text(
            format_window_line("Weekly", usage.weekly_utilization, usage.weekly_resets_at)
        )
        return text
    if isinstance(usage, TokenCostCounter):
        return format_counter(usage)
    return Text("no data yet", style="dim")


def format_state(status: ProviderStatus) -> Text:
    if status.connected:
        return Text("✓ connected", style="green")
    if status.needs_reconnect:
        return Text("✗ needs reconnect", style="red")
    if status.error:
        return Text("✗ error", style="red")
    return Text("… not polled", style="dim")


def status_table(statuses: dict[str, ProviderStatus], verbose: bool = False) -> Table:
    """Build a table of provider statuses."""
    table = Table(title="Provider Usage", show_header=True, header_style="bold")
    table.add_column("Provider", style="cyan")
    table.add_column("State")
    table.add_column("Usage")
    if verbose:
        table.add_column("Updated", style="dim")

    for provider_id, status in statuses.items():
        usage = format_usage(status.usage)
        if status.error:
            usage.append(f"\n{status.error}", style="red")

        row = [provider_id, format_state(status), usage]
        if verbose:
            row.append(
                status.last_updated.astimezone().strftime("%H:%M:%S")
                if status.last_updated
                else "-"
            )
        table.add_row(*row)

    return table


def alerts_table(rules: list[AlertRule]) -> Table:
    """Build a table of alert rules and their triggered state."""
    table = Table(title="Usage Alerts", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Metric")
    table.add_column("Threshold", justify="right")
    table.add_column("Provider", style="dim")
    table.add_column("State")

    for rule in rules:
        if not rule.enabled:
            state = Text("disabled", style="dim")
        elif rule.triggered:
            state = Text("⚠ triggered", style="bold red")
        else:
            state = Text("ok", style="green")

        table.add_row(
            rule.id,
            rule.display_name(),
            rule.metric.label,
            f"{rule.threshold_percent:.0f}%",
            rule.provider_id or "auto",
            state,
        )

    return table


class ConsoleTray:
    """Tray notifier that prints summary figures and alerts to a console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def notify_tray(
        self,
        period_remaining: float | None,
        weekly_remaining: float | None,
        menu_details: list[str],
    ) -> None:
        if period_remaining is None and weekly_remaining is None:
            self.console.print("[dim]No utilization data yet[/dim]")
            return
        for line in menu_details:
            if line.startswith(" "):
                self.console.print(line, style="dim")
            else:
                self.console.print(line)

    def send_alert(self, title: str, body: str) -> None:
        self.console.print(f"[bold red]⚠ {title}[/bold red]  {body}")
