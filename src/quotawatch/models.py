"""Data models for quotawatch.

Defines the normalized structures every provider payload is reduced to, the
per-provider status record, alert rules and the persisted engine settings.
"""

from __future__ import annotations

from datetime import datetime
from datetime import timedelta
from enum import StrEnum
from typing import Annotated

import msgspec

from quotawatch.errors.types import ErrorCategory

Percent = Annotated[float, msgspec.Meta(ge=0, le=100)]

# Accepted poll intervals in seconds
POLL_INTERVALS = (30, 60, 120, 300)
DEFAULT_POLL_INTERVAL = 60


class UsageShape(StrEnum):
    """Canonical usage shapes a provider family reports."""

    UTILIZATION_WINDOW = "utilization_window"  # Percentage of a reset window
    TOKEN_COST_COUNTER = "token_cost_counter"  # Raw token/cost counters


class AlertMetric(StrEnum):
    """Utilization metrics an alert rule can watch."""

    PERIOD = "period"  # Short window (5 hours)
    WEEKLY = "weekly"  # 7-day window

    @property
    def label(self) -> str:
        match self:
            case AlertMetric.PERIOD:
                return "5-Hour"
            case AlertMetric.WEEKLY:
                return "Weekly"


def clamp_utilization(value: float) -> float:
    """Clamp a utilization percentage into [0, 100]."""
    return max(0.0, min(float(value), 100.0))


class UtilizationWindow(msgspec.Struct, frozen=True, tag="utilization_window"):
    """Quota usage expressed as percentages of reset windows."""

    period_utilization: float  # 0-100 percentage used in the short window
    period_resets_at: datetime | None = None
    weekly_utilization: float | None = None  # None when there is no weekly quota
    weekly_resets_at: datetime | None = None

    def period_remaining(self) -> float:
        """Return percentage remaining in the short window."""
        return 100.0 - self.period_utilization

    def weekly_remaining(self) -> float | None:
        """Return percentage remaining in the weekly window, if any."""
        if self.weekly_utilization is None:
            return None
        return 100.0 - self.weekly_utilization


class TokenCostCounter(msgspec.Struct, frozen=True, tag="token_cost_counter"):
    """Token and spend counters over a trailing number of days."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_requests: int = 0
    total_cost_usd: float = 0.0
    period_days: int = 30

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


NormalizedUsage = UtilizationWindow | TokenCostCounter


class ProviderMetadata(msgspec.Struct, frozen=True):
    """Metadata about a provider."""

    id: str
    name: str
    description: str
    usage_shape: UsageShape
    homepage: str
    dashboard_url: str | None = None


class ProviderStatus(msgspec.Struct, frozen=True):
    """Current reconciled state of a single provider."""

    provider_id: str
    connected: bool = False
    error: str | None = None
    error_category: ErrorCategory | None = None
    usage: NormalizedUsage | None = None
    last_updated: datetime | None = None  # None until the first poll lands

    @classmethod
    def unconfigured(cls, provider_id: str) -> ProviderStatus:
        """Factory for a provider that has not been polled yet."""
        return cls(provider_id=provider_id)

    @property
    def needs_reconnect(self) -> bool:
        return self.error_category == ErrorCategory.AUTHENTICATION

    def utilization_window(self) -> UtilizationWindow | None:
        """Return usage if it is window-shaped."""
        if isinstance(self.usage, UtilizationWindow):
            return self.usage
        return None


class AlertRule(msgspec.Struct, frozen=True):
    """User-configured threshold on a utilization metric."""

    id: str
    metric: AlertMetric
    threshold_percent: Percent
    enabled: bool = True
    label: str | None = None
    provider_id: str | None = None  # None: first provider with a utilization window
    triggered: bool = False  # Derived on every evaluation pass, never persisted

    def display_name(self) -> str:
        return self.label or f"{self.metric.label} at {self.threshold_percent:.0f}%"


class TriggeredAlert(msgspec.Struct, frozen=True):
    """A triggered rule together with the metric value that tripped it."""

    rule: AlertRule
    value: float


class AlertSummary(msgspec.Struct, frozen=True):
    """Triggered alerts handed to the notification dispatcher."""

    triggered_count: int = 0
    alerts: tuple[TriggeredAlert, ...] = ()


class RemainingCapacity(msgspec.Struct, frozen=True):
    """Remaining capacity (100 - utilization) for at-a-glance indicators."""

    period_remaining: float | None = None
    weekly_remaining: float | None = None
    period_resets_at: datetime | None = None
    weekly_resets_at: datetime | None = None

    @classmethod
    def from_window(cls, window: UtilizationWindow) -> RemainingCapacity:
        return cls(
            period_remaining=window.period_remaining(),
            weekly_remaining=window.weekly_remaining(),
            period_resets_at=window.period_resets_at,
            weekly_resets_at=window.weekly_resets_at,
        )


class EngineSettings(msgspec.Struct, frozen=True):
    """Persisted engine settings."""

    enabled_providers: list[str] = msgspec.field(default_factory=list)
    poll_interval_seconds: int = DEFAULT_POLL_INTERVAL
    notifications_enabled: bool = True
    alert_rules: list[AlertRule] = msgspec.field(default_factory=list)


def validate_alert_rule(rule: AlertRule) -> list[str]:
    """Return list of validation errors, empty if valid."""
    errors = []
    if not rule.id:
        errors.append("rule id required")
    if not 0 <= rule.threshold_percent <= 100:
        errors.append(f"threshold {rule.threshold_percent} out of range [0, 100]")
    return errors


def validate_poll_interval(seconds: int) -> list[str]:
    """Return list of validation errors, empty if valid."""
    if seconds not in POLL_INTERVALS:
        accepted = ", ".join(str(s) for s in POLL_INTERVALS)
        return [f"poll interval {seconds} not one of {accepted}"]
    return []


def time_until(moment: datetime | None) -> timedelta | None:
    """Return time remaining until moment, floored at zero."""
    if moment is None:
        return None
    now = datetime.now(moment.tzinfo)
    return max(timedelta(0), moment - now)


def format_reset_countdown(delta: timedelta | None) -> str:
    """Format reset time as countdown string."""
    if delta is None:
        return ""

    total_seconds = int(delta.total_seconds())
    if total_seconds <= 0:
        return "now"

    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    if days > 0:
        return f"{days}d {hours}h"
    elif hours > 0:
        return f"{hours}h {minutes}m"
    else:
        return f"{minutes}m"


def remaining_to_color(remaining: float | None) -> str:
    """Determine display color from remaining capacity."""
    if remaining is None:
        return "dim"
    if remaining >= 50:
        return "green"
    elif remaining >= 20:
        return "yellow"
    else:
        return "red"
