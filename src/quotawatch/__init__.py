"""quotawatch: Monitor API usage quotas and alert on thresholds."""

from __future__ import annotations

__version__ = "0.1.0"

from quotawatch.models import AlertMetric
from quotawatch.models import AlertRule
from quotawatch.models import EngineSettings
from quotawatch.models import NormalizedUsage
from quotawatch.models import ProviderStatus
from quotawatch.models import TokenCostCounter
from quotawatch.models import UsageShape
from quotawatch.models import UtilizationWindow
from quotawatch.models import format_reset_countdown
from quotawatch.models import validate_alert_rule
from quotawatch.models import validate_poll_interval

__all__ = [
    "__version__",
    "UsageShape",
    "UtilizationWindow",
    "TokenCostCounter",
    "NormalizedUsage",
    "ProviderStatus",
    "AlertMetric",
    "AlertRule",
    "EngineSettings",
    "validate_alert_rule",
    "validate_poll_interval",
    "format_reset_countdown",
]


def main() -> None:
    """Entry point for the quotawatch CLI."""
    from quotawatch.cli.app import run_app

    run_app()
