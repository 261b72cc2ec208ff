"""Push remaining capacity and alert notifications to the tray collaborator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import structlog

from quotawatch.models import AlertMetric
from quotawatch.models import AlertSummary
from quotawatch.models import ProviderStatus
from quotawatch.models import RemainingCapacity
from quotawatch.models import TriggeredAlert
from quotawatch.models import format_reset_countdown
from quotawatch.models import time_until

logger = structlog.get_logger(__name__)


class TrayNotifier(Protocol):
    """Presentation collaborator receiving summary figures."""

    def notify_tray(
        self,
        period_remaining: float | None,
        weekly_remaining: float | None,
        menu_details: list[str],
    ) -> None: ...

    def send_alert(self, title: str, body: str) -> None: ...


def remaining_capacity(statuses: Mapping[str, ProviderStatus]) -> RemainingCapacity:
    """Remaining capacity of the first provider reporting a utilization window."""
    for status in statuses.values():
        window = status.utilization_window()
        if window is not None:
            return RemainingCapacity.from_window(window)
    return RemainingCapacity()


def menu_details(remaining: RemainingCapacity) -> list[str]:
    """Human-readable menu lines for the tray."""
    lines = []
    if remaining.period_remaining is not None:
        lines.append(f"5-Hour: {remaining.period_remaining:.0f}% remaining")
        countdown = format_reset_countdown(time_until(remaining.period_resets_at))
        if countdown:
            lines.append(f"    Resets in {countdown}")
    if remaining.weekly_remaining is not None:
        lines.append(f"Weekly: {remaining.weekly_remaining:.0f}% remaining")
        countdown = format_reset_countdown(time_until(remaining.weekly_resets_at))
        if countdown:
            lines.append(f"    Resets in {countdown}")
    return lines


def alert_message(alert: TriggeredAlert) -> tuple[str, str]:
    """Title and body for a triggered alert notification."""
    rule = alert.rule
    match rule.metric:
        case AlertMetric.PERIOD:
            title = "Usage Alert: 5-Hour Limit"
            subject = "5-hour"
        case AlertMetric.WEEKLY:
            title = "Usage Alert: Weekly Limit"
            subject = "Weekly"
    body = f"{subject} utilization at {alert.value:.0f}% (threshold: {rule.threshold_percent:.0f}%)"
    if rule.label:
        body = f"{rule.label}: {body}"
    return title, body


class NotificationDispatcher:
    """Best-effort delivery of tray updates and alert notifications.

    Alerts are edge-triggered: a rule notifies once when it becomes
    triggered and re-arms after it stops being triggered. Collaborator
    failures are logged and never retried.
    """

    def __init__(self, tray: TrayNotifier | None) -> None:
        self.tray = tray
        self._notified: set[str] = set()

    def dispatch(self, remaining: RemainingCapacity, summary: AlertSummary) -> None:
        if self.tray is None:
            return

        try:
            self.tray.notify_tray(
                remaining.period_remaining,
                remaining.weekly_remaining,
                menu_details(remaining),
            )
        except Exception:
            logger.exception("tray_update_failed")

        triggered = {alert.rule.id: alert for alert in summary.alerts}
        self._notified &= triggered.keys()

        for rule_id, alert in triggered.items():
            if rule_id in self._notified:
                continue
            title, body = alert_message(alert)
            try:
                self.tray.send_alert(title, body)
            except Exception:
                logger.exception("alert_notification_failed", rule_id=rule_id)
            # Marked even on failure, delivery is not retried
            self._notified.add(rule_id)

    def reset(self) -> None:
        """Forget which alerts have been sent."""
        self._notified.clear()
