"""Alert rule evaluation against the current provider statuses."""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping
from typing import NamedTuple

import msgspec

from quotawatch.models import AlertMetric
from quotawatch.models import AlertRule
from quotawatch.models import AlertSummary
from quotawatch.models import ProviderStatus
from quotawatch.models import TriggeredAlert
from quotawatch.models import UtilizationWindow


class AlertEvaluation(NamedTuple):
    rules: list[AlertRule]
    triggered_count: int


def window_for(
    rule: AlertRule, statuses: Mapping[str, ProviderStatus]
) -> UtilizationWindow | None:
    """Find the utilization window a rule reads from.

    A rule pinned to a provider reads only that provider. An unpinned rule
    reads the first provider (in insertion order) that reports a window.
    """
    if rule.provider_id is not None:
        status = statuses.get(rule.provider_id)
        return status.utilization_window() if status else None

    for status in statuses.values():
        window = status.utilization_window()
        if window is not None:
            return window
    return None


def current_metric(
    rule: AlertRule, statuses: Mapping[str, ProviderStatus]
) -> float | None:
    """Return the utilization value rule compares against, if there is one."""
    window = window_for(rule, statuses)
    if window is None:
        return None

    match rule.metric:
        case AlertMetric.PERIOD:
            return window.period_utilization
        case AlertMetric.WEEKLY:
            return window.weekly_utilization


def evaluate_alerts(
    rules: Iterable[AlertRule],
    statuses: Mapping[str, ProviderStatus],
    notifications_enabled: bool,
) -> AlertEvaluation:
    """Recompute every rule's triggered flag.

    Thresholds are inclusive. With notifications disabled nothing triggers.
    Rules with no value to read (no window yet, counter-only provider, no
    weekly quota) are not triggered.
    """
    evaluated = []
    count = 0

    for rule in rules:
        triggered = False
        if notifications_enabled and rule.enabled:
            value = current_metric(rule, statuses)
            triggered = value is not None and value >= rule.threshold_percent

        if triggered:
            count += 1
        if rule.triggered != triggered:
            rule = msgspec.structs.replace(rule, triggered=triggered)
        evaluated.append(rule)

    return AlertEvaluation(evaluated, count)


def summarize(
    evaluation: AlertEvaluation, statuses: Mapping[str, ProviderStatus]
) -> AlertSummary:
    """Collect triggered rules with the values that tripped them."""
    alerts = []
    for rule in evaluation.rules:
        if not rule.triggered:
            continue
        value = current_metric(rule, statuses)
        if value is not None:
            alerts.append(TriggeredAlert(rule=rule, value=value))

    return AlertSummary(triggered_count=evaluation.triggered_count, alerts=tuple(alerts))
