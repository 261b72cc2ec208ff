"""Tests for alert evaluation."""

from __future__ import annotations

import msgspec
import pytest

from quotawatch.core.alerts import current_metric, evaluate_alerts, summarize
from quotawatch.models import (
    AlertMetric,
    AlertRule,
    ProviderStatus,
    TokenCostCounter,
    UtilizationWindow,
)


def statuses_with(*pairs) -> dict[str, ProviderStatus]:
    return {
        provider_id: ProviderStatus(provider_id=provider_id, connected=True, usage=usage)
        for provider_id, usage in pairs
    }


class TestEvaluateAlerts:
    """Tests for evaluate_alerts."""

    @pytest.mark.parametrize(
        "utilization,expected",
        [(79.0, False), (80.0, True), (82.0, True)],
    )
    def test_threshold_is_inclusive(self, period_rule, utilization, expected):
        statuses = statuses_with(("a", UtilizationWindow(period_utilization=utilization)))

        evaluation = evaluate_alerts([period_rule], statuses, notifications_enabled=True)

        assert evaluation.rules[0].triggered is expected
        assert evaluation.triggered_count == int(expected)

    def test_notifications_disabled_zeroes_everything(self, period_rule):
        """Disabling notifications clears triggers but keeps thresholds."""
        statuses = statuses_with(("a", UtilizationWindow(period_utilization=95.0)))
        rules = [period_rule, msgspec.structs.replace(period_rule, id="r2", threshold_percent=10)]

        evaluation = evaluate_alerts(rules, statuses, notifications_enabled=False)

        assert evaluation.triggered_count == 0
        assert all(not rule.triggered for rule in evaluation.rules)
        assert [r.threshold_percent for r in evaluation.rules] == [80.0, 10]

    def test_disabled_rule_never_triggers(self, period_rule):
        statuses = statuses_with(("a", UtilizationWindow(period_utilization=95.0)))
        rule = msgspec.structs.replace(period_rule, enabled=False, triggered=True)

        evaluation = evaluate_alerts([rule], statuses, notifications_enabled=True)

        assert evaluation.rules[0].triggered is False

    def test_weekly_metric(self):
        rule = AlertRule(id="w", metric=AlertMetric.WEEKLY, threshold_percent=50)
        statuses = statuses_with(
            ("a", UtilizationWindow(period_utilization=5.0, weekly_utilization=60.0))
        )

        evaluation = evaluate_alerts([rule], statuses, notifications_enabled=True)

        assert evaluation.triggered_count == 1

    def test_missing_weekly_figure_is_not_triggered(self):
        rule = AlertRule(id="w", metric=AlertMetric.WEEKLY, threshold_percent=0)
        statuses = statuses_with(("a", UtilizationWindow(period_utilization=99.0)))

        evaluation = evaluate_alerts([rule], statuses, notifications_enabled=True)

        assert evaluation.rules[0].triggered is False

    def test_counter_only_provider_is_not_triggered(self, period_rule, sample_counter):
        statuses = statuses_with(("openai", sample_counter))

        evaluation = evaluate_alerts([period_rule], statuses, notifications_enabled=True)

        assert evaluation.triggered_count == 0

    def test_no_data_yet(self, period_rule):
        statuses = {"a": ProviderStatus.unconfigured("a")}

        evaluation = evaluate_alerts([period_rule], statuses, notifications_enabled=True)

        assert evaluation.triggered_count == 0

    def test_does_not_mutate_input(self, period_rule):
        statuses = statuses_with(("a", UtilizationWindow(period_utilization=90.0)))
        rules = [period_rule]

        evaluate_alerts(rules, statuses, notifications_enabled=True)

        assert rules[0].triggered is False


class TestCurrentMetric:
    """Tests for metric lookup."""

    def test_unpinned_uses_first_window_provider(self, period_rule):
        """Counter providers are skipped when finding the window."""
        statuses = statuses_with(
            ("openai", TokenCostCounter()),
            ("a", UtilizationWindow(period_utilization=30.0)),
            ("b", UtilizationWindow(period_utilization=70.0)),
        )

        assert current_metric(period_rule, statuses) == 30.0

    def test_pinned_provider(self, period_rule):
        rule = msgspec.structs.replace(period_rule, provider_id="b")
        statuses = statuses_with(
            ("a", UtilizationWindow(period_utilization=30.0)),
            ("b", UtilizationWindow(period_utilization=70.0)),
        )

        assert current_metric(rule, statuses) == 70.0

    def test_pinned_provider_missing(self, period_rule):
        rule = msgspec.structs.replace(period_rule, provider_id="gone")
        statuses = statuses_with(("a", UtilizationWindow(period_utilization=30.0)))

        assert current_metric(rule, statuses) is None


class TestSummarize:
    """Tests for summarize."""

    def test_collects_triggered_values(self, period_rule):
        statuses = statuses_with(("a", UtilizationWindow(period_utilization=82.0)))
        evaluation = evaluate_alerts([period_rule], statuses, notifications_enabled=True)

        summary = summarize(evaluation, statuses)

        assert summary.triggered_count == 1
        assert summary.alerts[0].rule.id == "r1"
        assert summary.alerts[0].value == 82.0
