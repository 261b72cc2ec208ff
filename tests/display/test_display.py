"""Tests for Rich and JSON display helpers."""

from __future__ import annotations

import json
from io import StringIO

from rich.console import Console

from quotawatch.display.json import from_usage_error
from quotawatch.display.json import output_json
from quotawatch.display.json import output_json_error
from quotawatch.display.json import rule_to_dict
from quotawatch.display.json import status_to_dict
from quotawatch.display.rich import ConsoleTray
from quotawatch.display.rich import alerts_table
from quotawatch.display.rich import format_state
from quotawatch.display.rich import format_usage
from quotawatch.display.rich import render_usage_bar
from quotawatch.display.rich import status_table
from quotawatch.errors.types import ErrorCategory
from quotawatch.errors.types import ErrorSeverity
from quotawatch.errors.types import UsageError
from quotawatch.models import AlertMetric
from quotawatch.models import AlertRule
from quotawatch.models import ProviderStatus
from quotawatch.models import UtilizationWindow


def _render(renderable, width: int = 160) -> str:
    console = Console(file=StringIO(), width=width)
    console.print(renderable)
    return console.file.getvalue()


class TestRenderUsageBar:
    """Tests for render_usage_bar."""

    def test_half(self):
        assert render_usage_bar(50, width=10).plain == "█████░░░░░"

    def test_empty_and_full(self):
        assert render_usage_bar(0, width=4).plain == "░░░░"
        assert render_usage_bar(100, width=4).plain == "████"


class TestFormatUsage:
    """Tests for format_usage."""

    def test_window(self, sample_window):
        text = format_usage(sample_window).plain

        assert "5-Hour" in text
        assert "82%" in text
        assert "Weekly" in text
        assert "resets in" in text

    def test_window_without_weekly(self):
        text = format_usage(UtilizationWindow(period_utilization=10.0)).plain

        assert "n/a" in text

    def test_counter(self, sample_counter):
        text = format_usage(sample_counter).plain

        assert "1,500 tokens" in text
        assert "42 requests" in text
        assert "$1.25" in text

    def test_no_data(self):
        assert format_usage(None).plain == "no data yet"


class TestFormatState:
    """Tests for format_state."""

    def test_states(self):
        assert "connected" in format_state(ProviderStatus("a", connected=True)).plain
        assert "not polled" in format_state(ProviderStatus("a")).plain
        assert "reconnect" in format_state(
            ProviderStatus("a", error="x", error_category=ErrorCategory.AUTHENTICATION)
        ).plain
        assert "error" in format_state(
            ProviderStatus("a", error="x", error_category=ErrorCategory.NETWORK)
        ).plain


class TestTables:
    """Tests for status and alert tables."""

    def test_status_table_shows_errors(self, window_status):
        failed = ProviderStatus("b", error="connection refused")

        output = _render(status_table({"a": window_status, "b": failed}, verbose=True))

        assert "Provider Usage" in output
        assert "connection refused" in output
        assert "Updated" in output

    def test_alerts_table(self, period_rule):
        rules = [
            AlertRule(id="r1", metric=AlertMetric.PERIOD, threshold_percent=80, triggered=True),
            AlertRule(id="r2", metric=AlertMetric.WEEKLY, threshold_percent=50, enabled=False),
        ]

        output = _render(alerts_table(rules))

        assert "5-Hour at 80%" in output
        assert "triggered" in output
        assert "disabled" in output
        assert "auto" in output


class TestConsoleTray:
    """Tests for ConsoleTray."""

    def test_prints_menu_details(self):
        console = Console(file=StringIO())

        ConsoleTray(console).notify_tray(18.0, None, ["5-Hour: 18% remaining"])

        assert "5-Hour: 18% remaining" in console.file.getvalue()

    def test_no_data(self):
        console = Console(file=StringIO())

        ConsoleTray(console).notify_tray(None, None, [])

        assert "No utilization data yet" in console.file.getvalue()

    def test_alert(self):
        console = Console(file=StringIO(), width=200)

        ConsoleTray(console).send_alert("Usage Alert: Weekly Limit", "Weekly at 90%")

        output = console.file.getvalue()
        assert "Usage Alert: Weekly Limit" in output
        assert "Weekly at 90%" in output


class TestJsonOutput:
    """Tests for JSON helpers."""

    def test_output_json(self, capsys):
        output_json({"a": 1})

        assert capsys.readouterr().out == '{"a":1}\n'

    def test_error_envelope(self, capsys):
        output_json_error("bad", category="validation", severity="warning")

        data = json.loads(capsys.readouterr().out)
        assert data["error"]["message"] == "bad"
        assert data["error"]["category"] == "validation"
        assert "provider" not in data["error"]

    def test_from_usage_error(self):
        error = UsageError(
            message="down",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            provider="claude",
        )

        response = from_usage_error(error)

        assert response.error.category == "network"
        assert response.error.provider == "claude"

    def test_status_to_dict(self, window_status):
        data = status_to_dict(window_status)

        assert data["provider_id"] == "a"
        assert data["usage"]["type"] == "utilization_window"
        assert data["usage"]["period_utilization"] == 82.0
        assert data["needs_reconnect"] is False

    def test_rule_to_dict(self, period_rule):
        data = rule_to_dict(period_rule)

        assert data["metric"] == "period"
        assert data["threshold_percent"] == 80.0
        assert data["triggered"] is False
