"""Pytest configuration and shared fixtures for quotawatch tests."""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from quotawatch.config import settings as settings_module
from quotawatch.config.settings import Config
from quotawatch.config.store import SettingsRepository
from quotawatch.core import http as http_module
from quotawatch.core.engine import UsageEngine
from quotawatch.core.normalize import UsageNormalizer
from quotawatch.errors.exceptions import PersistenceError
from quotawatch.models import (
    AlertMetric,
    AlertRule,
    EngineSettings,
    ProviderStatus,
    TokenCostCounter,
    UsageShape,
    UtilizationWindow,
)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch) -> Generator[Path, None, None]:
    """Point config and cache directories at a temp dir and reset singletons."""
    config_dir = tmp_path / "config"
    cache_dir = tmp_path / "cache"
    monkeypatch.setenv("QUOTAWATCH_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("QUOTAWATCH_CACHE_DIR", str(cache_dir))
    for var in (
        "QUOTAWATCH_LOG_LEVEL",
        "QUOTAWATCH_LOG_JSON",
        "QUOTAWATCH_FETCH_TIMEOUT",
        "OPENAI_ADMIN_KEY",
    ):
        monkeypatch.delenv(var, raising=False)

    settings_module._config = None
    http_module._client = None
    yield config_dir
    settings_module._config = None
    http_module._client = None


@pytest.fixture
def utc_now() -> datetime:
    """Fixed UTC datetime for consistent testing."""
    return datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def future_time() -> datetime:
    """Time about an hour and five minutes in the future."""
    return datetime.now(timezone.utc) + timedelta(hours=1, minutes=5, seconds=30)


@pytest.fixture
def sample_window(future_time: datetime) -> UtilizationWindow:
    """Window-shaped usage at 82% of the 5-hour window."""
    return UtilizationWindow(
        period_utilization=82.0,
        period_resets_at=future_time,
        weekly_utilization=40.0,
        weekly_resets_at=future_time + timedelta(days=3),
    )


@pytest.fixture
def sample_counter() -> TokenCostCounter:
    """Counter-shaped usage."""
    return TokenCostCounter(
        input_tokens=1200,
        output_tokens=300,
        total_requests=42,
        total_cost_usd=1.25,
        period_days=30,
    )


def claude_payload(period: float | None = 12.0, weekly: float | None = 27.0) -> dict:
    """Anthropic OAuth usage response."""
    return {
        "five_hour": None
        if period is None
        else {"utilization": period, "resets_at": "2026-01-17T06:59:59.846865+00:00"},
        "seven_day": None
        if weekly is None
        else {"utilization": weekly, "resets_at": "2026-01-22T18:59:59.846886+00:00"},
        "seven_day_opus": None,
        "extra_usage": {"is_enabled": False},
    }


@pytest.fixture
def claude_usage_payload() -> dict:
    return claude_payload()


@pytest.fixture
def openai_usage_payload() -> dict:
    """OpenAI organization usage and costs pages."""
    return {
        "usage": {
            "object": "page",
            "data": [
                {
                    "object": "bucket",
                    "start_time": 1736553600,
                    "end_time": 1736640000,
                    "results": [
                        {
                            "object": "organization.usage.completions.result",
                            "input_tokens": 1000,
                            "output_tokens": 250,
                            "num_model_requests": 30,
                        }
                    ],
                },
                {
                    "object": "bucket",
                    "start_time": 1736640000,
                    "end_time": 1736726400,
                    "results": [
                        {
                            "object": "organization.usage.completions.result",
                            "input_tokens": 200,
                            "output_tokens": 50,
                            "num_model_requests": 12,
                        }
                    ],
                },
            ],
        },
        "costs": {
            "object": "page",
            "data": [
                {
                    "object": "bucket",
                    "results": [
                        {
                            "object": "organization.costs.result",
                            "amount": {"value": 0.75, "currency": "usd"},
                        }
                    ],
                },
                {
                    "object": "bucket",
                    "results": [
                        {
                            "object": "organization.costs.result",
                            "amount": {"value": 0.5, "currency": "usd"},
                        }
                    ],
                },
            ],
        },
        "period_days": 30,
    }


class FakeFetcher:
    """UsageFetcher returning canned payloads or raising canned errors.

    Set ``gate`` to an unset asyncio.Event to hold fetches in flight.
    """

    def __init__(self, responses: dict | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def __call__(self, provider_id: str):
        self.calls.append(provider_id)
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses[provider_id]
        if isinstance(response, BaseException):
            raise response
        return response

    async def aclose(self) -> None:
        self.closed = True


class MemorySettingsRepository(SettingsRepository):
    """In-memory settings store recording every save."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        fail_load: bool = False,
        fail_save: bool = False,
    ) -> None:
        self.settings = settings or EngineSettings(enabled_providers=["a", "b"])
        self.saved: list[EngineSettings] = []
        self.fail_load = fail_load
        self.fail_save = fail_save

    def load(self) -> EngineSettings:
        if self.fail_load:
            raise PersistenceError("disk unavailable")
        return self.settings

    def save(self, settings: EngineSettings) -> None:
        if self.fail_save:
            raise PersistenceError("disk full")
        self.saved.append(settings)
        self.settings = settings


class RecordingTray:
    """TrayNotifier that records calls."""

    def __init__(self) -> None:
        self.updates: list[tuple] = []
        self.alerts: list[tuple[str, str]] = []

    def notify_tray(self, period_remaining, weekly_remaining, menu_details) -> None:
        self.updates.append((period_remaining, weekly_remaining, menu_details))

    def send_alert(self, title: str, body: str) -> None:
        self.alerts.append((title, body))


TEST_SHAPES = {
    "a": UsageShape.UTILIZATION_WINDOW,
    "b": UsageShape.UTILIZATION_WINDOW,
    "claude": UsageShape.UTILIZATION_WINDOW,
    "openai": UsageShape.TOKEN_COST_COUNTER,
}


@pytest.fixture
def normalizer() -> UsageNormalizer:
    return UsageNormalizer(TEST_SHAPES)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher({"a": claude_payload(50.0, 20.0), "b": claude_payload(10.0, 5.0)})


@pytest.fixture
def repository() -> MemorySettingsRepository:
    return MemorySettingsRepository()


@pytest.fixture
def tray() -> RecordingTray:
    return RecordingTray()


@pytest.fixture
def make_engine(fetcher, repository, tray, normalizer):
    """Factory building a UsageEngine around the fake collaborators."""

    def factory(**overrides) -> UsageEngine:
        kwargs = {
            "fetcher": fetcher,
            "repository": repository,
            "tray": tray,
            "normalizer": normalizer,
            "config": Config(),
        }
        kwargs.update(overrides)
        return UsageEngine(**kwargs)

    return factory


@pytest.fixture
def period_rule() -> AlertRule:
    return AlertRule(id="r1", metric=AlertMetric.PERIOD, threshold_percent=80.0)


@pytest.fixture
def window_status(sample_window: UtilizationWindow, utc_now: datetime) -> ProviderStatus:
    return ProviderStatus(
        provider_id="a", connected=True, usage=sample_window, last_updated=utc_now
    )
