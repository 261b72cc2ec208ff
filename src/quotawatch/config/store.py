"""Persistent engine settings (the key-value settings store).

Settings are kept as a flat JSON object with one key per concern::

    {
        "enabledProviders": ["claude", "openai"],
        "usageAlerts": [{"id": "a1", "metric": "period", "thresholdPercent": 80, ...}],
        "notificationsEnabled": true,
        "pollingInterval": 60
    }

Each key is decoded on its own so a malformed value only resets that key to
its built-in default.
"""

from __future__ import annotations

import stat
from abc import ABC
from abc import abstractmethod
from pathlib import Path

import msgspec
import structlog

from quotawatch.errors.exceptions import PersistenceError
from quotawatch.models import DEFAULT_POLL_INTERVAL
from quotawatch.models import POLL_INTERVALS
from quotawatch.models import AlertMetric
from quotawatch.models import AlertRule
from quotawatch.models import EngineSettings
from quotawatch.models import Percent

logger = structlog.get_logger(__name__)

# Used when enabledProviders has never been written
DEFAULT_ENABLED_PROVIDERS = ("claude", "openai")

KEY_ENABLED_PROVIDERS = "enabledProviders"
KEY_USAGE_ALERTS = "usageAlerts"
KEY_NOTIFICATIONS_ENABLED = "notificationsEnabled"
KEY_POLLING_INTERVAL = "pollingInterval"


class AlertRecord(msgspec.Struct, rename="camel", omit_defaults=True):
    """Stored form of an alert rule (no derived state)."""

    id: str
    metric: AlertMetric
    threshold_percent: Percent
    enabled: bool = True
    label: str | None = None
    provider_id: str | None = None

    @classmethod
    def from_rule(cls, rule: AlertRule) -> AlertRecord:
        return cls(
            id=rule.id,
            metric=rule.metric,
            threshold_percent=rule.threshold_percent,
            enabled=rule.enabled,
            label=rule.label,
            provider_id=rule.provider_id,
        )

    def to_rule(self) -> AlertRule:
        return AlertRule(
            id=self.id,
            metric=self.metric,
            threshold_percent=self.threshold_percent,
            enabled=self.enabled,
            label=self.label,
            provider_id=self.provider_id,
        )


class SettingsRepository(ABC):
    """Load/save contract for engine settings."""

    @abstractmethod
    def load(self) -> EngineSettings:
        """Return stored settings, defaults for anything missing or malformed.

        Raises:
            PersistenceError: If the underlying store cannot be read
        """

    @abstractmethod
    def save(self, settings: EngineSettings) -> None:
        """Persist settings.

        Raises:
            PersistenceError: If the underlying store cannot be written
        """


def settings_from_dict(data: object) -> EngineSettings:
    """Build EngineSettings from a decoded key-value blob."""
    if not isinstance(data, dict):
        logger.warning("settings_malformed", reason="top level is not an object")
        data = {}

    enabled = _decode_key(
        data, KEY_ENABLED_PROVIDERS, list[str], list(DEFAULT_ENABLED_PROVIDERS)
    )
    interval = _decode_key(data, KEY_POLLING_INTERVAL, int, DEFAULT_POLL_INTERVAL)
    if interval not in POLL_INTERVALS:
        logger.warning("settings_malformed", key=KEY_POLLING_INTERVAL, value=interval)
        interval = DEFAULT_POLL_INTERVAL
    notifications = _decode_key(data, KEY_NOTIFICATIONS_ENABLED, bool, True)
    records = _decode_key(data, KEY_USAGE_ALERTS, list[AlertRecord], [])

    return EngineSettings(
        enabled_providers=list(dict.fromkeys(p for p in enabled if p)),
        poll_interval_seconds=interval,
        notifications_enabled=notifications,
        alert_rules=[record.to_rule() for record in records],
    )


def settings_to_dict(settings: EngineSettings) -> dict:
    """Convert EngineSettings to the stored key-value blob."""
    return {
        KEY_ENABLED_PROVIDERS: list(settings.enabled_providers),
        KEY_USAGE_ALERTS: msgspec.to_builtins(
            [AlertRecord.from_rule(rule) for rule in settings.alert_rules]
        ),
        KEY_NOTIFICATIONS_ENABLED: settings.notifications_enabled,
        KEY_POLLING_INTERVAL: settings.poll_interval_seconds,
    }


def _decode_key(data: dict, key: str, type_, default):
    if key not in data:
        return default
    try:
        return msgspec.convert(data[key], type=type_)
    except msgspec.ValidationError as e:
        logger.warning("settings_malformed", key=key, error=str(e))
        return default


class JsonSettingsRepository(SettingsRepository):
    """Settings stored as a JSON file, written atomically."""

    def __init__(self, path: Path | None = None) -> None:
        if path is None:
            from quotawatch.config.paths import settings_file

            path = settings_file()
        self.path = path

    def load(self) -> EngineSettings:
        if not self.path.exists():
            return EngineSettings(enabled_providers=list(DEFAULT_ENABLED_PROVIDERS))

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}") from e

        try:
            data = msgspec.json.decode(raw) if raw.strip() else {}
        except msgspec.DecodeError as e:
            logger.warning("settings_malformed", path=str(self.path), error=str(e))
            data = {}

        return settings_from_dict(data)

    def save(self, settings: EngineSettings) -> None:
        content = msgspec.json.format(msgspec.json.encode(settings_to_dict(settings)))

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write to temp file first, then rename for atomicity
            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_bytes(content)
            temp_path.chmod(stat.S_IRUSR | stat.S_IWUSR)
            temp_path.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e
