"""Usage monitoring and alert engine.

Wires the status store, normalizer, alert evaluator, notification
dispatcher and poll scheduler together behind one object with an explicit
start/shutdown lifecycle.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable
from collections.abc import Callable

import msgspec
import structlog

from quotawatch.config.settings import Config
from quotawatch.config.settings import get_config
from quotawatch.config.store import DEFAULT_ENABLED_PROVIDERS
from quotawatch.config.store import JsonSettingsRepository
from quotawatch.config.store import SettingsRepository
from quotawatch.core.alerts import evaluate_alerts
from quotawatch.core.alerts import summarize
from quotawatch.core.normalize import UsageNormalizer
from quotawatch.core.notify import NotificationDispatcher
from quotawatch.core.notify import TrayNotifier
from quotawatch.core.notify import remaining_capacity
from quotawatch.core.scheduler import PollScheduler
from quotawatch.core.store import FetchResult
from quotawatch.core.store import ProviderStatusStore
from quotawatch.core.store import StatusCallback
from quotawatch.errors.classify import classify_exception
from quotawatch.errors.exceptions import NormalizationError
from quotawatch.errors.exceptions import PersistenceError
from quotawatch.errors.exceptions import ValidationError
from quotawatch.errors.types import ErrorCategory
from quotawatch.models import AlertRule
from quotawatch.models import EngineSettings
from quotawatch.models import ProviderStatus
from quotawatch.models import validate_alert_rule
from quotawatch.models import validate_poll_interval

logger = structlog.get_logger(__name__)

UsageFetcher = Callable[[str], Awaitable[object]]


def new_rule_id() -> str:
    return uuid.uuid4().hex[:12]


class UsageEngine:
    """Polls enabled providers and keeps statuses and alerts current.

    Usage:
        async with UsageEngine(tray=ConsoleTray()) as engine:
            await engine.refresh_now()
            print(engine.all_statuses())

    Configuration mutators are synchronous: they validate, update memory,
    and queue a background save. Only ValidationError is ever raised from
    them; persistence failures are logged and the in-memory settings stay
    authoritative.
    """

    def __init__(
        self,
        fetcher: UsageFetcher | None = None,
        repository: SettingsRepository | None = None,
        tray: TrayNotifier | None = None,
        normalizer: UsageNormalizer | None = None,
        config: Config | None = None,
    ) -> None:
        if fetcher is None:
            from quotawatch.providers import RegistryFetcher

            fetcher = RegistryFetcher()

        self.config = config or get_config()
        self.fetcher = fetcher
        self.repository = repository or JsonSettingsRepository()
        self.normalizer = normalizer or UsageNormalizer()
        self.dispatcher = NotificationDispatcher(tray)

        self.settings = self._load_settings()
        self.store = ProviderStatusStore(self.settings.enabled_providers)
        self.scheduler = PollScheduler(
            self.poll_round, self.settings.poll_interval_seconds
        )

        self._started = False
        self._triggered_count = 0
        self._save_lock = asyncio.Lock()
        self._pending_saves: set[asyncio.Task] = set()

    # Lifecycle

    def start(self) -> None:
        """Start periodic polling. Must be called from a running event loop."""
        logger.info(
            "engine_started",
            providers=self.settings.enabled_providers,
            interval=self.settings.poll_interval_seconds,
        )
        self._started = True
        if self.settings.enabled_providers:
            self.scheduler.start(self.settings.poll_interval_seconds)

    async def shutdown(self) -> None:
        """Stop polling, let an in-flight round finish, flush pending saves."""
        self._started = False
        await self.scheduler.stop()
        await self.scheduler.wait_idle()
        await self.flush()

        close = getattr(self.fetcher, "aclose", None)
        if close is not None:
            await close()
        logger.info("engine_stopped")

    async def __aenter__(self) -> UsageEngine:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    # Status

    def get_status(self, provider_id: str) -> ProviderStatus | None:
        return self.store.get(provider_id)

    def all_statuses(self) -> dict[str, ProviderStatus]:
        return self.store.all()

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Call callback with every new provider status."""
        return self.store.subscribe(callback)

    def refresh_now(self) -> Awaitable[None]:
        """Poll immediately, or join the round already in flight."""
        return self.scheduler.trigger_now()

    @property
    def triggered_count(self) -> int:
        return self._triggered_count

    @property
    def enabled_providers(self) -> list[str]:
        return list(self.settings.enabled_providers)

    # Providers

    def add_provider(self, provider_id: str) -> None:
        """Enable a provider. Adding one that is already enabled is a no-op.

        The first provider enabled on a started engine resumes polling with
        an immediate round.
        """
        if not provider_id:
            raise ValidationError("provider id required")
        if self.normalizer.shape_for(provider_id) is None:
            raise ValidationError(f"unknown provider: {provider_id}")
        if provider_id in self.settings.enabled_providers:
            return

        was_empty = not self.settings.enabled_providers
        self._update(
            enabled_providers=[*self.settings.enabled_providers, provider_id]
        )
        self.store.add(provider_id)
        logger.info("provider_added", provider_id=provider_id)
        if was_empty and self._started:
            self.scheduler.start(self.settings.poll_interval_seconds)

    def remove_provider(self, provider_id: str) -> None:
        """Disable a provider and drop its status. Idempotent."""
        removed = self.store.remove(provider_id)
        if provider_id in self.settings.enabled_providers:
            self._update(
                enabled_providers=[
                    p for p in self.settings.enabled_providers if p != provider_id
                ]
            )
            removed = True

        if removed:
            logger.info("provider_removed", provider_id=provider_id)
            if not self.settings.enabled_providers:
                self.scheduler.cancel()
            self.reevaluate()

    # Alerts

    def get_alert_rules(self) -> list[AlertRule]:
        return list(self.settings.alert_rules)

    def upsert_alert_rule(self, rule: AlertRule) -> AlertRule:
        """Insert or replace (by id) an alert rule.

        A rule without an id gets a generated one.

        Returns:
            The stored rule with its current triggered state

        Raises:
            ValidationError: If the threshold is outside [0, 100]
        """
        if not rule.id:
            rule = msgspec.structs.replace(rule, id=new_rule_id())
        errors = validate_alert_rule(rule)
        if errors:
            raise ValidationError(errors)

        rules = list(self.settings.alert_rules)
        for i, existing in enumerate(rules):
            if existing.id == rule.id:
                rules[i] = rule
                break
        else:
            rules.append(rule)

        self._update(alert_rules=rules)
        self.reevaluate()
        return next(r for r in self.settings.alert_rules if r.id == rule.id)

    def delete_alert_rule(self, rule_id: str) -> bool:
        """Delete a rule by id.

        Returns:
            True if deleted, False if no rule had that id
        """
        rules = [r for r in self.settings.alert_rules if r.id != rule_id]
        if len(rules) == len(self.settings.alert_rules):
            return False

        self._update(alert_rules=rules)
        self.reevaluate()
        return True

    def set_notifications_enabled(self, enabled: bool) -> None:
        self._update(notifications_enabled=enabled)
        self.reevaluate()

    # Polling

    def set_poll_interval(self, seconds: int) -> None:
        """Change the poll interval; takes effect from now.

        Raises:
            ValidationError: If seconds is not an accepted interval
        """
        errors = validate_poll_interval(seconds)
        if errors:
            raise ValidationError(errors)

        self._update(poll_interval_seconds=seconds)
        if self.scheduler.running:
            self.scheduler.set_interval(seconds)
        else:
            self.scheduler.interval = seconds

    async def poll_round(self) -> None:
        """Fetch every enabled provider concurrently, then re-evaluate alerts."""
        provider_ids = list(self.settings.enabled_providers)
        semaphore = asyncio.Semaphore(self.config.fetch.max_concurrent)

        async def poll_one(provider_id: str) -> None:
            async with semaphore:
                result = await self.fetch_one(provider_id)
            self.store.merge(provider_id, result)

        await asyncio.gather(*(poll_one(p) for p in provider_ids))
        self.reevaluate()

    async def fetch_one(self, provider_id: str) -> FetchResult:
        """Fetch and normalize one provider; never raises."""
        try:
            raw = await asyncio.wait_for(
                self.fetcher(provider_id), timeout=self.config.fetch.timeout
            )
            usage = self.normalizer.normalize(provider_id, raw)
        except NormalizationError as e:
            logger.error("usage_malformed", provider_id=provider_id, error=e.message)
            return FetchResult.fail(e.message, ErrorCategory.PARSE)
        except Exception as e:
            error = classify_exception(e, provider_id)
            logger.warning(
                "fetch_failed",
                provider_id=provider_id,
                error=error.message,
                category=error.category,
            )
            return FetchResult.fail(error.message, error.category)

        logger.debug("fetch_succeeded", provider_id=provider_id)
        return FetchResult.ok(usage)

    def reevaluate(self) -> None:
        """Recompute alert state from the store and notify the tray."""
        statuses = self.store.all()
        evaluation = evaluate_alerts(
            self.settings.alert_rules, statuses, self.settings.notifications_enabled
        )
        self.settings = msgspec.structs.replace(
            self.settings, alert_rules=evaluation.rules
        )
        self._triggered_count = evaluation.triggered_count
        self.dispatcher.dispatch(
            remaining_capacity(statuses), summarize(evaluation, statuses)
        )

    # Persistence

    async def flush(self) -> None:
        """Wait for queued settings saves to land."""
        while self._pending_saves:
            await asyncio.wait(set(self._pending_saves))

    def _load_settings(self) -> EngineSettings:
        try:
            return self.repository.load()
        except PersistenceError as e:
            logger.error("settings_load_failed", error=e.message)
            return EngineSettings(enabled_providers=list(DEFAULT_ENABLED_PROVIDERS))

    def _update(self, **changes) -> None:
        self.settings = msgspec.structs.replace(self.settings, **changes)
        self._persist(self.settings)

    def _persist(self, settings: EngineSettings) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._save(settings)
            return

        task = loop.create_task(self._save_in_background(settings))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save_in_background(self, settings: EngineSettings) -> None:
        # Lock keeps saves in submission order
        async with self._save_lock:
            await asyncio.to_thread(self._save, settings)

    def _save(self, settings: EngineSettings) -> None:
        try:
            self.repository.save(settings)
        except PersistenceError as e:
            logger.error("settings_save_failed", error=e.message)
