"""Authoritative in-memory map of provider id to ProviderStatus."""

from __future__ import annotations

import threading
from collections.abc import Callable
from collections.abc import Iterable
from datetime import datetime
from datetime import timezone

import msgspec
import structlog

from quotawatch.errors.types import ErrorCategory
from quotawatch.models import NormalizedUsage
from quotawatch.models import ProviderStatus

logger = structlog.get_logger(__name__)

StatusCallback = Callable[[ProviderStatus], None]


class FetchResult(msgspec.Struct, frozen=True):
    """Outcome of one provider fetch, ready to merge."""

    success: bool
    usage: NormalizedUsage | None = None
    error: str | None = None
    error_category: ErrorCategory | None = None

    @classmethod
    def ok(cls, usage: NormalizedUsage) -> FetchResult:
        return cls(success=True, usage=usage)

    @classmethod
    def fail(
        cls, error: str, category: ErrorCategory = ErrorCategory.UNKNOWN
    ) -> FetchResult:
        return cls(success=False, error=error, error_category=category)


class ProviderStatusStore:
    """Holds the latest status per tracked provider.

    Statuses are frozen; a merge builds a replacement and swaps it in under a
    short lock, so readers only ever see whole statuses. Subscribers are
    called after the swap, outside the lock.
    """

    def __init__(self, provider_ids: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._statuses: dict[str, ProviderStatus] = {}
        self._subscribers: list[StatusCallback] = []
        for provider_id in provider_ids:
            self.add(provider_id)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._statuses

    def __len__(self) -> int:
        return len(self._statuses)

    def add(self, provider_id: str) -> bool:
        """Track provider_id with an unconfigured status.

        Returns:
            True if added, False if it was already tracked
        """
        with self._lock:
            if provider_id in self._statuses:
                return False
            status = ProviderStatus.unconfigured(provider_id)
            self._statuses[provider_id] = status

        self._publish(status)
        return True

    def remove(self, provider_id: str) -> bool:
        """Stop tracking provider_id. Idempotent.

        Returns:
            True if removed, False if it was not tracked
        """
        with self._lock:
            return self._statuses.pop(provider_id, None) is not None

    def get(self, provider_id: str) -> ProviderStatus | None:
        return self._statuses.get(provider_id)

    def all(self) -> dict[str, ProviderStatus]:
        """Snapshot of all statuses in insertion order."""
        with self._lock:
            return dict(self._statuses)

    def merge(self, provider_id: str, result: FetchResult) -> ProviderStatus | None:
        """Fold a fetch result into the provider's status.

        A success replaces the usage and clears any error. A failure records
        the error and keeps the previous usage.

        Returns:
            The new status, or None if provider_id is not tracked
        """
        now = datetime.now(timezone.utc)

        with self._lock:
            current = self._statuses.get(provider_id)
            if current is None:
                dropped = True
            else:
                dropped = False
                if result.success:
                    status = ProviderStatus(
                        provider_id=provider_id,
                        connected=True,
                        usage=result.usage,
                        last_updated=now,
                    )
                else:
                    status = msgspec.structs.replace(
                        current,
                        connected=False,
                        error=result.error,
                        error_category=result.error_category,
                        last_updated=now,
                    )
                self._statuses[provider_id] = status

        if dropped:
            logger.debug("merge_dropped", provider_id=provider_id)
            return None

        self._publish(status)
        return status

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register callback for every new status.

        Returns:
            A function that removes the subscription
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, status: ProviderStatus) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(status)
            except Exception:
                logger.exception("subscriber_failed", provider_id=status.provider_id)
