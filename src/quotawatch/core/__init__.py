"""Core monitoring engine for quotawatch."""

from quotawatch.core.alerts import AlertEvaluation, current_metric, evaluate_alerts, summarize
from quotawatch.core.engine import UsageEngine, UsageFetcher
from quotawatch.core.http import cleanup, get_http_client, get_timeout_config
from quotawatch.core.normalize import UsageNormalizer, parse_timestamp
from quotawatch.core.notify import (
    NotificationDispatcher,
    TrayNotifier,
    menu_details,
    remaining_capacity,
)
from quotawatch.core.scheduler import PollScheduler, SchedulerState
from quotawatch.core.store import FetchResult, ProviderStatusStore

__all__ = [
    # http
    "get_http_client",
    "cleanup",
    "get_timeout_config",
    # normalize
    "UsageNormalizer",
    "parse_timestamp",
    # store
    "FetchResult",
    "ProviderStatusStore",
    # alerts
    "AlertEvaluation",
    "evaluate_alerts",
    "current_metric",
    "summarize",
    # notify
    "NotificationDispatcher",
    "TrayNotifier",
    "menu_details",
    "remaining_capacity",
    # scheduler
    "PollScheduler",
    "SchedulerState",
    # engine
    "UsageEngine",
    "UsageFetcher",
]
