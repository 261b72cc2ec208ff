"""Reduce provider-specific usage payloads to a canonical snapshot shape."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from quotawatch.errors.exceptions import NormalizationError
from quotawatch.models import NormalizedUsage
from quotawatch.models import TokenCostCounter
from quotawatch.models import UsageShape
from quotawatch.models import UtilizationWindow
from quotawatch.models import clamp_utilization

PERIOD_KEY = "five_hour"
WEEKLY_KEY = "seven_day"
COUNTER_KEYS = ("input_tokens", "output_tokens", "total_requests", "total_cost_usd")
DEFAULT_PERIOD_DAYS = 30


class UsageNormalizer:
    """Converts raw payloads using each provider's declared usage shape."""

    def __init__(self, shapes: Mapping[str, UsageShape] | None = None) -> None:
        if shapes is None:
            from quotawatch.providers import provider_shapes

            shapes = provider_shapes()
        self._shapes = dict(shapes)

    def shape_for(self, provider_id: str) -> UsageShape | None:
        return self._shapes.get(provider_id)

    def normalize(self, provider_id: str, raw_payload: object) -> NormalizedUsage:
        """Normalize a raw payload for provider_id.

        Raises:
            NormalizationError: If the provider is unknown or the payload does
                not match its declared shape
        """
        shape = self._shapes.get(provider_id)
        if shape is None:
            raise NormalizationError(
                f"No usage shape declared for provider '{provider_id}'",
                provider_id=provider_id,
            )

        if not isinstance(raw_payload, Mapping):
            raise NormalizationError(
                f"Expected an object payload, got {type(raw_payload).__name__}",
                provider_id=provider_id,
            )

        match shape:
            case UsageShape.UTILIZATION_WINDOW:
                return normalize_utilization_window(provider_id, raw_payload)
            case UsageShape.TOKEN_COST_COUNTER:
                return normalize_token_cost_counter(provider_id, raw_payload)


def normalize_utilization_window(
    provider_id: str, payload: Mapping
) -> UtilizationWindow:
    """Parse a window-style payload.

    Format (Anthropic OAuth usage endpoint):
    {
        "five_hour": { "utilization": 12.0, "resets_at": "2026-01-17T06:59:59+00:00" },
        "seven_day": { "utilization": 27.0, "resets_at": "2026-01-22T18:59:59+00:00" } | null,
        ...
    }
    """
    if PERIOD_KEY not in payload and WEEKLY_KEY not in payload:
        raise NormalizationError(
            f"Payload has neither '{PERIOD_KEY}' nor '{WEEKLY_KEY}' windows",
            provider_id=provider_id,
        )

    period = _parse_window(provider_id, payload.get(PERIOD_KEY), PERIOD_KEY)
    weekly = _parse_window(provider_id, payload.get(WEEKLY_KEY), WEEKLY_KEY)

    return UtilizationWindow(
        period_utilization=period[0] if period else 0.0,
        period_resets_at=period[1] if period else None,
        weekly_utilization=weekly[0] if weekly else None,
        weekly_resets_at=weekly[1] if weekly else None,
    )


def _parse_window(
    provider_id: str, window: object, key: str
) -> tuple[float, datetime | None] | None:
    if window is None:
        return None
    if not isinstance(window, Mapping):
        raise NormalizationError(
            f"Window '{key}' is not an object", provider_id=provider_id
        )

    utilization = window.get("utilization")
    if utilization is None:
        return None
    if isinstance(utilization, bool) or not isinstance(utilization, (int, float)):
        raise NormalizationError(
            f"Window '{key}' utilization is not a number: {utilization!r}",
            provider_id=provider_id,
        )

    return clamp_utilization(utilization), parse_timestamp(window.get("resets_at"))


def normalize_token_cost_counter(
    provider_id: str, payload: Mapping
) -> TokenCostCounter:
    """Parse a counter-style payload.

    Accepts the flat form
    {"input_tokens", "output_tokens", "total_requests", "total_cost_usd", "period_days"}
    or the OpenAI organization API form
    {"usage": {"data": [bucket, ...]}, "costs": {"data": [bucket, ...]}, "period_days": 30}.
    """
    period_days = _non_negative_int(
        provider_id, payload.get("period_days", DEFAULT_PERIOD_DAYS), "period_days"
    )

    if "usage" in payload or "costs" in payload:
        return _sum_buckets(provider_id, payload, period_days)

    if not any(key in payload for key in COUNTER_KEYS):
        raise NormalizationError(
            "Payload has no token or cost counters", provider_id=provider_id
        )

    return TokenCostCounter(
        input_tokens=_non_negative_int(
            provider_id, payload.get("input_tokens", 0), "input_tokens"
        ),
        output_tokens=_non_negative_int(
            provider_id, payload.get("output_tokens", 0), "output_tokens"
        ),
        total_requests=_non_negative_int(
            provider_id, payload.get("total_requests", 0), "total_requests"
        ),
        total_cost_usd=_non_negative_float(
            provider_id, payload.get("total_cost_usd", 0.0), "total_cost_usd"
        ),
        period_days=period_days,
    )


def _sum_buckets(provider_id: str, payload: Mapping, period_days: int) -> TokenCostCounter:
    input_tokens = output_tokens = requests = 0
    cost = 0.0

    for result in _bucket_results(provider_id, payload.get("usage"), "usage"):
        input_tokens += _non_negative_int(
            provider_id, result.get("input_tokens", 0), "input_tokens"
        )
        output_tokens += _non_negative_int(
            provider_id, result.get("output_tokens", 0), "output_tokens"
        )
        requests += _non_negative_int(
            provider_id, result.get("num_model_requests", 0), "num_model_requests"
        )

    for result in _bucket_results(provider_id, payload.get("costs"), "costs"):
        amount = result.get("amount") or {}
        if not isinstance(amount, Mapping):
            raise NormalizationError(
                "Cost amount is not an object", provider_id=provider_id
            )
        cost += _non_negative_float(provider_id, amount.get("value", 0.0), "amount")

    return TokenCostCounter(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_requests=requests,
        total_cost_usd=round(cost, 6),
        period_days=period_days,
    )


def _bucket_results(provider_id: str, page: object, key: str) -> list[Mapping]:
    if page is None:
        return []
    if not isinstance(page, Mapping) or not isinstance(page.get("data", []), list):
        raise NormalizationError(
            f"'{key}' is not a page of buckets", provider_id=provider_id
        )

    results = []
    for bucket in page.get("data", []):
        if not isinstance(bucket, Mapping):
            raise NormalizationError(
                f"'{key}' bucket is not an object", provider_id=provider_id
            )
        results.extend(r for r in bucket.get("results") or [] if isinstance(r, Mapping))
    return results


def _non_negative_int(provider_id: str, value: object, field: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise NormalizationError(
            f"'{field}' is not a number: {value!r}", provider_id=provider_id
        )
    return max(0, int(value))


def _non_negative_float(provider_id: str, value: object, field: str) -> float:
    if isinstance(value, str):
        # Cost amounts are sometimes serialized as decimal strings
        try:
            value = float(value)
        except ValueError:
            pass
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise NormalizationError(
            f"'{field}' is not a number: {value!r}", provider_id=provider_id
        )
    return max(0.0, float(value))


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when absent or invalid."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
