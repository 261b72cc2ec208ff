"""Admin API key client for the OpenAI provider.

Organization usage and costs are only available to Admin API keys. Both
endpoints return day buckets; pages are followed until ``has_more`` is false.
"""

from __future__ import annotations

import os
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import httpx
import structlog

from quotawatch.config.keyring import get_api_key
from quotawatch.core.http import get_http_client
from quotawatch.errors.exceptions import AuthError
from quotawatch.errors.exceptions import ProviderConnectionError
from quotawatch.errors.messages import get_auth_error_message

logger = structlog.get_logger(__name__)

PROVIDER_ID = "openai"

API_BASE = "https://api.openai.com/v1"
USAGE_ENDPOINT = f"{API_BASE}/organization/usage/completions"
COSTS_ENDPOINT = f"{API_BASE}/organization/costs"

ENV_VAR = "OPENAI_ADMIN_KEY"
PERIOD_DAYS = 30
MAX_PAGES = 10


def load_api_key() -> str | None:
    """Load the admin key from the environment or the system keyring."""
    if api_key := os.environ.get(ENV_VAR):
        return api_key
    return get_api_key(PROVIDER_ID)


class OpenAIAdminClient:
    """Fetch organization token usage and spend."""

    def __init__(self, period_days: int = PERIOD_DAYS) -> None:
        self.period_days = period_days

    def has_credentials(self) -> bool:
        return load_api_key() is not None

    async def fetch_usage(self) -> dict:
        """Return {"usage": page, "costs": page, "period_days": n}.

        Raises:
            AuthError: If no key is stored or the key is rejected
            ProviderConnectionError: On transport failures or other HTTP errors
        """
        api_key = load_api_key()
        if not api_key:
            raise AuthError(
                get_auth_error_message(PROVIDER_ID, "no_credentials"),
                provider_id=PROVIDER_ID,
            )

        start = datetime.now(timezone.utc) - timedelta(days=self.period_days)
        params = {
            "start_time": int(start.timestamp()),
            "bucket_width": "1d",
            "limit": self.period_days + 1,
        }
        headers = {"Authorization": f"Bearer {api_key}"}

        async with get_http_client() as client:
            usage = await self._fetch_buckets(client, USAGE_ENDPOINT, params, headers)
            costs = await self._fetch_buckets(client, COSTS_ENDPOINT, params, headers)

        return {"usage": usage, "costs": costs, "period_days": self.period_days}

    async def _fetch_buckets(
        self, client: httpx.AsyncClient, url: str, params: dict, headers: dict
    ) -> dict:
        buckets: list = []
        page_params = dict(params)

        for _ in range(MAX_PAGES):
            try:
                response = await client.get(url, params=page_params, headers=headers)
            except httpx.TransportError as e:
                raise ProviderConnectionError(
                    f"Failed to reach OpenAI: {e}", provider_id=PROVIDER_ID
                ) from e

            if response.status_code in (401, 403):
                raise AuthError(
                    get_auth_error_message(PROVIDER_ID, str(response.status_code)),
                    provider_id=PROVIDER_ID,
                )
            if response.status_code != 200:
                raise ProviderConnectionError(
                    f"OpenAI request failed: HTTP {response.status_code}",
                    provider_id=PROVIDER_ID,
                )

            page = response.json()
            buckets.extend(page.get("data") or [])
            if not page.get("has_more") or not page.get("next_page"):
                break
            page_params["page"] = page["next_page"]
        else:
            logger.warning("page_limit_reached", url=url, pages=MAX_PAGES)

        return {"data": buckets}
