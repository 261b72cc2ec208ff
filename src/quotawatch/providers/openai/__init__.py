"""OpenAI provider for quotawatch."""

from __future__ import annotations

from quotawatch.models import ProviderMetadata
from quotawatch.models import UsageShape
from quotawatch.providers.base import Provider
from quotawatch.providers.openai.admin import OpenAIAdminClient


class OpenAIProvider(Provider):
    """Provider for OpenAI organization token and cost counters."""

    metadata = ProviderMetadata(
        id="openai",
        name="OpenAI",
        description="OpenAI API organization usage",
        usage_shape=UsageShape.TOKEN_COST_COUNTER,
        homepage="https://platform.openai.com",
        dashboard_url="https://platform.openai.com/usage",
    )

    def __init__(self, client: OpenAIAdminClient | None = None) -> None:
        self.client = client or OpenAIAdminClient()

    def is_configured(self) -> bool:
        return self.client.has_credentials()

    async def fetch_usage(self) -> dict:
        return await self.client.fetch_usage()
