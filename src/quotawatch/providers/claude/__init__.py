"""Claude (Anthropic) provider for quotawatch."""

from __future__ import annotations

from quotawatch.models import ProviderMetadata
from quotawatch.models import UsageShape
from quotawatch.providers.base import Provider
from quotawatch.providers.claude.oauth import ClaudeOAuthClient


class ClaudeProvider(Provider):
    """Provider for Claude subscription quota windows."""

    metadata = ProviderMetadata(
        id="claude",
        name="Claude",
        description="Anthropic's Claude AI assistant",
        usage_shape=UsageShape.UTILIZATION_WINDOW,
        homepage="https://claude.ai",
        dashboard_url="https://claude.ai/settings/usage",
    )

    def __init__(self, client: ClaudeOAuthClient | None = None) -> None:
        self.client = client or ClaudeOAuthClient()

    def is_configured(self) -> bool:
        return self.client.has_credentials()

    async def fetch_usage(self) -> dict:
        return await self.client.fetch_usage()
