"""Tests for the provider registry and default fetcher."""

from __future__ import annotations

from unittest.mock import AsyncMock
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest

from quotawatch.errors.exceptions import ProviderNotFoundError
from quotawatch.models import UsageShape
from quotawatch.providers import ClaudeProvider
from quotawatch.providers import OpenAIProvider
from quotawatch.providers import RegistryFetcher
from quotawatch.providers import create_provider
from quotawatch.providers import get_all_providers
from quotawatch.providers import get_provider
from quotawatch.providers import list_provider_ids
from quotawatch.providers import provider_shapes
from quotawatch.providers import register_provider


class TestRegistry:
    """Tests for provider registration."""

    def test_builtin_providers(self):
        assert list_provider_ids() == ["claude", "openai"]
        assert get_provider("claude") is ClaudeProvider
        assert get_all_providers()["openai"] is OpenAIProvider

    def test_unknown(self):
        assert get_provider("nope") is None

    def test_shapes(self):
        assert provider_shapes() == {
            "claude": UsageShape.UTILIZATION_WINDOW,
            "openai": UsageShape.TOKEN_COST_COUNTER,
        }

    def test_register_requires_metadata(self):
        class Bare:
            pass

        with pytest.raises(ValueError):
            register_provider(Bare)

    def test_create(self):
        assert isinstance(create_provider("openai"), OpenAIProvider)

    def test_create_unknown(self):
        with pytest.raises(ProviderNotFoundError) as exc_info:
            create_provider("nope")

        assert exc_info.value.provider_id == "nope"


class TestRegistryFetcher:
    """Tests for RegistryFetcher."""

    @pytest.mark.asyncio
    async def test_dispatches_to_provider(self):
        provider = MagicMock()
        provider.fetch_usage = AsyncMock(return_value={"five_hour": None})
        fetcher = RegistryFetcher({"claude": provider})

        assert await fetcher("claude") == {"five_hour": None}

    def test_instances_are_reused(self):
        fetcher = RegistryFetcher()

        assert fetcher.provider("openai") is fetcher.provider("openai")

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        with pytest.raises(ProviderNotFoundError):
            await RegistryFetcher()("nope")

    @pytest.mark.asyncio
    async def test_aclose_cleans_up_http(self):
        with patch("quotawatch.core.http.cleanup", new_callable=AsyncMock) as cleanup:
            await RegistryFetcher().aclose()

        cleanup.assert_awaited_once()
