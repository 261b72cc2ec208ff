"""Base provider class for quotawatch."""

from abc import ABC, abstractmethod
from typing import ClassVar

from quotawatch.models import ProviderMetadata


class Provider(ABC):
    """Abstract base class for all providers.

    Each provider must:
    1. Define metadata as a ClassVar (including its usage shape)
    2. Implement is_configured() as a fast, offline credential check
    3. Implement fetch_usage() returning the raw usage payload
    """

    # Subclasses must define this
    metadata: ClassVar[ProviderMetadata]

    @property
    def id(self) -> str:
        """Get provider ID."""
        return self.metadata.id

    @property
    def name(self) -> str:
        """Get provider name."""
        return self.metadata.name

    @abstractmethod
    def is_configured(self) -> bool:
        """Check whether credentials exist. Must not touch the network."""

    @abstractmethod
    async def fetch_usage(self) -> dict:
        """Fetch the provider's raw usage payload.

        Raises:
            AuthError: If credentials are missing, rejected or expired
            ProviderConnectionError: If the provider cannot be reached
        """
