"""Abstract interface for external rate feed sources."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ProviderError(Exception):
    """Raised when an upstream feed cannot be retrieved."""


class BaseFeedSource(ABC):
    """Defines the transport every rate feed source must implement."""

    name: str

    @abstractmethod
    def fetch(self) -> bytes:
        """Return the raw feed payload exactly as the provider served it."""
