"""Transports that fetch the raw external rate feed."""

from .base import BaseFeedSource, ProviderError
from .http_client import HTTPClient, HTTPClientConfig, HTTPClientError
from .mock import MockFeedSource
from .nationalbanken import NationalbankenFeedSource

__all__ = [
    "BaseFeedSource",
    "ProviderError",
    "HTTPClient",
    "HTTPClientConfig",
    "HTTPClientError",
    "MockFeedSource",
    "NationalbankenFeedSource",
]
