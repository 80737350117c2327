"""Danmarks Nationalbank daily exchange rate feed."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import BaseFeedSource, ProviderError
from .http_client import HTTPClient, HTTPClientConfig, HTTPClientError

DEFAULT_FEED_URL = "https://www.nationalbanken.dk/api/currencyratesxml"


class NationalbankenFeedSource(BaseFeedSource):
    """Fetches the XML rate table quoted in DKK per 100 units."""

    name = "nationalbanken"

    def __init__(self, client: HTTPClient, *, language: str = "en") -> None:
        self._client = client
        self._language = language

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> NationalbankenFeedSource:
        base_url_value = config.get("FEED_URL")
        if not isinstance(base_url_value, str) or not base_url_value.strip():
            base_url = DEFAULT_FEED_URL
        else:
            base_url = base_url_value
        client = HTTPClient(
            HTTPClientConfig(
                base_url=base_url,
                timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 5)),
                max_retries=int(config.get("FEED_MAX_RETRIES", 3)),
                backoff_seconds=float(config.get("FEED_BACKOFF_SECONDS", 0.5)),
            )
        )
        return cls(client, language=str(config.get("FEED_LANGUAGE", "en")))

    def fetch(self) -> bytes:
        try:
            return self._client.get(params={"lang": self._language})
        except HTTPClientError as exc:
            raise ProviderError(str(exc)) from exc
