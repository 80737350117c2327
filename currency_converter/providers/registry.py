"""Registry and factory for rate feed sources."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List

from .base import BaseFeedSource, ProviderError

FeedSourceFactory = Callable[[Mapping[str, Any]], BaseFeedSource]

_SOURCE_FACTORIES: Dict[str, FeedSourceFactory] = {}


def _default_factories() -> Iterable[tuple[str, FeedSourceFactory]]:
    from .mock import MockFeedSource
    from .nationalbanken import NationalbankenFeedSource

    return [
        (MockFeedSource.name, lambda _config: MockFeedSource()),
        (NationalbankenFeedSource.name, NationalbankenFeedSource.from_config),
    ]


def register_source(name: str, factory: FeedSourceFactory) -> None:
    """Register a feed source factory under the given name."""

    if not name:
        raise ValueError("Feed source name cannot be empty.")
    _SOURCE_FACTORIES[name.lower()] = factory


def list_sources() -> List[str]:
    return sorted(_SOURCE_FACTORIES.keys())


def get_source(name: str, config: Mapping[str, Any]) -> BaseFeedSource:
    """Instantiate the named feed source from application config."""

    source_name = (name or "").lower()
    try:
        factory = _SOURCE_FACTORIES[source_name]
    except KeyError as exc:
        available = ", ".join(list_sources()) or "none registered"
        raise ProviderError(
            f"Unknown feed source '{source_name}'. Available sources: {available}"
        ) from exc
    return factory(config)


def init_source(app) -> BaseFeedSource:
    """Attach the configured feed source to the Flask app."""

    source = get_source(app.config.get("FEED_SOURCE", "nationalbanken"), app.config)
    app.extensions["rate_feed_source"] = source
    return source


def reset_registry(default_factories: Iterable[tuple[str, FeedSourceFactory]] | None = None) -> None:
    """Reset source registry; useful for tests."""

    _SOURCE_FACTORIES.clear()
    for name, factory in default_factories or _default_factories():
        register_source(name, factory)


reset_registry()
