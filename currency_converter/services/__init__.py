"""Service layer modules."""

from .conversion import ConversionEngine, CurrencyService, init_currency_service
from .exceptions import (
    CurrencyServiceError,
    FeedUnavailableError,
    InvalidRangeError,
    InvalidRequestError,
    MalformedFeedError,
    PersistenceError,
    ReferenceRateNotFoundError,
    UnknownCurrencyCodeError,
)
from .feed_parser import RateFeedParser
from .history_store import (
    ConversionHistoryStore,
    InMemoryConversionHistoryStore,
    SqlConversionHistoryStore,
    build_history_store,
)
from .normalizer import RateNormalizer
from .rate_store import (
    InMemoryRateStore,
    JsonFileRateStore,
    RateStore,
    SqlRateStore,
    build_rate_store,
)
from .refresh import RateRefresher, RefreshPhase, RefreshStatus, init_refresher
from .scheduler import RateRefreshScheduler, init_scheduler
from .schemas import (
    CanonicalRate,
    ConversionRecord,
    ConversionRequest,
    ConversionResponse,
    RateLookup,
    RawRateEntry,
    SameCurrencyPolicy,
)
