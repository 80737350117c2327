"""Domain errors raised by the rate pipeline and the conversion engine."""

from __future__ import annotations


class CurrencyServiceError(Exception):
    """Base class for currency domain failures.

    ``status_code`` is the HTTP status the API layer answers with when the
    error reaches a request handler.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FeedUnavailableError(CurrencyServiceError):
    """Raised when the external rate feed cannot be retrieved."""

    status_code = 500


class MalformedFeedError(CurrencyServiceError):
    """Raised when a feed payload cannot be parsed into rate entries."""

    status_code = 500


class ReferenceRateNotFoundError(CurrencyServiceError):
    """Raised when the reference currency is missing from a feed batch."""

    status_code = 500

    def __init__(self, code: str) -> None:
        super().__init__(f"{code} rate not found in the exchange rates.")
        self.code = code


class UnknownCurrencyCodeError(CurrencyServiceError):
    """Raised when a lookup or conversion names a code with no stored rate."""

    status_code = 404

    def __init__(self, code: str) -> None:
        super().__init__(f"Rate not found for currency code: {code}")
        self.code = code


class InvalidRequestError(CurrencyServiceError):
    """Raised when a request is well-formed but violates a conversion rule."""

    status_code = 400


class InvalidRangeError(CurrencyServiceError):
    """Raised when a history query has its start after its end."""

    status_code = 400


class PersistenceError(CurrencyServiceError):
    """Raised when a rate or conversion write cannot be completed."""

    status_code = 500
