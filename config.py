"""Application configuration classes."""

from __future__ import annotations

import os

SUPPORTED_FEED_SOURCES = {"nationalbanken", "mock"}
SUPPORTED_RATE_STORES = {"database", "file", "memory"}
SUPPORTED_SAME_CURRENCY_POLICIES = {"reject", "passthrough"}
SUPPORTED_DECIMAL_PLACES = {2, 4}
FEED_SOURCE_ALIASES = {"danmarks_nationalbank": "nationalbanken", "dnb": "nationalbanken"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_bool(name: str, default: str) -> bool:
    return _get_env(name, default).strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    SCHEDULER_ENABLED = _get_bool("SCHEDULER_ENABLED", "true")
    SCHEDULER_TIMEZONE = _get_env("SCHEDULER_TIMEZONE", "UTC")
    RATES_REFRESH_INTERVAL_MINUTES = int(_get_env("RATES_REFRESH_INTERVAL_MINUTES", "60"))

    APP_NAME = "currency-converter"
    SECRET_KEY = _get_env("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = _get_env("DATABASE_URL", "sqlite:///currency-converter.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    FEED_SOURCE = _get_env("FEED_SOURCE", "nationalbanken")
    FEED_URL = _get_env("FEED_URL", "https://www.nationalbanken.dk/api/currencyratesxml")
    FEED_LANGUAGE = _get_env("FEED_LANGUAGE", "en")
    FEED_QUOTE_UNITS = int(_get_env("FEED_QUOTE_UNITS", "100"))
    FEED_NATIVE_BASE = _get_env("FEED_NATIVE_BASE", "DKK")
    FEED_NATIVE_BASE_DESCRIPTION = _get_env("FEED_NATIVE_BASE_DESCRIPTION", "Danish Krone")
    FEED_MAX_RETRIES = int(_get_env("FEED_MAX_RETRIES", "3"))
    FEED_BACKOFF_SECONDS = float(_get_env("FEED_BACKOFF_SECONDS", "0.5"))
    REQUEST_TIMEOUT_SECONDS = int(_get_env("REQUEST_TIMEOUT_SECONDS", "5"))

    REFERENCE_CURRENCY = _get_env("REFERENCE_CURRENCY", "INR")
    RATE_DECIMAL_PLACES = int(_get_env("RATE_DECIMAL_PLACES", "4"))
    SAME_CURRENCY_POLICY = _get_env("SAME_CURRENCY_POLICY", "reject")
    CONVERSION_LEDGER_ENABLED = _get_bool("CONVERSION_LEDGER_ENABLED", "true")

    RATE_STORE_BACKEND = _get_env("RATE_STORE_BACKEND", "database")
    RATES_FILE_PATH = _get_env("RATES_FILE_PATH", "shared/currency_rates.json")

    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_bool("LOG_JSON_ENABLED", "false")
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration used by the test suite."""

    DEBUG = False
    TESTING = True
    SCHEDULER_ENABLED = False
    FEED_SOURCE = "mock"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If a configured choice is not supported.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    validate_config(config_cls)
    return config_cls


def validate_config(config_cls: type[BaseConfig]) -> None:
    """Normalize and validate the named configuration choices in place."""

    feed_source = _normalize_choice(config_cls.FEED_SOURCE)
    feed_source = FEED_SOURCE_ALIASES.get(feed_source, feed_source)
    if feed_source not in SUPPORTED_FEED_SOURCES:
        raise ValueError(
            f"Unsupported FEED_SOURCE '{config_cls.FEED_SOURCE}'. "
            f"Allowed values: {sorted(SUPPORTED_FEED_SOURCES)}"
        )
    config_cls.FEED_SOURCE = feed_source

    backend = _normalize_choice(config_cls.RATE_STORE_BACKEND)
    if backend not in SUPPORTED_RATE_STORES:
        raise ValueError(
            f"Unsupported RATE_STORE_BACKEND '{config_cls.RATE_STORE_BACKEND}'. "
            f"Allowed values: {sorted(SUPPORTED_RATE_STORES)}"
        )
    config_cls.RATE_STORE_BACKEND = backend

    policy = _normalize_choice(config_cls.SAME_CURRENCY_POLICY)
    if policy not in SUPPORTED_SAME_CURRENCY_POLICIES:
        raise ValueError(
            f"Unsupported SAME_CURRENCY_POLICY '{config_cls.SAME_CURRENCY_POLICY}'. "
            f"Allowed values: {sorted(SUPPORTED_SAME_CURRENCY_POLICIES)}"
        )
    config_cls.SAME_CURRENCY_POLICY = policy

    if config_cls.RATE_DECIMAL_PLACES not in SUPPORTED_DECIMAL_PLACES:
        raise ValueError(
            f"Unsupported RATE_DECIMAL_PLACES '{config_cls.RATE_DECIMAL_PLACES}'. "
            f"Allowed values: {sorted(SUPPORTED_DECIMAL_PLACES)}"
        )

    if config_cls.FEED_QUOTE_UNITS <= 0:
        raise ValueError("FEED_QUOTE_UNITS must be a positive integer.")

    if config_cls.RATES_REFRESH_INTERVAL_MINUTES <= 0:
        raise ValueError("RATES_REFRESH_INTERVAL_MINUTES must be a positive integer.")

    config_cls.REFERENCE_CURRENCY = config_cls.REFERENCE_CURRENCY.strip().upper()
    config_cls.FEED_NATIVE_BASE = config_cls.FEED_NATIVE_BASE.strip().upper()


def _normalize_choice(value: str | None) -> str:
    if not value:
        return ""
    return value.strip().lower()
