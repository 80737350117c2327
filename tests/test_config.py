from __future__ import annotations

import pytest

from config import (
    CONFIG_BY_ENV,
    DevelopmentConfig,
    TestingConfig,
    get_config,
    validate_config,
)


def test_get_config_defaults_to_development(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)

    assert get_config() is DevelopmentConfig


def test_get_config_reads_app_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "Testing")

    assert get_config() is TestingConfig


def test_get_config_unknown_name_raises():
    with pytest.raises(KeyError):
        get_config("staging")


def test_testing_config_defaults():
    config = get_config("testing")

    assert config.FEED_SOURCE == "mock"
    assert config.SCHEDULER_ENABLED is False
    assert config.REFERENCE_CURRENCY == "INR"
    assert config.RATE_DECIMAL_PLACES == 4
    assert config.SAME_CURRENCY_POLICY == "reject"
    assert config.FEED_QUOTE_UNITS == 100
    assert set(CONFIG_BY_ENV) == {"development", "production", "testing"}


def test_validate_config_normalizes_choices():
    class Custom(TestingConfig):
        FEED_SOURCE = " DNB "
        RATE_STORE_BACKEND = "File"
        SAME_CURRENCY_POLICY = "PassThrough"
        REFERENCE_CURRENCY = " usd "

    validate_config(Custom)

    assert Custom.FEED_SOURCE == "nationalbanken"
    assert Custom.RATE_STORE_BACKEND == "file"
    assert Custom.SAME_CURRENCY_POLICY == "passthrough"
    assert Custom.REFERENCE_CURRENCY == "USD"


@pytest.mark.parametrize(
    "attribute, value",
    [
        ("FEED_SOURCE", "ecb"),
        ("RATE_STORE_BACKEND", "redis"),
        ("SAME_CURRENCY_POLICY", "maybe"),
        ("RATE_DECIMAL_PLACES", 3),
        ("FEED_QUOTE_UNITS", 0),
        ("RATES_REFRESH_INTERVAL_MINUTES", 0),
    ],
)
def test_validate_config_rejects_unsupported_values(attribute, value):
    custom = type("Custom", (TestingConfig,), {attribute: value})

    with pytest.raises(ValueError):
        validate_config(custom)
