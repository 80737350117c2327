"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from currency_converter import create_app  # noqa: E402
from currency_converter.database import Base, SessionLocal, dispose_engine, get_engine  # noqa: E402
from currency_converter.providers.registry import reset_registry  # noqa: E402
from currency_converter.services import CanonicalRate  # noqa: E402

AS_OF = datetime(2025, 10, 16, 12, 0, tzinfo=UTC)


@pytest.fixture()
def make_app(tmp_path: Path) -> Iterator[Callable[..., object]]:
    """Build Flask apps bound to a throwaway SQLite database."""

    created = []

    def _factory(**overrides):
        config = {"SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}"}
        config.update(overrides)
        flask_app = create_app("testing", config_overrides=config)
        Base.metadata.create_all(get_engine())
        created.append(flask_app)
        return flask_app

    yield _factory

    SessionLocal.remove()
    if created:
        Base.metadata.drop_all(get_engine())
    dispose_engine()
    reset_registry()


@pytest.fixture()
def app(make_app):
    """Flask application using the mock feed and the database rate store."""

    return make_app()


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture()
def refreshed_client(app, client):
    """Test client whose rate store holds one refresh of the mock feed."""

    app.extensions["rate_refresher"].refresh()
    return client


@pytest.fixture()
def canonical_rates() -> list[CanonicalRate]:
    """Rates expressed in INR, as the normalizer would produce them."""

    return [
        CanonicalRate(code="INR", description="Indian rupee", rate=Decimal("1.0000"), as_of=AS_OF),
        CanonicalRate(code="USD", description="US dollars", rate=Decimal("82.6323"), as_of=AS_OF),
        CanonicalRate(code="EUR", description="Euro", rate=Decimal("96.2684"), as_of=AS_OF),
        CanonicalRate(code="DKK", description="Danish Krone", rate=Decimal("12.9032"), as_of=AS_OF),
    ]
