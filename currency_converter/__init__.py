"""Application factory for the Currency Converter service."""

from __future__ import annotations

from typing import Any, Mapping

from flask import Flask
from flask_smorest import Api

from config import get_config
from .cli import register_cli
from .database import init_app as init_db
from .logging import init_request_logging, setup_logging


def create_app(
    config_name: str | None = None, config_overrides: Mapping[str, Any] | None = None
) -> Flask:
    """Application factory adhering to the Flask app factory pattern."""

    app = Flask(__name__)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app)
    init_request_logging(app)

    _configure_api(app)
    api = _register_extensions(app)
    _register_blueprints(app, api)
    _register_error_handlers(app)

    register_cli(app)
    return app


def _configure_api(app: Flask) -> None:
    app.config.setdefault("API_TITLE", "Currency Converter API")
    app.config.setdefault("API_VERSION", "v1")
    app.config.setdefault("OPENAPI_VERSION", "3.0.3")
    app.config.setdefault("OPENAPI_URL_PREFIX", "/docs")
    app.config.setdefault("OPENAPI_SWAGGER_UI_PATH", "/")
    app.config.setdefault(
        "OPENAPI_SWAGGER_UI_URL",
        "https://cdn.jsdelivr.net/npm/swagger-ui-dist/",
    )


def _register_extensions(app: Flask) -> Api:
    """Initialize the database, rate pipeline, currency service and scheduler."""

    init_db(app)
    from . import models  # noqa: F401  # Ensure models are imported for metadata
    from .providers.registry import init_source
    from .services import (
        build_rate_store,
        init_currency_service,
        init_refresher,
        init_scheduler,
    )

    store = build_rate_store(app.config)
    app.extensions["rate_store"] = store
    init_source(app)
    init_refresher(app, store)
    init_currency_service(app, store)
    init_scheduler(app)

    api = Api(app)
    app.extensions["smorest_api"] = api
    return api


def _register_blueprints(app: Flask, api: Api) -> None:
    """Register Flask blueprints."""

    from .currency import blp as currency_blp
    from .health import blp as health_blp

    api.register_blueprint(health_blp, url_prefix="/health")
    api.register_blueprint(currency_blp, url_prefix="/currency")


def _register_error_handlers(app: Flask) -> None:
    """Register global error handlers."""

    from .errors import register_error_handlers

    register_error_handlers(app)
