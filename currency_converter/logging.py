"""Structured logging for API requests and rate refresh cycles.

Two kinds of events carry structured fields:

* request events (``request.completed`` / ``request.failed``), enriched with
  the rate store backend, the refresher's current phase and any fields a
  route bound through :func:`bind_log_context` (conversion currencies,
  ledger filters);
* feed events (``feed.fetch`` / ``refresh.cycle``), built with
  :func:`feed_log_extra` by the refresher.

With ``LOG_JSON_ENABLED`` every field is rendered into one JSON object per
line; otherwise the plain ``LOG_FORMAT`` is used and the fields stay on the
record for handlers that want them.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import UTC, datetime
from typing import Any

from flask import Flask, current_app, g, has_app_context, has_request_context, request
from werkzeug.exceptions import HTTPException

REQUEST_ID_HEADER = "X-Request-ID"

LOGGING_CONFIG_FLAG = "_logging_configured"
REQUEST_LOGGING_FLAG = "_request_logging_configured"

# Attributes every LogRecord has; anything else on a record came from ``extra=``.
RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# APScheduler logs every job execution at INFO; one line per refresh is enough.
NOISY_LOGGERS = ("apscheduler",)


class JSONLogFormatter(logging.Formatter):
    """Render a record and its structured extras as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            {
                key: value
                for key, value in vars(record).items()
                if key not in RESERVED_ATTRS and not key.startswith("_")
            }
        )
        if "request_id" not in payload:
            request_id = _current_request_id()
            if request_id:
                payload["request_id"] = request_id

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        return json.dumps(payload, default=str, separators=(",", ":"))


def setup_logging(app: Flask) -> None:
    """Install one root handler with the configured level and formatter."""

    if app.config.get(LOGGING_CONFIG_FLAG):
        return

    level = logging.getLevelName(str(app.config.get("LOG_LEVEL") or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)
    if _to_bool(app.config.get("LOG_JSON_ENABLED", False)):
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                app.config.get("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")
            )
        )

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    # Werkzeug and Flask propagate to the root handler instead of their own.
    logging.getLogger("werkzeug").handlers = []
    app.logger.handlers = []
    app.logger.setLevel(level)
    app.logger.propagate = True

    app.config[LOGGING_CONFIG_FLAG] = True


def bind_log_context(**fields: Any) -> None:
    """Attach fields to the current request's completion log line."""

    if not has_request_context():
        return
    context = g.setdefault("log_context", {})
    context.update({key: value for key, value in fields.items() if value is not None})


def init_request_logging(app: Flask) -> None:
    """Log one line per request with a correlation ID and rate context."""

    if app.config.get(REQUEST_LOGGING_FLAG):
        return

    @app.before_request
    def _start_request_logging():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_start = time.perf_counter()
        g._request_logged = False

    @app.after_request
    def _log_request(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers.setdefault(REQUEST_ID_HEADER, request_id)

        app.logger.info(
            "Request handled",
            extra=_request_log_extra("request.completed", response.status_code),
        )
        g._request_logged = True
        return response

    @app.teardown_request
    def _log_teardown(exc: BaseException | None):
        if exc is None or getattr(g, "_request_logged", False):
            return

        status = exc.code if isinstance(exc, HTTPException) and exc.code else 500
        app.logger.error(
            "Request failed",
            extra=_request_log_extra("request.failed", status, error=str(exc)),
        )
        g._request_logged = True

    app.config[REQUEST_LOGGING_FLAG] = True


def _request_log_extra(event: str, status: int, *, error: str | None = None) -> dict[str, Any]:
    start = getattr(g, "request_start", None)
    payload: dict[str, Any] = {
        "event": event,
        "source": "api",
        "route": request.url_rule.rule if request.url_rule else request.path,
        "method": request.method,
        "path": request.path,
        "status": status,
        "request_id": getattr(g, "request_id", None),
        "duration_ms": round((time.perf_counter() - start) * 1000, 3) if start else None,
        "client_ip": request.remote_addr,
        "error": error,
    }
    payload.update(_rate_context())
    payload.update(getattr(g, "log_context", {}))
    return {key: value for key, value in payload.items() if value is not None}


def _rate_context() -> dict[str, Any]:
    if not has_app_context():
        return {}
    extensions = current_app.extensions
    store = extensions.get("rate_store")
    refresher = extensions.get("rate_refresher")
    return {
        "rate_store": getattr(store, "name", None),
        "refresh_phase": refresher.status.phase.value if refresher is not None else None,
    }


def feed_log_extra(
    *,
    source: str,
    reference: str,
    event: str,
    status: str,
    duration_ms: float | None,
    phase: str | None = None,
    rate_count: int | None = None,
    error: str | None = None,
) -> dict[str, Any]:
    """Structured ``extra`` payload for feed fetch and refresh cycle events."""

    payload: dict[str, Any] = {
        "event": event,
        "source": source,
        "reference": reference,
        "status": status,
        "phase": phase,
        "rate_count": rate_count,
        "duration_ms": round(duration_ms, 3) if duration_ms is not None else None,
        "request_id": _current_request_id(),
        "error": error,
    }
    return {key: value for key, value in payload.items() if value is not None}


def _current_request_id() -> str | None:
    if not has_request_context():
        return None
    return getattr(g, "request_id", None)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
