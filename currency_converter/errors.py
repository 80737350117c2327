"""Application-wide error utilities and handlers."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify
from werkzeug.exceptions import InternalServerError

from currency_converter.services.exceptions import CurrencyServiceError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error. Please try again later."


class APIError(Exception):
    """Base class for API-level errors."""

    status_code: int = 400

    def __init__(
        self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}


class ValidationError(APIError):
    """Error raised for request validation failures."""

    status_code = 400


DEFAULT_STATUS_MESSAGES: dict[int, str] = {
    400: "Request could not be processed.",
    404: "Resource not found.",
    500: INTERNAL_ERROR_MESSAGE,
}


def register_error_handlers(app: Flask) -> None:
    """Attach error handlers to the Flask application."""

    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        message = error.message or DEFAULT_STATUS_MESSAGES.get(error.status_code, "Request failed.")
        response: dict[str, Any] = {"message": message}
        if error.payload:
            response.update(error.payload)

        field = error.payload.get("field")
        if field and "field_errors" not in response:
            response["field_errors"] = {str(field): [message]}

        return jsonify(response), error.status_code

    @app.errorhandler(CurrencyServiceError)
    def handle_currency_error(error: CurrencyServiceError):
        status = error.status_code
        if status >= 500:
            logger.error("Currency operation failed: %s", error.message)
            return jsonify({"message": INTERNAL_ERROR_MESSAGE}), status

        logger.warning("Rejected currency request: %s", error.message)
        return jsonify({"message": error.message}), status

    @app.errorhandler(InternalServerError)
    def handle_internal_error(error: InternalServerError):
        original = getattr(error, "original_exception", None)
        if original is not None:
            logger.error("Unhandled error: %s", original)
        return jsonify({"message": INTERNAL_ERROR_MESSAGE}), 500
