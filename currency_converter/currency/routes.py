"""Route handlers for currency rates, conversion and the conversion ledger."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from currency_converter.errors import APIError
from currency_converter.logging import bind_log_context
from currency_converter.schemas import (
    ConversionQuerySchema,
    ConversionRecordSchema,
    ConversionResponseSchema,
    ConvertRequestSchema,
    ErrorMessageSchema,
    RateLookupSchema,
    RateSchema,
)
from currency_converter.services import (
    ConversionRequest,
    CurrencyService,
    RateRefresher,
    UnknownCurrencyCodeError,
)
from currency_converter.validation import validate_currency_code

from . import blp


def _service() -> CurrencyService:
    return current_app.extensions["currency_service"]


def _refresher() -> RateRefresher:
    return current_app.extensions["rate_refresher"]


@blp.route("/rates")
class RateCollection(MethodView):
    @blp.response(200, RateSchema(many=True))
    @blp.alt_response(404, schema=ErrorMessageSchema, description="No rates available")
    @blp.alt_response(500, schema=ErrorMessageSchema, description="Feed refresh failed")
    def get(self):
        """Refresh from the feed, then return every stored rate."""

        _refresher().refresh()
        rates = _service().list_rates()
        if not rates:
            raise APIError("No currency rates available.", status_code=404)
        return rates


@blp.route("/rate/<string:code>")
class RateItem(MethodView):
    @blp.response(200, RateLookupSchema())
    @blp.alt_response(400, schema=ErrorMessageSchema, description="Malformed currency code")
    @blp.alt_response(404, schema=ErrorMessageSchema, description="Unknown currency code")
    def get(self, code: str):
        normalized = validate_currency_code(code, field="code")
        return _service().get_rate(normalized)


@blp.route("/convert")
class Conversion(MethodView):
    @blp.arguments(ConvertRequestSchema, error_status_code=400)
    @blp.response(200, ConversionResponseSchema())
    @blp.alt_response(500, schema=ErrorMessageSchema, description="Ledger write failed")
    def post(self, payload):
        bind_log_context(from_currency=payload["from_code"], to_currency=payload["to_code"])
        request = ConversionRequest(
            from_code=payload["from_code"],
            to_code=payload["to_code"],
            amount=payload["amount"],
        )
        try:
            return _service().convert(request)
        except UnknownCurrencyCodeError as exc:
            raise APIError(exc.message, status_code=400, payload={"code": exc.code}) from exc


@blp.route("/conversions")
class ConversionHistory(MethodView):
    @blp.arguments(ConversionQuerySchema, location="query", error_status_code=400)
    @blp.response(200, ConversionRecordSchema(many=True))
    @blp.alt_response(404, schema=ErrorMessageSchema, description="No matching conversions")
    def get(self, query_args):
        service = _service()
        if not service.ledger_enabled:
            raise APIError("Conversion ledger is disabled.", status_code=404)

        from_code = query_args.get("from_code")
        if from_code is not None:
            from_code = validate_currency_code(from_code, field="fromCurrency")
        bind_log_context(from_currency=from_code)

        records = service.list_conversions(
            from_code=from_code,
            start=query_args.get("start"),
            end=query_args.get("end"),
        )
        bind_log_context(result_count=len(records))
        if not records:
            raise APIError("No conversions found for the given filters.", status_code=404)
        return records
