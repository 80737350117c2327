"""Route handlers for health checks."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from currency_converter.schemas import HealthRatesSchema, HealthStatusSchema
from currency_converter.services import CurrencyService, RateRefresher
from currency_converter.utils.datetime import to_iso

from . import blp


@blp.route("")
class HealthStatus(MethodView):
    @blp.response(200, HealthStatusSchema())
    def get(self):
        return {
            "status": "ok",
            "app": current_app.config.get("APP_NAME", "currency-converter"),
        }


@blp.route("/rates")
class HealthRates(MethodView):
    @blp.response(200, HealthRatesSchema())
    def get(self):
        refresher: RateRefresher | None = current_app.extensions.get("rate_refresher")  # type: ignore[assignment]
        service: CurrencyService | None = current_app.extensions.get("currency_service")  # type: ignore[assignment]
        if refresher is None or service is None:
            return {"status": "uninitialized"}

        status = refresher.status
        if status.last_success is None and status.last_failure is None:
            state = "uninitialized"
        elif status.last_failure is not None and (
            status.last_success is None or status.last_failure > status.last_success
        ):
            state = "degraded"
        else:
            state = "ok"

        return {
            "status": state,
            "source": refresher.source_name,
            "store": service.rate_store.name,
            "reference_currency": service.reference_code,
            "phase": status.phase.value,
            "last_success": to_iso(status.last_success),
            "last_failure": to_iso(status.last_failure),
            "last_error": status.last_error,
            "rate_count": status.rate_count,
        }
