"""Schemas for API requests and responses."""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal

from marshmallow import Schema, fields, validate

AMOUNT_PLACES = 4
MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000000000")

CODE_VALIDATOR = validate.Regexp(r"^[A-Z]{3}$", error="Currency code must be three uppercase letters.")


class HealthStatusSchema(Schema):
    status = fields.String(required=True)
    app = fields.String()


class HealthRatesSchema(Schema):
    status = fields.String(required=True)
    source = fields.String(allow_none=True)
    store = fields.String(allow_none=True)
    reference_currency = fields.String(allow_none=True)
    phase = fields.String(allow_none=True)
    last_success = fields.String(allow_none=True)
    last_failure = fields.String(allow_none=True)
    last_error = fields.String(allow_none=True)
    rate_count = fields.Integer(allow_none=True)


class RateSchema(Schema):
    code = fields.String(data_key="currencyCode", required=True)
    description = fields.String(data_key="currencyDesc", required=True)
    rate = fields.Decimal(as_string=True, required=True)
    as_of = fields.DateTime(data_key="dateTime", required=True)


class RateLookupSchema(Schema):
    base_currency_code = fields.String(data_key="baseCurrencyCode", required=True)
    base_currency_amount = fields.Decimal(as_string=True, data_key="baseCurrencyAmount", required=True)
    converted_currency_code = fields.String(data_key="convertedCurrencyCode", required=True)
    converted_currency_amount = fields.Decimal(
        as_string=True, data_key="convertedCurrencyAmount", required=True
    )


class ConvertRequestSchema(Schema):
    from_code = fields.String(data_key="fromCurrencyCode", required=True, validate=CODE_VALIDATOR)
    to_code = fields.String(data_key="toCurrencyCode", required=True, validate=CODE_VALIDATOR)
    amount = fields.Decimal(
        required=True,
        allow_nan=False,
        # Stored with four fractional digits in the ledger; round once on the way in.
        places=AMOUNT_PLACES,
        rounding=ROUND_HALF_EVEN,
        validate=validate.Range(
            min=MIN_AMOUNT,
            max=MAX_AMOUNT,
            error=f"Amount must be between {MIN_AMOUNT} and {MAX_AMOUNT:,}.",
        ),
    )


class ConversionResponseSchema(Schema):
    from_code = fields.String(data_key="fromCurrencyCode", required=True)
    from_description = fields.String(data_key="fromCurrencyDesc", required=True)
    to_code = fields.String(data_key="toCurrencyCode", required=True)
    to_description = fields.String(data_key="toCurrencyDesc", required=True)
    original_amount = fields.Decimal(as_string=True, data_key="originalAmount", required=True)
    converted_amount = fields.Decimal(as_string=True, data_key="convertedAmount", required=True)


class ConversionRecordSchema(ConversionResponseSchema):
    id = fields.Integer(required=True)
    converted_at = fields.DateTime(data_key="conversionDate", required=True)


class ConversionQuerySchema(Schema):
    from_code = fields.String(
        data_key="fromCurrency", load_default=None, validate=validate.Length(equal=3)
    )
    start = fields.DateTime(data_key="startDate", load_default=None)
    end = fields.DateTime(data_key="endDate", load_default=None)


class ErrorMessageSchema(Schema):
    message = fields.String(required=True)
