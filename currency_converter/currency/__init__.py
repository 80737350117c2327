"""Currency blueprint: rate listing, rate lookup, conversion and the ledger."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Currency", __name__, description="Currency rate and conversion endpoints")

from . import routes  # noqa: E402,F401
