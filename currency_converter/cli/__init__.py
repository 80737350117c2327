"""CLI entry points."""

from __future__ import annotations

from flask import Flask

from .rates import refresh_rates, show_rates


def register_cli(app: Flask) -> None:
    """Register CLI commands on the given Flask app."""

    app.cli.add_command(refresh_rates)
    app.cli.add_command(show_rates)
