"""CLI commands for refreshing and inspecting stored currency rates."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from currency_converter.services import CurrencyServiceError


@click.command("refresh-rates")
@with_appcontext
def refresh_rates() -> None:
    """Fetch the feed once and persist the normalized rates."""

    refresher = current_app.extensions["rate_refresher"]
    click.echo(f"Refreshing rates from {refresher.source_name}...")
    try:
        rates = refresher.refresh()
    except CurrencyServiceError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Stored {len(rates)} rates.")


@click.command("show-rates")
@click.option("--code", default=None, help="Only show this currency code")
@with_appcontext
def show_rates(code: str | None) -> None:
    """Print the stored rates without contacting the feed."""

    service = current_app.extensions["currency_service"]
    rates = service.list_rates()
    if code:
        rates = [rate for rate in rates if rate.code == code.strip().upper()]
    if not rates:
        click.echo("No rates stored.")
        return
    for rate in rates:
        click.echo(f"{rate.code}\t{rate.rate}\t{rate.description}\t{rate.as_of.isoformat()}")
