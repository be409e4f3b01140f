import json

import click

from detailquote.pricing.catalog import get_default_catalog
from detailquote.pricing.engine import price_quote


@click.group("pricing")
def pricing_cli() -> None:
    """Pricing catalog commands."""


@pricing_cli.command("default")
def default_command() -> None:
    """Print the built-in catalog as JSON."""
    click.echo(json.dumps(get_default_catalog().to_dict(), indent=2))


@pricing_cli.command("quote")
@click.option("--size", "vehicle_size", required=True, help="Vehicle size id")
@click.option("--condition", required=True, help="Condition id")
@click.option("--service", "services", multiple=True, help="Service id (repeatable)")
@click.option("--addon", "addons", multiple=True, help="Add-on id (repeatable)")
def quote_command(vehicle_size: str, condition: str, services: tuple, addons: tuple) -> None:
    """Price a selection against the built-in catalog."""
    if not services:
        raise click.UsageError("at least one --service is required")
    breakdown = price_quote(get_default_catalog(), vehicle_size, condition, services, addons)
    for line in breakdown.service_lines + breakdown.addon_lines:
        click.echo(f"{line.label:<32} ${line.price}")
    click.echo(f"{'Total':<32} ${breakdown.total}")
