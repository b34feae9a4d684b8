"""CLI commands for promo codes."""

from __future__ import annotations

import click

from nailstudio.domain.exceptions import DomainException
from nailstudio.infrastructure import bootstrap
from nailstudio.infrastructure.cli._formatting import fulfillment_option, parse_sets


@click.command("validate")
@click.argument("code")
@click.option("--set", "sets", multiple=True, required=True, help="Nail set as 'shape:qty[:description]'.")
@click.option("--method", default="pickup", show_default=True, help="pickup, delivery or shipping.")
@click.option("--speed", default=None, help="Speed tier.")
@click.option("--user", "user_id", default=None, help="Customer user ID (for per-user limits).")
def promo_validate(code, sets, method, speed, user_id) -> None:
    """Check a promo code against a cart."""
    handler = bootstrap.validate_promo_handler()

    try:
        result = handler.handle(
            code,
            parse_sets(sets, follow_up=True),
            fulfillment_option(method, speed),
            user_id=user_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.valid:
        raise click.ClickException(result.error or "Invalid promo code")

    click.echo(f"{result.code}: {result.description}")
    click.echo(f"  Subtotal  {result.subtotal:>10}")
    click.echo(f"  Discount  {'-' + result.discount:>10}")
    click.echo(f"  New total {result.new_total:>10}")


@click.command("list")
def promo_list() -> None:
    """List configured promo codes."""
    promos = bootstrap.promo_repository().list_all()

    if not promos:
        click.echo("No promo codes found.")
        return

    click.echo(f"{'Code':<16} {'Offer':<16} {'Active':<7} {'Uses':>10}")
    click.echo("-" * 52)
    for p in promos:
        uses = f"{p.uses_count}/{p.max_uses}" if p.max_uses is not None else str(p.uses_count)
        click.echo(f"{p.code:<16} {p.describe():<16} {'yes' if p.active else 'no':<7} {uses:>10}")
