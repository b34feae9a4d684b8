"""CLI entry point for payment provider webhooks."""

from __future__ import annotations

import click

from nailstudio.domain.exceptions import DomainException
from nailstudio.infrastructure import bootstrap


@click.command("handle")
@click.option("--signature", required=True, help="Value of the Stripe-Signature header.")
@click.argument("payload", type=click.File("rb"), default="-")
def webhook_handle(signature: str, payload) -> None:
    """Process one webhook delivery read from PAYLOAD (default: stdin)."""
    handler = bootstrap.payment_webhook_handler()

    try:
        dto = handler.handle(payload.read(), signature)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if dto is None:
        click.echo("Event ignored.")
    else:
        click.echo(f"Order #{dto.id} is {dto.status}.")
