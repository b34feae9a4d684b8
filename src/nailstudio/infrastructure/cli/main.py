import logging

import click

from nailstudio.domain.exceptions import DomainException
from nailstudio.infrastructure.cli.capacity_commands import (
    capacity_reset,
    capacity_set,
    capacity_show,
)
from nailstudio.infrastructure.cli.order_commands import (
    order_cancel,
    order_complete,
    order_create,
    order_delete,
    order_finish,
    order_list,
    order_pay,
    order_quote,
    order_reopen,
    order_show,
    order_submit,
    order_update,
)
from nailstudio.infrastructure.cli.promo_commands import promo_list, promo_validate
from nailstudio.infrastructure.cli.webhook_commands import webhook_handle
from nailstudio.infrastructure.config import Settings


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Nail Studio: custom nail set orders."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        Settings.from_env()
    except DomainException as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def promo() -> None:
    """Validate and list promo codes."""


@cli.group()
def capacity() -> None:
    """Weekly order capacity."""


@cli.group()
def webhook() -> None:
    """Payment provider webhooks."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_complete)
order.add_command(order_create)
order.add_command(order_delete)
order.add_command(order_finish)
order.add_command(order_list)
order.add_command(order_pay)
order.add_command(order_quote)
order.add_command(order_reopen)
order.add_command(order_show)
order.add_command(order_submit)
order.add_command(order_update)
promo.add_command(promo_list)
promo.add_command(promo_validate)
capacity.add_command(capacity_reset)
capacity.add_command(capacity_set)
capacity.add_command(capacity_show)
webhook.add_command(webhook_handle)
