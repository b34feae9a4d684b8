"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from nailstudio.domain.exceptions import DomainException
from nailstudio.infrastructure import bootstrap
from nailstudio.infrastructure.cli._formatting import (
    display_breakdown,
    display_order,
    fulfillment_option,
    parse_sets,
)


def _order_options(func):
    """Options shared by create / update / quote."""
    func = click.option("--notes", default="", help="Notes for the studio.")(func)
    func = click.option("--promo", default=None, help="Promo code to apply.")(func)
    func = click.option("--speed", default=None, help="Speed tier (standard, priority, rush).")(func)
    func = click.option("--method", default="pickup", show_default=True, help="pickup, delivery or shipping.")(func)
    func = click.option(
        "--follow-up", is_flag=True, default=False,
        help="Sets without a description will be designed with the studio later.",
    )(func)
    func = click.option(
        "--set", "sets", multiple=True, required=True,
        help="Nail set as 'shape:qty[:description]'. Repeat for more sets.",
    )(func)
    return func


@click.command("create")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@_order_options
def order_create(user_id, sets, follow_up, method, speed, promo, notes) -> None:
    """Create a new draft order."""
    specs = parse_sets(sets, follow_up)
    handler = bootstrap.save_order_handler()

    try:
        dto = handler.handle(
            user_id=user_id,
            nail_set_specs=specs,
            fulfillment=fulfillment_option(method, speed),
            promo_code=promo,
            order_notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} created  (status={dto.status})")
    click.echo()
    display_breakdown(dto.pricing)


@click.command("update")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to update.")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@_order_options
def order_update(order_id, user_id, sets, follow_up, method, speed, promo, notes) -> None:
    """Replace the nail sets of a draft or submitted order."""
    specs = parse_sets(sets, follow_up)
    handler = bootstrap.save_order_handler()

    try:
        dto = handler.handle(
            user_id=user_id,
            nail_set_specs=specs,
            fulfillment=fulfillment_option(method, speed),
            promo_code=promo,
            order_id=order_id,
            order_notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} updated  (status={dto.status})")
    click.echo()
    display_breakdown(dto.pricing)


@click.command("quote")
@click.option("--user", "user_id", default=None, help="Customer user ID (for promo limits).")
@_order_options
def order_quote(user_id, sets, follow_up, method, speed, promo, notes) -> None:
    """Price a cart without saving it."""
    specs = parse_sets(sets, follow_up)
    handler = bootstrap.quote_order_handler()

    try:
        quote = handler.handle(
            nail_set_specs=specs,
            fulfillment=fulfillment_option(method, speed),
            promo_code=promo,
            user_id=user_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if quote.promo is not None and not quote.promo.valid:
        click.echo(f"Promo {quote.promo.code or promo!r} not applied: {quote.promo.error}")
    display_breakdown(quote.pricing)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = bootstrap.show_order_handler()

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_order(dto)


@click.command("list")
@click.option("--user", "user_id", default=None, help="Only this customer's orders.")
@click.option("--status", default=None, help="Only orders in this status.")
def order_list(user_id: str | None, status: str | None) -> None:
    """List orders, newest first."""
    handler = bootstrap.list_orders_handler()

    try:
        orders = handler.handle(user_id=user_id, status=status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'User':<16} {'Status':<16} {'Sets':>5} {'Total':>10}")
    click.echo("-" * 57)
    for o in orders:
        click.echo(
            f"{o.id:<6} {o.user_id:<16} {o.status:<16} {o.nail_set_count:>5} {o.total:>10}"
        )


@click.command("submit")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to submit.")
def order_submit(order_id: int) -> None:
    """Submit a draft order (takes a slot in this week's capacity)."""
    handler = bootstrap.submit_order_handler()

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} submitted.")


@click.command("reopen")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to reopen.")
def order_reopen(order_id: int) -> None:
    """Move a submitted order back to draft."""
    handler = bootstrap.reopen_order_handler()

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} reopened for editing.")


@click.command("pay")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to pay.")
def order_pay(order_id: int) -> None:
    """Create a payment intent for an order."""
    handler = bootstrap.initiate_payment_handler()

    try:
        payment = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Payment intent {payment.payment_intent_id} for order #{order_id}")
    click.echo(f"Amount:        {payment.amount_cents} {payment.currency}")
    click.echo(f"Client secret: {payment.client_secret}")


@click.command("complete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to complete.")
@click.option("--payment-intent", default=None, help="Confirmed payment intent ID.")
def order_complete(order_id: int, payment_intent: str | None) -> None:
    """Mark an order paid and create its production jobs."""
    handler = bootstrap.complete_order_handler()

    try:
        dto = handler.handle(order_id, payment_intent_id=payment_intent)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Order #{order_id} paid — {len(dto.production_jobs)} production job(s) queued."
    )


@click.command("finish")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to finish.")
def order_finish(order_id: int) -> None:
    """Mark a paid order as completed (sets handed over)."""
    handler = bootstrap.finish_order_handler()

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} completed.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
def order_cancel(order_id: int) -> None:
    """Cancel an order that has not been paid."""
    handler = bootstrap.cancel_order_handler()

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} cancelled.")


@click.command("delete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to delete.")
def order_delete(order_id: int) -> None:
    """Delete a draft order."""
    handler = bootstrap.delete_order_handler()

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} deleted.")
