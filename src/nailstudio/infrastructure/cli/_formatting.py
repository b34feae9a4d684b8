"""Shared parsing and display helpers for the CLI commands."""

from __future__ import annotations

import click

from nailstudio.application.dto import NailSetSpec, OrderDTO, PriceBreakdownDTO
from nailstudio.domain.model.fulfillment import FulfillmentSelection


def parse_sets(raw_sets: tuple[str, ...], follow_up: bool = False) -> list[NailSetSpec]:
    """Parse 'almond:2:pink ombre' values into NailSetSpec list."""
    specs: list[NailSetSpec] = []
    for raw in raw_sets:
        parts = raw.split(":", 2)
        if len(parts) < 2:
            raise click.BadParameter(
                f"Invalid set format '{raw}'. Expected 'shape:qty[:description]'."
            )
        shape, qty_str = parts[0].strip(), parts[1].strip()
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(f"Invalid quantity '{qty_str}' for shape '{shape}'.")
        description = parts[2].strip() if len(parts) == 3 else ""
        specs.append(
            NailSetSpec(
                shape_id=shape,
                quantity=qty,
                description=description,
                requires_follow_up=follow_up and not description,
            )
        )
    return specs


def fulfillment_option(method: str, speed: str | None) -> FulfillmentSelection:
    return FulfillmentSelection(method=method, speed=speed)


def display_breakdown(pricing: PriceBreakdownDTO) -> None:
    click.echo(f"  {'Item':<48} {'Amount':>10}")
    click.echo(f"  {'-'*59}")
    for item in pricing.line_items:
        click.echo(f"  {item.label:<48} {item.amount:>10}")
    click.echo(f"  {'-'*59}")
    click.echo(f"  {'Subtotal':<48} {pricing.subtotal:>10}")
    if pricing.discount != "$0.00":
        click.echo(f"  {'Discount':<48} {'-' + pricing.discount:>10}")
    click.echo(f"  {'Total':<48} {pricing.total:>10}")
    if pricing.estimated_completion_date:
        click.echo(
            f"  Ready in ~{pricing.estimated_completion_days} day(s) "
            f"({pricing.estimated_completion_date[:10]})"
        )


def display_order(dto: OrderDTO) -> None:
    click.echo(f"Order #{dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.user_id}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Fulfillment: {dto.fulfillment_method} / {dto.pricing.tier}")
    if dto.promo_code:
        click.echo(f"Promo:    {dto.promo_code}")
    if dto.payment_intent_id:
        click.echo(f"Payment:  {dto.payment_intent_id}")
    click.echo()
    display_breakdown(dto.pricing)

    if dto.production_jobs:
        click.echo()
        click.echo(f"Production jobs (due {(dto.estimated_fulfillment_date or '')[:10]}):")
        for job in dto.production_jobs:
            click.echo(f"  {job.id:<40} {job.shape_id:<10} x{job.quantity}")
