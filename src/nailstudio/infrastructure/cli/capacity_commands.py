"""CLI commands for weekly capacity."""

from __future__ import annotations

import click

from nailstudio.application.dto import CapacityDTO
from nailstudio.domain.exceptions import DomainException
from nailstudio.infrastructure import bootstrap


def _display_capacity(dto: CapacityDTO) -> None:
    click.echo(f"Week of {dto.week_start}")
    if dto.degraded:
        click.echo("  Capacity store unavailable; accepting orders.")
        return
    click.echo(f"  Orders    {dto.orders_count:>4} / {dto.weekly_capacity}")
    click.echo(f"  Remaining {dto.remaining:>4}")
    if dto.is_full:
        click.echo(f"  FULL: new orders open on {dto.next_week_start}")
    elif dto.is_almost_full:
        click.echo("  Almost full")


@click.command("show")
@click.option("--date", "reference", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Any day of the week to inspect (default: today).")
def capacity_show(reference) -> None:
    """Show this week's order capacity."""
    handler = bootstrap.check_capacity_handler()

    try:
        dto = handler.handle(reference.date() if reference else None)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_capacity(dto)


@click.command("set")
@click.argument("weekly_capacity", type=int)
def capacity_set(weekly_capacity: int) -> None:
    """Set the capacity for this week (later weeks inherit it)."""
    handler = bootstrap.update_capacity_handler()

    try:
        dto = handler.handle(weekly_capacity=weekly_capacity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_capacity(dto)


@click.command("reset")
def capacity_reset() -> None:
    """Reset this week's order count to zero."""
    handler = bootstrap.update_capacity_handler()

    try:
        dto = handler.handle(reset=True)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_capacity(dto)
