from __future__ import annotations

import click

from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import Container
from orderflow.infrastructure.cli.order_commands import (
    order_cancel,
    order_create,
    order_create_shipment,
    order_invoice,
    order_refund,
    order_show,
    order_status,
    order_sync_shipment,
)
from orderflow.infrastructure.cli.reconcile_commands import (
    reconcile_expire_pending,
    reconcile_once,
    reconcile_refunds,
    reconcile_watch,
)
from orderflow.infrastructure.config import Settings
from orderflow.infrastructure.logging import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """orderflow: order fulfillment back office"""
    if ctx.obj is not None:
        return
    try:
        settings = Settings.from_env()
    except DomainException as exc:
        raise click.ClickException(str(exc))
    configure_logging(settings.environment, settings.log_level)
    ctx.obj = Container(settings)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def reconcile() -> None:
    """Reconcile orders with the carrier."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_create)
order.add_command(order_create_shipment)
order.add_command(order_invoice)
order.add_command(order_refund)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_sync_shipment)
reconcile.add_command(reconcile_expire_pending)
reconcile.add_command(reconcile_once)
reconcile.add_command(reconcile_refunds)
reconcile.add_command(reconcile_watch)
