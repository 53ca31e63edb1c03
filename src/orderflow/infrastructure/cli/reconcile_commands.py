"""CLI commands for carrier reconciliation and order housekeeping."""

from __future__ import annotations

import click

from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import Container
from orderflow.infrastructure.scheduler import ReconciliationScheduler


@click.command("once")
@click.option("--limit", default=None, type=int, help="Max orders per batch.")
@click.pass_obj
def reconcile_once(container: Container, limit: int | None) -> None:
    """Sync every open shipment with the carrier once."""
    limit = limit or container.settings.sync_batch_limit
    try:
        result = container.reconcile_shipments.handle(limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Synced {result.synced}/{result.total}  "
        f"(cancelled {result.cancelled}, errors {result.errors})"
    )
    for detail in result.details:
        outcome = detail.action if detail.error is None else f"error: {detail.error}"
        click.echo(f"  {detail.order_number:<18} {detail.awb:<16} {outcome}")


@click.command("watch")
@click.option("--interval", default=None, type=float, help="Seconds between runs.")
@click.option("--limit", default=None, type=int, help="Max orders per batch.")
@click.pass_obj
def reconcile_watch(
    container: Container, interval: float | None, limit: int | None
) -> None:
    """Sync open shipments periodically until interrupted."""
    settings = container.settings
    scheduler = ReconciliationScheduler(
        container.reconcile_shipments,
        interval=interval or settings.sync_interval_seconds,
        limit=limit or settings.sync_batch_limit,
    )
    scheduler.start()
    click.echo("Reconciling shipments; press Ctrl+C to stop.")
    try:
        while scheduler.running:
            scheduler.wait(1.0)
    except KeyboardInterrupt:
        click.echo("Stopping reconciler...")
    finally:
        scheduler.stop()


@click.command("expire-pending")
@click.option(
    "--max-age-hours",
    default=None,
    type=float,
    help="Age after which unpaid pending orders are cancelled.",
)
@click.pass_obj
def reconcile_expire_pending(container: Container, max_age_hours: float | None) -> None:
    """Cancel unpaid pending orders older than the configured age."""
    max_age = max_age_hours or container.settings.pending_max_age_hours
    try:
        result = container.expire_pending_orders.handle(max_age)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Cancelled {len(result.cancelled)} of {result.examined} expired orders.")
    for order_number in result.cancelled:
        click.echo(f"  {order_number}")


@click.command("refunds")
@click.pass_obj
def reconcile_refunds(container: Container) -> None:
    """Settle refunds stuck in processing from the gateway's records."""
    try:
        result = container.resolve_stale_refunds.handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Resolved {len(result.resolved)} of {result.examined} stale refunds "
        f"(errors {result.errors})."
    )
    for order_number, status in result.resolved:
        click.echo(f"  {order_number:<18} {status}")
