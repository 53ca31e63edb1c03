"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from orderflow.application.dto import OrderDTO, OrderItemSpec
from orderflow.domain.exceptions import DomainException
from orderflow.infrastructure.bootstrap import Container


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'Tee:2:499:M:black,Cap:1:299' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for chunk in raw.split(","):
        parts = [p.strip() for p in chunk.strip().split(":")]
        if len(parts) < 3 or len(parts) > 5:
            raise click.BadParameter(
                f"Invalid item format '{chunk.strip()}'. "
                "Expected 'Product:Qty:Price[:Size[:Color]]'."
            )
        name, qty_str, price = parts[:3]
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{name}'."
            )
        specs.append(
            OrderItemSpec(
                product_id=name.lower().replace(" ", "-"),
                product_name=name,
                quantity=qty,
                unit_price=price,
                size=parts[3] if len(parts) > 3 else "",
                color=parts[4] if len(parts) > 4 else "",
            )
        )
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number} (#{dto.id})  (status={dto.status})")
    click.echo(
        f"Customer: {dto.customer_id}  "
        f"(loyalty {dto.loyalty_tier}, {dto.loyalty_points} pts)"
    )
    click.echo(f"Created:  {dto.created_at}")
    click.echo(
        f"Payment:  {dto.payment_method} / {dto.payment_status}"
        + (f"  txn={dto.transaction_id}" if dto.transaction_id else "")
    )
    if dto.refund.status != "none":
        click.echo(
            f"Refund:   {dto.refund.status}  amount={dto.refund.amount}  "
            f"attempts={dto.refund.attempts}"
            + (f"  error={dto.refund.error_message}" if dto.refund.error_message else "")
        )
    if dto.shipment is not None:
        click.echo(
            f"Shipment: AWB {dto.shipment.awb}  "
            f"carrier status={dto.shipment.carrier_status or '-'}"
        )
    if dto.invoice_no:
        click.echo(f"Invoice:  {dto.invoice_no}")
    click.echo()

    click.echo(f"  {'Product':<20} {'Variant':<12} {'Qty':>5} {'Price':>12} {'Total':>12}")
    click.echo(f"  {'-'*65}")
    for item in dto.items:
        variant = "/".join(v for v in (item.size, item.color) if v)
        click.echo(
            f"  {item.product_name:<20} {variant:<12} {item.quantity:>5} "
            f"{item.unit_price:>12} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*65}")
    click.echo(f"  {'Subtotal':<40} {dto.subtotal:>24}")
    click.echo(f"  {'Tax':<40} {dto.tax:>24}")
    click.echo(f"  {'Shipping':<40} {dto.shipping_cost:>24}")
    click.echo(f"  {'Order Total':<40} {dto.total:>24}")
    click.echo()
    click.echo("Timeline:")
    for entry in dto.timeline:
        click.echo(f"  {entry.updated_at}  {entry.status:<11} {entry.message}")


@click.command("create")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--items", required=True, help="Items as 'Product:Qty:Price[:Size[:Color]],...'.")
@click.option("--tax", default=None, help="Tax amount.")
@click.option("--shipping", default=None, help="Shipping cost.")
@click.option("--payment", "payment_method", default="razorpay", show_default=True)
@click.option("--paid", is_flag=True, default=False, help="Payment already captured.")
@click.option("--txn", "transaction_id", default=None, help="Gateway transaction ID.")
@click.pass_obj
def order_create(
    container: Container,
    customer: str,
    items: str,
    tax: str | None,
    shipping: str | None,
    payment_method: str,
    paid: bool,
    transaction_id: str | None,
) -> None:
    """Create a new pending order (checkout stand-in)."""
    specs = _parse_items(items)

    try:
        dto = container.create_order.handle(
            customer_id=customer,
            item_specs=specs,
            payment_method=payment_method,
            paid=paid,
            transaction_id=transaction_id,
            tax=tax,
            shipping_cost=shipping,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} (#{dto.id}) created  (status={dto.status})")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_obj
def order_show(container: Container, order_id: int) -> None:
    """Show details of an existing order."""
    try:
        dto = container.show_order.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--status", required=True, help="New status.")
@click.option("--note", default="", help="Timeline note.")
@click.pass_obj
def order_status(container: Container, order_id: int, status: str, note: str) -> None:
    """Move an order to a new status."""
    try:
        result = container.update_status.handle(order_id, status, note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.changed:
        click.echo(f"Order {result.order.order_number} already {result.status}.")
        return
    click.echo(
        f"Order {result.order.order_number}: {result.previous_status} -> {result.status}"
    )
    if result.points_credited:
        click.echo(f"Loyalty points credited: {result.points_credited}")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--reason", default="", help="Cancellation reason.")
@click.pass_obj
def order_cancel(container: Container, order_id: int, reason: str) -> None:
    """Cancel an order, refunding it when a refund applies."""
    try:
        result = container.cancel_order.handle(order_id, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {result.order.order_number} cancelled (was {result.previous_status}).")
    if result.refund_skipped:
        click.echo(f"Refund skipped: {result.refund_skipped}")
    elif result.refund_error:
        click.echo(f"Refund FAILED: {result.refund_error}")
    else:
        click.echo(f"Refund {result.refund_status}: {result.order.refund.amount}")


@click.command("refund")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to refund.")
@click.option("--amount", default=None, help="Amount to refund (default: order total).")
@click.option("--reason", default="", help="Refund reason.")
@click.pass_obj
def order_refund(
    container: Container, order_id: int, amount: str | None, reason: str
) -> None:
    """Refund a paid order through the payment gateway."""
    try:
        result = container.refund_order.handle(order_id, amount, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Refund {result.status} for order {result.order.order_number}: "
        f"{result.amount}  (refund id {result.refund_id})"
    )


@click.command("create-shipment")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to ship.")
@click.pass_obj
def order_create_shipment(container: Container, order_id: int) -> None:
    """Register the order's shipment with the carrier."""
    try:
        shipment = container.create_shipment.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Shipment created: AWB {shipment.awb}")
    click.echo(f"Tracking: {shipment.tracking_url}")


@click.command("sync-shipment")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to sync.")
@click.pass_obj
def order_sync_shipment(container: Container, order_id: int) -> None:
    """Pull the carrier's current status into the order."""
    try:
        result = container.sync_shipment.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Carrier status '{result.carrier_status}' -> {result.mapped_status or '-'} "
        f"({result.action}); order is {result.order.status}"
    )


@click.command("invoice")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--invoice-no", required=True, help="Invoice number.")
@click.pass_obj
def order_invoice(container: Container, order_id: int, invoice_no: str) -> None:
    """Set the order's invoice number."""
    try:
        dto = container.set_invoice.handle(order_id, invoice_no)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} invoice set to {dto.invoice_no}.")
