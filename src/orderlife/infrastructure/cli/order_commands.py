"""CLI commands for the order lifecycle."""

from __future__ import annotations

import click

from orderlife.application.add_delivery_attempt import AddDeliveryAttemptHandler
from orderlife.application.advance_order import AdvanceOrderHandler
from orderlife.application.amend_tracking import AmendTrackingHandler
from orderlife.application.dto import (
    OrderItemSpec,
    OrderView,
    TimelineView,
    TransitionOptions,
)
from orderlife.application.place_order import PlaceOrderHandler
from orderlife.application.show_order import ShowOrderHandler
from orderlife.application.show_timeline import ShowTimelineHandler
from orderlife.application.transition_order import TransitionOrderHandler
from orderlife.domain.exceptions import DomainException
from orderlife.domain.model.order import ShippingAddress
from orderlife.domain.model.principal import Principal
from orderlife.domain.model.status import DeliveryAttemptStatus, OrderStatus
from orderlife.domain.service.tracking_amender import TrackingAmendment, TrackingPatch
from orderlife.infrastructure.bootstrap import (
    concurrency_guard,
    mail_dispatcher,
    order_repository,
    product_repository,
    transition_engine,
)

STATUS_CHOICES = click.Choice([s.value for s in OrderStatus])
ATTEMPT_CHOICES = click.Choice([s.value for s in DeliveryAttemptStatus])


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'Widget:3,Gadget:5' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductName:Quantity'."
            )
        name, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{name}'."
            )
        specs.append(OrderItemSpec(product_name=name.strip(), quantity=qty))
    return specs


def _actor(actor_id: str | None) -> Principal | None:
    return Principal(id=actor_id) if actor_id else None


def _display_order(dto: OrderView) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"ID:       {dto.id}")
    click.echo(f"Customer: {dto.shipping_address['full_name']} <{dto.shipping_address['email']}>")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Revision: {dto.revision}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14}")
    click.echo(f"  {'-'*55}")
    for item in dto.items:
        click.echo(
            f"  {item.name:<20} {item.quantity:>5} {item.unit_price:>14} {item.line_total:>14}"
        )
    click.echo(f"  {'-'*55}")
    click.echo(f"  {'Subtotal':<27} {dto.subtotal:>28}")
    click.echo(f"  {'Tax':<27} {dto.tax:>28}")
    click.echo(f"  {'Shipping':<27} {dto.shipping_cost:>28}")
    click.echo(f"  {'Order Total':<27} {dto.total:>28}")
    click.echo()
    click.echo("History:")
    for entry in dto.status_history:
        by = f" by {entry.updated_by}" if entry.updated_by else ""
        at = f" @ {entry.location}" if entry.location else ""
        click.echo(f"  {entry.timestamp}  {entry.status:<17}{by}{at}  {entry.notes or ''}")
    if dto.tracking:
        click.echo()
        click.echo(
            f"Tracking: {dto.tracking.carrier or '-'} {dto.tracking.tracking_number or '-'}"
            f"  location={dto.tracking.current_location or '-'}"
        )
        for attempt in dto.tracking.delivery_attempts:
            click.echo(f"  attempt {attempt.attempt_date}  {attempt.status}  {attempt.notes or ''}")
    if dto.admin_notes:
        click.echo(f"Admin notes: {dto.admin_notes}")
    if dto.next_status:
        click.echo(f"Next step: {dto.next_status}")


def _display_timeline(view: TimelineView) -> None:
    click.echo(f"Order {view.order_number}: {view.status_label} ({view.progress}%)")
    click.echo(f"  {view.status_description}")
    if view.estimated_delivery:
        click.echo(f"  Estimated delivery: {view.estimated_delivery}")
    if view.tracking.tracking_number:
        click.echo(f"  Tracking: {view.tracking.carrier or '-'} {view.tracking.tracking_number}")
    click.echo()
    for entry in view.timeline:
        at = f" @ {entry.location}" if entry.location else ""
        click.echo(f"  {entry.timestamp}  {entry.label:<17}{at}  {entry.notes or ''}")
    if view.customer_notes:
        click.echo()
        click.echo(f"Note: {view.customer_notes}")


@click.command("place")
@click.option("--customer", "customer_id", required=True, help="Customer (user) ID.")
@click.option("--name", "full_name", required=True, help="Recipient full name.")
@click.option("--email", required=True, help="Recipient email.")
@click.option("--phone", required=True, help="Recipient phone number.")
@click.option("--address", "address_line1", required=True, help="Address line 1.")
@click.option("--address2", "address_line2", default=None, help="Address line 2.")
@click.option("--city", required=True)
@click.option("--state", required=True)
@click.option("--postal-code", required=True)
@click.option("--country", default="India", show_default=True)
@click.option("--items", required=True, help="Items as 'Product:Qty,Product:Qty'.")
@click.option("--tax", default="0", show_default=True, help="Tax amount.")
@click.option("--shipping", "shipping_cost", default="0", show_default=True, help="Shipping cost.")
@click.option("--notes", default=None, help="Customer note for the order.")
def order_place(
    customer_id: str,
    full_name: str,
    email: str,
    phone: str,
    address_line1: str,
    address_line2: str | None,
    city: str,
    state: str,
    postal_code: str,
    country: str,
    items: str,
    tax: str,
    shipping_cost: str,
    notes: str | None,
) -> None:
    """Place a new order (snapshots catalog prices)."""
    specs = _parse_items(items)
    address = ShippingAddress(
        full_name=full_name,
        email=email,
        address_line1=address_line1,
        address_line2=address_line2,
        city=city,
        state=state,
        postal_code=postal_code,
        country=country,
        phone_number=phone,
    )
    handler = PlaceOrderHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
    )

    try:
        dto = handler.handle(
            customer_id=customer_id,
            shipping_address=address,
            item_specs=specs,
            tax=tax,
            shipping_cost=shipping_cost,
            notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} placed  (id={dto.id}, status={dto.status})")
    click.echo(f"Total: {dto.total}")


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
def order_show(order_id: str) -> None:
    """Show the admin view of an order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("transition")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--status", required=True, type=STATUS_CHOICES, help="New status.")
@click.option("--notes", default=None, help="Note stored in the status history.")
@click.option("--location", default=None, help="Where the change happened.")
@click.option("--actor", "actor_id", default=None, help="ID of the admin making the change.")
@click.option("--tracking-number", default=None)
@click.option("--carrier", default=None)
@click.option("--tracking-url", default=None)
@click.option("--current-location", default=None)
@click.option("--expected-delivery", default=None, help="ISO date, e.g. 2024-05-01.")
@click.option("--admin-notes", default=None)
@click.option(
    "--strict/--allow-override",
    default=None,
    help="Reject (or allow with a warning) transitions outside the status graph.",
)
def order_transition(
    order_id: str,
    status: str,
    notes: str | None,
    location: str | None,
    actor_id: str | None,
    tracking_number: str | None,
    carrier: str | None,
    tracking_url: str | None,
    current_location: str | None,
    expected_delivery: str | None,
    admin_notes: str | None,
    strict: bool | None,
) -> None:
    """Move an order to a new status."""
    patch = TrackingPatch(
        tracking_number=tracking_number,
        carrier=carrier,
        tracking_url=tracking_url,
        current_location=current_location,
        expected_delivery=expected_delivery,
    )
    options = TransitionOptions(
        notes=notes,
        location=location,
        tracking_patch=patch if patch != TrackingPatch() else None,
        admin_notes=admin_notes,
        strict=strict,
    )

    with mail_dispatcher() as notifier:
        handler = TransitionOrderHandler(
            guard=concurrency_guard(), notifier=notifier, engine=transition_engine()
        )
        try:
            dto = handler.handle(order_id, status, options, actor=_actor(actor_id))
        except DomainException as exc:
            raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} is now {dto.status}.")


@click.command("advance")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--actor", "actor_id", default=None, help="ID of the admin making the change.")
@click.option("--notes", default=None)
def order_advance(order_id: str, actor_id: str | None, notes: str | None) -> None:
    """Move an order one step forward along its normal path."""
    with mail_dispatcher() as notifier:
        handler = AdvanceOrderHandler(
            guard=concurrency_guard(), notifier=notifier, engine=transition_engine()
        )
        try:
            dto = handler.handle(order_id, actor=_actor(actor_id), notes=notes)
        except DomainException as exc:
            raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} advanced to {dto.status}.")


@click.command("amend")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--tracking-number", default=None)
@click.option("--carrier", default=None)
@click.option("--tracking-url", default=None)
@click.option("--current-location", default=None)
@click.option("--expected-delivery", default=None, help="ISO date, e.g. 2024-05-01.")
@click.option("--estimated-delivery", default=None, help="ISO date, e.g. 2024-05-01.")
@click.option("--admin-notes", default=None)
@click.option("--customer-notes", default=None)
@click.option("--payment-status", type=click.Choice(["pending", "paid", "failed"]), default=None)
def order_amend(
    order_id: str,
    tracking_number: str | None,
    carrier: str | None,
    tracking_url: str | None,
    current_location: str | None,
    expected_delivery: str | None,
    estimated_delivery: str | None,
    admin_notes: str | None,
    customer_notes: str | None,
    payment_status: str | None,
) -> None:
    """Change tracking details, notes or payment status without a transition."""
    amendment = TrackingAmendment(
        tracking_number=tracking_number,
        carrier=carrier,
        tracking_url=tracking_url,
        current_location=current_location,
        expected_delivery=expected_delivery,
        estimated_delivery=estimated_delivery,
        admin_notes=admin_notes,
        customer_notes=customer_notes,
        payment_status=payment_status,
    )
    handler = AmendTrackingHandler(guard=concurrency_guard())

    try:
        dto = handler.handle(order_id, amendment)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} amended (revision {dto.revision}).")


@click.command("attempt")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--status", required=True, type=ATTEMPT_CHOICES, help="Attempt outcome.")
@click.option("--notes", default=None)
@click.option("--location", default=None)
def order_attempt(
    order_id: str, status: str, notes: str | None, location: str | None
) -> None:
    """Record a delivery attempt (does not change the order status)."""
    handler = AddDeliveryAttemptHandler(guard=concurrency_guard())

    try:
        dto = handler.handle(order_id, status, notes=notes, location=location)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    attempts = dto.tracking.delivery_attempts if dto.tracking else []
    click.echo(
        f"Delivery attempt #{len(attempts)} recorded for {dto.order_number} "
        f"(status remains {dto.status})."
    )


@click.command("timeline")
@click.option("--id", "order_id", required=True, help="Order ID.")
def order_timeline(order_id: str) -> None:
    """Show the customer-facing tracking timeline of an order."""
    handler = ShowTimelineHandler(order_repo=order_repository())

    try:
        view = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_timeline(view)


@click.command("track")
@click.option("--number", "order_number", required=True, help="Public order number.")
def order_track(order_number: str) -> None:
    """Track an order by its public order number."""
    handler = ShowTimelineHandler(order_repo=order_repository())

    try:
        view = handler.handle_by_number(order_number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_timeline(view)
