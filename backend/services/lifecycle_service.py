"""
Order lifecycle engine — creation, admin approval and status transitions.

Every operation follows the same shape:
    1. validate input and load the order (batched, row-locked where supported)
    2. check the state-machine guards (domain/transitions.py) before any write
    3. one unit of work: compare-and-set the order row + insert the Notification
    4. after commit: schedule email + real-time event via SideEffects

Errors from steps 1-3 propagate to the caller (see domain/errors.py);
failures in step 4 are logged only.

The delivery branch lives in delivery_service.py, payments in payment_service.py.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order
from domain import transitions
from domain.constants import MAX_ITEMS_PER_ORDER, MAX_NOTES_LENGTH
from domain.enums import NotificationType, OrderStatus, PickupMethod
from domain.errors import InvalidTransitionError, ValidationError
from services import notification_service, order_store, pricing_service
from services.side_effects import SideEffects

logger = logging.getLogger(__name__)


# ── Helpers ─────────────────────────────────────────────────────────

def _parse_pickup_method(value) -> PickupMethod:
    try:
        return PickupMethod(value)
    except ValueError:
        raise ValidationError(
            f"Invalid pickup method '{value}'",
            field="pickup_method",
            details={"allowed": [m.value for m in PickupMethod]},
        )


def _check_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    notes = notes.strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"Notes too long (max {MAX_NOTES_LENGTH} characters)", field="notes")
    return notes or None


def email_context(order: Order, **extra) -> dict:
    """Recipient + greeting data shared by every order email."""
    user = order.user
    return {
        "recipient": order.notification_email or (user.email if user else None),
        "name": user.name if user else "",
        "order_id": order.id,
        **extra,
    }


def after_transition(
    effects: SideEffects,
    order: Order,
    *,
    template: str,
    notes: str | None = None,
    **context,
) -> None:
    """Post-commit fan-out for a status change: email + order.status.updated."""
    effects.send_email(
        order_id=order.id,
        user_id=order.user_id,
        template=template,
        context=email_context(order, status=order.status, notes=notes, **context),
    )
    effects.status_updated(order_id=order.id, status=order.status, notes=notes)


# ── Creation ────────────────────────────────────────────────────────

async def create_order(
    db: AsyncSession,
    *,
    user_id: int,
    pickup_method: str,
    items: list[dict],
    effects: SideEffects,
    notes: str | None = None,
    notification_email: str | None = None,
) -> Order:
    """
    Create an order with its items, initial PENDING payment and notification.

    items: [{service_id:int, qty:int}]
    """
    method = _parse_pickup_method(pickup_method)
    notes = _check_notes(notes)
    if not items:
        raise ValidationError("At least one item required", field="items")
    if len(items) > MAX_ITEMS_PER_ORDER:
        raise ValidationError(f"At most {MAX_ITEMS_PER_ORDER} items per order", field="items")

    user = await order_store.get_user(db, user_id)
    services = await order_store.load_services(db, [int(i["service_id"]) for i in items])
    quote = pricing_service.build_quote(pickup_method=method, items=items, services=services)

    recipient = (notification_email or "").strip() or user.email

    async with order_store.unit_of_work(db):
        order = await order_store.insert_order(
            db,
            user_id=user.id,
            pickup_method=method.value,
            status=OrderStatus.DIPESAN.value,
            price_total=quote.total,
            pickup_fee=quote.pickup_fee,
            delivery_required=None,
            # SELF drop-offs need no courier, so nothing to approve.
            admin_approved=(method == PickupMethod.SELF),
            notes=notes,
            notification_email=recipient,
        )
        await order_store.insert_order_items(db, order.id, quote.items)
        await order_store.insert_payment(
            db,
            order_id=order.id,
            method=settings.default_payment_method,
            amount=quote.total,
        )
        await notification_service.record(
            db, order, NotificationType.ORDER_CREATED, status=OrderStatus.DIPESAN.value
        )

    order = await order_store.get_order(db, order.id)
    logger.info(
        f"Order {order.id} created for user {user.id}: {method.value}, "
        f"{len(quote.items)} item(s), total {quote.total}"
    )

    effects.send_email(
        order_id=order.id,
        user_id=order.user_id,
        template=NotificationType.ORDER_CREATED.value,
        context=email_context(
            order,
            pickup_method=order.pickup_method,
            pickup_fee=order.pickup_fee,
            price_total=order.price_total,
            notes=order.notes,
            items=[
                {
                    "service_name": i.service_name,
                    "qty": i.qty,
                    "unit": i.unit,
                    "subtotal": i.subtotal,
                }
                for i in quote.items
            ],
        ),
    )
    return order


# ── Admin approval ──────────────────────────────────────────────────

async def approve_order(db: AsyncSession, *, order_id: int, effects: SideEffects) -> Order:
    """Set admin_approved on a PICKUP order still in DIPESAN. Status is unchanged."""
    order = await order_store.get_order(db, order_id, for_update=True)
    transitions.check_approval(order)

    async with order_store.unit_of_work(db):
        await order_store.update_order(
            db,
            order,
            expected_status=OrderStatus.DIPESAN.value,
            expected={"admin_approved": False},
            admin_approved=True,
        )
        await notification_service.record(db, order, NotificationType.ORDER_APPROVED)

    logger.info(f"Order {order.id} approved for courier pickup")
    effects.send_email(
        order_id=order.id,
        user_id=order.user_id,
        template=NotificationType.ORDER_APPROVED.value,
        context=email_context(order),
    )
    return order


# ── Transitions ─────────────────────────────────────────────────────

async def confirm_delivery(
    db: AsyncSession,
    *,
    order_id: int,
    effects: SideEffects,
    notes: str | None = None,
) -> Order:
    """DICUCI → MENUNGGU_KONFIRMASI_DELIVERY; the customer must then choose a delivery method."""
    notes = _check_notes(notes)
    order = await order_store.get_order(db, order_id, for_update=True)
    if order.status != transitions.CONFIRM_DELIVERY_FROM.value:
        raise InvalidTransitionError(
            order.status,
            transitions.CONFIRM_DELIVERY_TO.value,
            message=f"Can only confirm delivery for orders with status {transitions.CONFIRM_DELIVERY_FROM.value}",
        )

    async with order_store.unit_of_work(db):
        await order_store.update_order(
            db,
            order,
            expected_status=transitions.CONFIRM_DELIVERY_FROM.value,
            status=transitions.CONFIRM_DELIVERY_TO.value,
            delivery_required=None,
        )
        await notification_service.record(
            db,
            order,
            NotificationType.DELIVERY_CONFIRMATION_REQUIRED,
            status=order.status,
            notes=notes,
        )

    logger.info(f"Order {order.id}: {transitions.CONFIRM_DELIVERY_FROM.value} → {order.status}")
    after_transition(
        effects,
        order,
        template=NotificationType.DELIVERY_CONFIRMATION_REQUIRED.value,
        notes=notes,
        delivery_fee=pricing_service.delivery_fee(),
    )
    return order


async def update_status(
    db: AsyncSession,
    *,
    order_id: int,
    status: str,
    effects: SideEffects,
    notes: str | None = None,
    estimated_arrival: datetime | None = None,
) -> Order:
    """
    Generic transition along GENERIC_TRANSITIONS.

    estimated_arrival is stored only when entering PESANAN_DIJEMPUT.
    """
    target = transitions.parse_status(status)
    notes = _check_notes(notes)
    order = await order_store.get_order(db, order_id, for_update=True)
    transitions.check_generic_transition(order, target)

    previous = order.status
    patch = {"status": target.value}
    if estimated_arrival is not None and target == OrderStatus.PESANAN_DIJEMPUT:
        if estimated_arrival.tzinfo is not None:
            # Stored as naive UTC like every other timestamp column.
            estimated_arrival = estimated_arrival.astimezone(timezone.utc).replace(tzinfo=None)
        patch["estimated_arrival"] = estimated_arrival

    async with order_store.unit_of_work(db):
        await order_store.update_order(db, order, expected_status=previous, **patch)
        await notification_service.record(
            db,
            order,
            NotificationType.STATUS_UPDATE,
            status=target.value,
            notes=notes,
        )

    logger.info(f"Order {order.id}: {previous} → {target.value}")
    after_transition(
        effects,
        order,
        template=NotificationType.STATUS_UPDATE.value,
        notes=notes,
        estimated_arrival=order.estimated_arrival.isoformat() if order.estimated_arrival else None,
    )
    return order
