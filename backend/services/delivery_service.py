"""
Delivery choice resolver — the post-wash branch of the lifecycle.

From MENUNGGU_KONFIRMASI_DELIVERY the order's owner picks:
    SELF_PICKUP → MENUNGGU_AMBIL_SENDIRI        (delivery_required = False)
    DELIVERY    → MENUNGGU_PEMBAYARAN_DELIVERY  (delivery_required = True,
                  price_total += delivery fee, new PENDING payment for the fee)
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order
from domain import transitions
from domain.enums import DeliveryMethod, NotificationType, OrderStatus
from domain.errors import InvalidTransitionError, UnauthorizedError, ValidationError
from services import notification_service, order_store, pricing_service
from services.lifecycle_service import after_transition
from services.side_effects import SideEffects

logger = logging.getLogger(__name__)

TARGETS = {
    DeliveryMethod.SELF_PICKUP: OrderStatus.MENUNGGU_AMBIL_SENDIRI,
    DeliveryMethod.DELIVERY: OrderStatus.MENUNGGU_PEMBAYARAN_DELIVERY,
}


def parse_delivery_method(value) -> DeliveryMethod:
    try:
        return DeliveryMethod(value)
    except ValueError:
        raise ValidationError(
            f"Invalid delivery method '{value}'",
            field="delivery_method",
            details={"allowed": [m.value for m in DeliveryMethod]},
        )


async def choose_delivery_method(
    db: AsyncSession,
    *,
    order_id: int,
    user_id: int,
    delivery_method: str,
    effects: SideEffects,
) -> tuple[Order, int]:
    """
    Resolve the customer's delivery choice.

    Returns (order, fee_added); fee_added is 0 for SELF_PICKUP.
    """
    method = parse_delivery_method(delivery_method)
    order = await order_store.get_order(db, order_id, for_update=True)
    if order.user_id != user_id:
        raise UnauthorizedError("Only the order's owner can choose the delivery method")

    target = TARGETS[method]
    if order.status != transitions.DELIVERY_CHOICE_FROM.value:
        raise InvalidTransitionError(
            order.status,
            target.value,
            message="Order is not waiting for delivery confirmation",
        )

    fee = 0
    patch = {"status": target.value}
    if method == DeliveryMethod.DELIVERY:
        fee = pricing_service.delivery_fee()
        patch["delivery_required"] = True
        patch["price_total"] = pricing_service.with_delivery_fee(order.price_total)
    else:
        patch["delivery_required"] = False

    async with order_store.unit_of_work(db):
        await order_store.update_order(
            db,
            order,
            expected_status=transitions.DELIVERY_CHOICE_FROM.value,
            **patch,
        )
        if fee:
            # Separate record so the original order payment keeps its amount.
            await order_store.insert_payment(
                db,
                order_id=order.id,
                method=settings.default_payment_method,
                amount=fee,
            )
        await notification_service.record(
            db,
            order,
            NotificationType.DELIVERY_METHOD_SELECTED,
            delivery_method=method.value,
            status=target.value,
            delivery_fee=fee or None,
        )

    logger.info(f"Order {order.id}: delivery method {method.value} → {target.value} (fee {fee})")
    after_transition(
        effects,
        order,
        template=NotificationType.DELIVERY_METHOD_SELECTED.value,
        delivery_method=method.value,
        delivery_fee=fee,
    )
    return order, fee
