"""
Payment confirmation.

The customer reports (method, amount); the amount must equal the order's
current price_total exactly. On a match every PENDING payment record of the
order becomes PAID. Status progression is a separate axis: nothing here moves
the order through the state machine.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, Payment
from domain.enums import PaymentMethod
from domain.errors import PreconditionFailedError, ValidationError
from services import order_store

logger = logging.getLogger(__name__)


def _parse_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("Valid amount required", field="amount")
    if not value.is_finite() or value < 0:
        raise ValidationError("Valid amount required", field="amount")
    return value


def _parse_method(method) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError:
        raise ValidationError(
            f"Invalid payment method '{method}'",
            field="method",
            details={"allowed": [m.value for m in PaymentMethod]},
        )


async def confirm_payment(
    db: AsyncSession,
    *,
    order_id: int,
    user_id: int,
    method: str,
    amount,
) -> tuple[Order, list[Payment]]:
    """
    Settle the order's pending payments.

    Raises:
        NotFoundError: order missing or owned by someone else
        PreconditionFailedError: amount != price_total, or nothing pending
    """
    pay_method = _parse_method(method)
    value = _parse_amount(amount)

    order = await order_store.get_owned_order(db, order_id, user_id, for_update=True)
    if value != Decimal(int(order.price_total)):
        raise PreconditionFailedError(
            "Payment amount does not match order total",
            details={"expected": int(order.price_total), "received": str(value)},
        )

    async with order_store.unit_of_work(db):
        settled = await order_store.settle_pending_payments(db, order, method=pay_method.value)
        if not settled:
            raise PreconditionFailedError("Order has no pending payment")

    logger.info(
        f"Order {order.id}: {len(settled)} payment(s) confirmed via {pay_method.value} "
        f"({order.price_total})"
    )
    return order, settled
