"""
Order store — the persistence boundary of the lifecycle engine.

Everything the engine reads or writes goes through here:
    - batched reads (order + owner + items + payments in one round trip set)
    - compare-and-set status updates: UPDATE ... WHERE id = :id AND status = :expected
    - inserts for items, payments and notifications inside the caller's transaction
    - unit_of_work(): commit bounded by settings.store_timeout_seconds

Two concurrent transitions on the same order both read the same status, but
only one compare-and-set can match it; the loser gets InvalidTransitionError.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from config import settings
from db_models import Order, OrderItem, Payment, Notification, Service, User
from domain.enums import PaymentStatus
from domain.errors import (
    DependencyFailureError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
)

logger = logging.getLogger(__name__)


async def _bounded(coro, what: str):
    """Run a store call under the store timeout, mapping failures to DependencyFailureError."""
    try:
        return await asyncio.wait_for(coro, timeout=settings.store_timeout_seconds)
    except asyncio.TimeoutError:
        logger.error(f"Order store timed out during {what} (>{settings.store_timeout_seconds}s)")
        raise DependencyFailureError(f"Order store timed out during {what}")
    except SQLAlchemyError as e:
        logger.error(f"Order store error during {what}: {e}")
        raise DependencyFailureError(f"Order store error during {what}")


@asynccontextmanager
async def unit_of_work(db: AsyncSession):
    """
    One atomic unit: commit on clean exit, roll back on any exception.

    Usage:
        async with unit_of_work(db):
            ...mutations...
    """
    try:
        yield db
        await _bounded(db.commit(), "commit")
    except BaseException:
        await db.rollback()
        raise


# ── Reads ───────────────────────────────────────────────────────────

def _order_query(order_id: int, *, for_update: bool = False):
    q = (
        select(Order)
        .where(Order.id == order_id)
        .options(
            selectinload(Order.user),
            selectinload(Order.items).selectinload(OrderItem.service),
            selectinload(Order.payments),
        )
        .execution_options(populate_existing=True)
    )
    if for_update:
        # Row lock where the backend supports it (ignored by SQLite).
        q = q.with_for_update(of=Order)
    return q


async def get_order(db: AsyncSession, order_id: int, *, for_update: bool = False) -> Order:
    """Load an order with owner, items (+service) and payments. Raises NotFoundError."""
    res = await _bounded(db.execute(_order_query(order_id, for_update=for_update)), "order load")
    order = res.scalar_one_or_none()
    if order is None:
        raise NotFoundError("Order", str(order_id))
    return order


async def get_owned_order(db: AsyncSession, order_id: int, user_id: int, *, for_update: bool = False) -> Order:
    """Like get_order, but orders owned by someone else are reported as missing."""
    order = await get_order(db, order_id, for_update=for_update)
    if order.user_id != user_id:
        raise NotFoundError("Order", str(order_id))
    return order


async def get_user(db: AsyncSession, user_id: int) -> User:
    res = await _bounded(db.execute(select(User).where(User.id == user_id)), "user load")
    user = res.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", str(user_id))
    return user


async def load_services(db: AsyncSession, service_ids: list[int]) -> dict[int, Service]:
    """Batched catalog read: one IN query instead of a lookup per item."""
    if not service_ids:
        return {}
    res = await _bounded(
        db.execute(select(Service).where(Service.id.in_(set(service_ids)))),
        "service load",
    )
    return {s.id: s for s in res.scalars().all()}


async def list_user_orders(
    db: AsyncSession,
    *,
    user_id: int | None,
    status: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[tuple[Order, int]], int]:
    """
    Orders (newest first) with their item counts, plus the total row count.

    user_id=None lists every customer's orders (admin dashboard).
    """
    filters = []
    if user_id is not None:
        filters.append(Order.user_id == user_id)
    if status:
        filters.append(Order.status == status)

    item_count = (
        select(func.count(OrderItem.id))
        .where(OrderItem.order_id == Order.id)
        .correlate(Order)
        .scalar_subquery()
    )
    q = (
        select(Order, item_count.label("item_count"))
        .where(*filters)
        .options(selectinload(Order.user))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = (await _bounded(db.execute(q), "order list")).all()

    total = (
        await _bounded(db.execute(select(func.count(Order.id)).where(*filters)), "order count")
    ).scalar_one()
    return [(row[0], row[1]) for row in rows], total


# ── Writes ──────────────────────────────────────────────────────────

async def insert_order(db: AsyncSession, **fields) -> Order:
    order = Order(**fields)
    db.add(order)
    await _bounded(db.flush(), "order insert")
    return order


async def insert_order_items(db: AsyncSession, order_id: int, items) -> list[OrderItem]:
    rows = [
        OrderItem(
            order_id=order_id,
            service_id=i.service_id,
            qty=i.qty,
            unit_price=i.unit_price,
            subtotal=i.subtotal,
        )
        for i in items
    ]
    db.add_all(rows)
    await _bounded(db.flush(), "order item insert")
    return rows


async def insert_payment(db: AsyncSession, *, order_id: int, method: str, amount: int) -> Payment:
    payment = Payment(
        order_id=order_id,
        method=method,
        amount=amount,
        status=PaymentStatus.PENDING.value,
    )
    db.add(payment)
    await _bounded(db.flush(), "payment insert")
    return payment


async def insert_notification(
    db: AsyncSession,
    *,
    order_id: int | None,
    user_id: int,
    type: str,
    payload: dict,
    channel: str,
) -> Notification:
    notification = Notification(
        order_id=order_id,
        user_id=user_id,
        type=type,
        payload=payload,
        channel=channel,
    )
    db.add(notification)
    await _bounded(db.flush(), "notification insert")
    return notification


async def update_order(
    db: AsyncSession,
    order: Order,
    *,
    expected_status: str,
    expected: dict | None = None,
    **patch,
) -> Order:
    """
    Compare-and-set update of an order row.

    Applies `patch` only if the row still has `expected_status` (and the
    column values in `expected`); otherwise the order moved under us and
    InvalidTransitionError (stale state) is raised.
    """
    conditions = [Order.id == order.id, Order.status == expected_status]
    for column, value in (expected or {}).items():
        conditions.append(getattr(Order, column) == value)

    patch["updated_at"] = datetime.utcnow()
    res = await _bounded(
        db.execute(
            update(Order)
            .where(*conditions)
            .values(**patch)
            .execution_options(synchronize_session=False)
        ),
        "order update",
    )
    if res.rowcount != 1:
        requested = patch.get("status", expected_status)
        current = await _bounded(
            db.execute(select(Order.status).where(Order.id == order.id)),
            "order status reload",
        )
        raise InvalidTransitionError(
            current.scalar_one_or_none() or "UNKNOWN",
            requested,
            message=f"Order {order.id} changed concurrently; expected status {expected_status}",
            details={"stale": True},
        )

    # Keep the in-session instance in step with the row without re-dirtying it.
    for key, value in patch.items():
        set_committed_value(order, key, value)
    return order


async def settle_pending_payments(db: AsyncSession, order: Order, *, method: str) -> list[Payment]:
    """
    Mark every PENDING payment of the order PAID (newest first). Returns the rows changed.

    The update is guarded on status = PENDING; if another request settled any
    of them first, PreconditionFailedError is raised and nothing is kept.
    """
    res = await _bounded(
        db.execute(
            select(Payment)
            .where(Payment.order_id == order.id, Payment.status == PaymentStatus.PENDING.value)
            .order_by(Payment.id.desc())
        ),
        "payment load",
    )
    pending = list(res.scalars().all())
    if not pending:
        return []

    now = datetime.utcnow()
    ids = [p.id for p in pending]
    upd = await _bounded(
        db.execute(
            update(Payment)
            .where(Payment.id.in_(ids), Payment.status == PaymentStatus.PENDING.value)
            .values(status=PaymentStatus.PAID.value, method=method, paid_at=now)
            .execution_options(synchronize_session=False)
        ),
        "payment update",
    )
    if upd.rowcount != len(ids):
        raise PreconditionFailedError(
            "Payment was confirmed concurrently",
            details={"order_id": order.id},
        )

    for p in pending:
        set_committed_value(p, "status", PaymentStatus.PAID.value)
        set_committed_value(p, "method", method)
        set_committed_value(p, "paid_at", now)
    return pending
