"""
Notification records — creation inside order transactions, listing, read state.

A Notification row is the in-app copy of every lifecycle message. It is
written in the same transaction as the state change it describes; sent_at is
null until the recipient marks it read.
"""
import logging
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Notification, Order
from domain.enums import NotificationChannel, NotificationType
from domain.errors import NotFoundError
from services import order_store

logger = logging.getLogger(__name__)


def _rupiah(amount) -> str:
    return f"Rp {int(amount):,}".replace(",", ".")


def build_message(ntype: NotificationType, order: Order, **extra) -> str:
    """Human-readable message stored in the payload."""
    if ntype == NotificationType.ORDER_CREATED:
        return f"Order #{order.id} received. Total {_rupiah(order.price_total)}."
    if ntype == NotificationType.ORDER_APPROVED:
        return f"Order #{order.id} has been approved and will be collected by a courier soon."
    if ntype == NotificationType.DELIVERY_CONFIRMATION_REQUIRED:
        return f"Order #{order.id} is washed. Please choose self pickup or delivery."
    if ntype == NotificationType.DELIVERY_METHOD_SELECTED:
        if extra.get("delivery_method") == "DELIVERY":
            return (
                f"Please pay the delivery fee ({_rupiah(extra.get('delivery_fee', 0))}) "
                "so your order can be sent."
            )
        return f"Order #{order.id} is ready to be picked up at our store."
    return f"Order status changed to {extra.get('status', order.status)}"


async def record(
    db: AsyncSession,
    order: Order,
    ntype: NotificationType,
    *,
    channel: NotificationChannel = NotificationChannel.EMAIL,
    **payload,
) -> Notification:
    """Insert a notification for the order's owner (part of the caller's transaction)."""
    body = {k: v for k, v in payload.items() if v is not None}
    body["message"] = build_message(ntype, order, **payload)
    return await order_store.insert_notification(
        db,
        order_id=order.id,
        user_id=order.user_id,
        type=ntype.value,
        payload=body,
        channel=channel.value,
    )


async def list_notifications(
    db: AsyncSession,
    *,
    user_id: int | None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Notification], int]:
    """Newest first. user_id=None lists every user's notifications (admin)."""
    filters = [] if user_id is None else [Notification.user_id == user_id]
    res = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset(offset)
    )
    total = (await db.execute(select(func.count(Notification.id)).where(*filters))).scalar_one()
    return list(res.scalars().all()), total


async def unread_count(db: AsyncSession, *, user_id: int | None) -> int:
    filters = [Notification.sent_at.is_(None)]
    if user_id is not None:
        filters.append(Notification.user_id == user_id)
    res = await db.execute(select(func.count(Notification.id)).where(*filters))
    return res.scalar_one()


async def mark_read(db: AsyncSession, *, notification_id: int, user_id: int | None) -> Notification:
    """
    Set sent_at (first read wins; later calls keep the original timestamp).

    user_id=None skips the ownership check (admin).
    """
    res = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = res.scalar_one_or_none()
    if notification is None or (user_id is not None and notification.user_id != user_id):
        raise NotFoundError("Notification", str(notification_id))

    if notification.sent_at is None:
        notification.sent_at = datetime.utcnow()
        await db.flush()
    return notification
