"""
Order chat — messages between a customer and staff about one order.

The conversation is visible to the order's owner and to staff (ADMIN or
COURIER). A new message is committed first and then published as
"message:new" on the order's topic, so sockets that joined the order see it
without polling.
"""
import logging
from datetime import timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Message, User
from domain.constants import EVENT_MESSAGE_NEW, MAX_MESSAGE_LENGTH
from domain.enums import UserRole
from domain.errors import ValidationError
from services import order_store
from services.side_effects import SideEffects

logger = logging.getLogger(__name__)


async def _check_access(db: AsyncSession, order_id: int, user: User) -> None:
    # Staff see every conversation; customers only their own orders'.
    if user.role in (UserRole.ADMIN.value, UserRole.COURIER.value):
        await order_store.get_order(db, order_id)
    else:
        await order_store.get_owned_order(db, order_id, user.id)


def message_event(message: Message) -> dict:
    """Payload of the message:new event."""
    sender = message.sender
    created = message.created_at.replace(tzinfo=timezone.utc) if message.created_at else None
    return {
        "id": message.id,
        "orderId": message.order_id,
        "senderId": message.sender_id,
        "senderName": sender.name if sender else None,
        "senderRole": sender.role if sender else None,
        "message": message.body,
        "timestamp": created.isoformat() if created else None,
    }


async def list_messages(db: AsyncSession, *, order_id: int, user: User) -> list[Message]:
    """Oldest first."""
    await _check_access(db, order_id, user)
    res = await db.execute(
        select(Message)
        .where(Message.order_id == order_id)
        .order_by(Message.created_at, Message.id)
    )
    return list(res.scalars().all())


async def post_message(
    db: AsyncSession,
    *,
    order_id: int,
    sender: User,
    body: str,
    effects: SideEffects,
) -> Message:
    body = (body or "").strip()
    if not body:
        raise ValidationError("Message must not be empty", field="message")
    if len(body) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message too long (max {MAX_MESSAGE_LENGTH} characters)", field="message")

    await _check_access(db, order_id, sender)

    async with order_store.unit_of_work(db):
        message = Message(order_id=order_id, sender=sender, body=body)
        db.add(message)
        await db.flush()

    logger.info(f"Message {message.id} on order {order_id} from user {sender.id} ({sender.role})")
    effects.publish(order_id=order_id, event=EVENT_MESSAGE_NEW, data=message_event(message))
    return message
