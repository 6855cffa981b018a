"""
Order chat endpoints.

Customers talk about their own orders under /orders/{id}/messages; staff use
/admin/orders/{id}/messages for any order. New messages are also pushed to
sockets that joined the order (see routes/realtime.py).
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import get_side_effects, require_staff, require_user
from domain.constants import MAX_MESSAGE_LENGTH
from domain.responses import success_response
from domain.serializers import message_payload
from services.side_effects import SideEffects

router = APIRouter(prefix="/orders", tags=["messages"])
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


class MessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)


async def _list(db: AsyncSession, order_id: int, user: User):
    from services import messages_service

    messages = await messages_service.list_messages(db, order_id=order_id, user=user)
    return success_response(
        data={"messages": [message_payload(m) for m in messages]},
        meta={"total": len(messages)},
    )


async def _post(db: AsyncSession, order_id: int, user: User, body: str, effects: SideEffects):
    from services import messages_service

    message = await messages_service.post_message(
        db, order_id=order_id, sender=user, body=body, effects=effects
    )
    return success_response(data={"message": message_payload(message)})


@router.get("/{order_id}/messages")
async def list_order_messages(
    order_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await _list(db, order_id, user)


@router.post("/{order_id}/messages", status_code=201)
async def send_order_message(
    order_id: int,
    request: MessageRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    effects: SideEffects = Depends(get_side_effects),
):
    return await _post(db, order_id, user, request.message, effects)


@admin_router.get("/{order_id}/messages")
async def admin_list_order_messages(
    order_id: int,
    staff: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await _list(db, order_id, staff)


@admin_router.post("/{order_id}/messages", status_code=201)
async def admin_send_order_message(
    order_id: int,
    request: MessageRequest,
    staff: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    effects: SideEffects = Depends(get_side_effects),
):
    return await _post(db, order_id, staff, request.message, effects)
