"""
Real-time order updates over WebSocket.

Connect to /ws/orders?token=<access token>, then send:
    {"action": "join-order",  "orderId": 12}
    {"action": "leave-order", "orderId": 12}

Joined sockets receive {"event": "order.status.updated", "data": {...}} and
{"event": "message:new", "data": {...}} for that order. Customers may only
join their own orders; staff may join any.
"""
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import get_session_factory
from deps import STAFF_ROLES
from domain.constants import order_topic
from domain.errors import DomainError
from middleware.auth import user_id_from_token

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])

JOIN = "join-order"
LEAVE = "leave-order"


async def _send_error(websocket: WebSocket, code: str, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"code": code, "message": message}})


async def _can_watch(sessions: async_sessionmaker, user, order_id: int) -> None:
    """Raises NotFoundError unless the order exists and the user may see it."""
    from services import order_store

    # Short session per check; the socket itself holds no transaction open.
    async with sessions() as db:
        if user.role in STAFF_ROLES:
            await order_store.get_order(db, order_id)
        else:
            await order_store.get_owned_order(db, order_id, user.id)


@router.websocket("/ws/orders")
async def order_updates(
    websocket: WebSocket,
    token: str | None = Query(None),
    sessions: async_sessionmaker = Depends(get_session_factory),
):
    from services import order_store

    try:
        async with sessions() as db:
            user = await order_store.get_user(db, user_id_from_token(token))
    except DomainError as e:
        logger.info(f"Rejected WebSocket connection: {e.message}")
        await websocket.close(code=1008)
        return

    bus = websocket.app.state.event_bus
    await websocket.accept()
    logger.info(f"WebSocket connected for user {user.id}")

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await _send_error(websocket, "validation_failed", "Messages must be JSON")
                continue

            action = message.get("action") if isinstance(message, dict) else None
            try:
                order_id = int(message.get("orderId"))
            except (TypeError, ValueError, AttributeError):
                await _send_error(websocket, "validation_failed", "orderId must be an integer")
                continue

            topic = order_topic(order_id)
            if action == JOIN:
                try:
                    await _can_watch(sessions, user, order_id)
                except DomainError as e:
                    await _send_error(websocket, e.code, e.message)
                    continue
                await bus.subscribe(topic, websocket)
                await websocket.send_json({"event": "joined", "data": {"orderId": order_id}})
            elif action == LEAVE:
                await bus.unsubscribe(topic, websocket)
                await websocket.send_json({"event": "left", "data": {"orderId": order_id}})
            else:
                await _send_error(websocket, "validation_failed", f"Unknown action: {action}")
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user.id}")
    finally:
        await bus.unsubscribe_all(websocket)
