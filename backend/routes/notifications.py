"""
Notification endpoints — in-app inbox, unread badge, mark-as-read.

Customers see their own notifications; admins get the same views across all
users under /admin/notifications.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import pagination_params, require_admin, require_user, Pagination
from domain.responses import success_response, paginated_response
from domain.serializers import notification_payload

router = APIRouter(prefix="/notifications", tags=["notifications"])
admin_router = APIRouter(prefix="/admin/notifications", tags=["admin"])


async def _list(db: AsyncSession, user_id: int | None, page: Pagination):
    from services import notification_service

    rows, total = await notification_service.list_notifications(
        db, user_id=user_id, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        [notification_payload(n) for n in rows],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


async def _unread(db: AsyncSession, user_id: int | None):
    from services import notification_service

    count = await notification_service.unread_count(db, user_id=user_id)
    return success_response(data={"unread": count})


async def _mark_read(db: AsyncSession, notification_id: int, user_id: int | None):
    from services import notification_service

    notification = await notification_service.mark_read(
        db, notification_id=notification_id, user_id=user_id
    )
    await db.commit()
    return success_response(data={"notification": notification_payload(notification)})


@router.get("")
async def list_my_notifications(
    page: Pagination = Depends(pagination_params),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await _list(db, user.id, page)


@router.get("/unread-count")
async def my_unread_count(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await _unread(db, user.id)


@router.patch("/{notification_id}/read")
async def mark_my_notification_read(
    notification_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await _mark_read(db, notification_id, user.id)


@admin_router.get("")
async def list_all_notifications(
    page: Pagination = Depends(pagination_params),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _list(db, None, page)


@admin_router.get("/unread-count")
async def all_unread_count(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _unread(db, None)


@admin_router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _mark_read(db, notification_id, None)
