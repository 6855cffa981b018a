"""
Complaint endpoints — customers file and track complaints; admins answer them.
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import pagination_params, require_admin, require_customer, Pagination
from domain.constants import MAX_COMPLAINT_LENGTH
from domain.enums import ComplaintStatus
from domain.responses import success_response, paginated_response
from domain.serializers import complaint_payload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/complaints", tags=["complaints"])
admin_router = APIRouter(prefix="/admin/complaints", tags=["admin"])


class ComplaintRequest(BaseModel):
    subject: str = Field(..., min_length=5, max_length=255)
    message: str = Field(..., min_length=10, max_length=MAX_COMPLAINT_LENGTH)
    order_id: int | None = Field(default=None, gt=0)


class ComplaintStatusRequest(BaseModel):
    status: ComplaintStatus
    admin_response: str | None = Field(default=None, max_length=MAX_COMPLAINT_LENGTH)


async def _page(db: AsyncSession, page: Pagination, user_id: int | None, status: str | None):
    from services import complaint_service

    complaints, total = await complaint_service.list_complaints(
        db, user_id=user_id, status=status, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        [complaint_payload(c) for c in complaints],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("", status_code=201)
async def submit_complaint(
    request: ComplaintRequest,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    from services import complaint_service

    complaint = await complaint_service.submit_complaint(
        db,
        user_id=user.id,
        subject=request.subject,
        message=request.message,
        order_id=request.order_id,
    )
    await db.commit()
    return success_response(data={"complaint": complaint_payload(complaint)})


@router.get("/me")
async def list_my_complaints(
    status: str | None = Query(None),
    page: Pagination = Depends(pagination_params),
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    return await _page(db, page, user.id, status)


@router.get("/{complaint_id}")
async def get_my_complaint(
    complaint_id: int,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    from services import complaint_service

    complaint = await complaint_service.get_complaint(db, complaint_id=complaint_id, user_id=user.id)
    return success_response(data={"complaint": complaint_payload(complaint)})


@admin_router.get("")
async def list_all_complaints(
    status: str | None = Query(None),
    page: Pagination = Depends(pagination_params),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _page(db, page, None, status)


@admin_router.patch("/{complaint_id}/status")
async def update_complaint_status(
    complaint_id: int,
    request: ComplaintStatusRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import complaint_service

    complaint = await complaint_service.update_status(
        db,
        complaint_id=complaint_id,
        status=request.status.value,
        admin_response=request.admin_response,
    )
    await db.commit()
    logger.info(f"Admin {admin.id} set complaint {complaint_id} to {complaint.status}")
    return success_response(data={"complaint": complaint_payload(complaint)})
