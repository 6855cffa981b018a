"""
Complaints — customer reports, optionally tied to one of their orders.

New complaints start PENDING. Admins move them between PENDING,
IN_PROGRESS, RESOLVED and CLOSED and may attach a response the customer
sees on the complaint detail.
"""
import logging
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Complaint
from domain.constants import MAX_COMPLAINT_LENGTH
from domain.enums import ComplaintStatus
from domain.errors import NotFoundError, ValidationError
from services import order_store

logger = logging.getLogger(__name__)


def _parse_status(value) -> ComplaintStatus:
    try:
        return ComplaintStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid complaint status '{value}'",
            field="status",
            details={"allowed": [s.value for s in ComplaintStatus]},
        )


def _clean(text: str | None, field: str, min_length: int, max_length: int) -> str:
    text = (text or "").strip()
    if not min_length <= len(text) <= max_length:
        raise ValidationError(f"Must be {min_length}-{max_length} characters", field=field)
    return text


async def submit_complaint(
    db: AsyncSession,
    *,
    user_id: int,
    subject: str,
    message: str,
    order_id: int | None = None,
) -> Complaint:
    """The caller commits. Complaints about someone else's order are reported as a missing order."""
    subject = _clean(subject, "subject", 5, 255)
    message = _clean(message, "message", 10, MAX_COMPLAINT_LENGTH)
    if order_id is not None:
        await order_store.get_owned_order(db, order_id, user_id)

    complaint = Complaint(
        user_id=user_id,
        order_id=order_id,
        subject=subject,
        message=message,
        status=ComplaintStatus.PENDING.value,
    )
    db.add(complaint)
    await db.flush()
    logger.info(f"Complaint {complaint.id} submitted by user {user_id}")
    return await get_complaint(db, complaint_id=complaint.id)


async def get_complaint(db: AsyncSession, *, complaint_id: int, user_id: int | None = None) -> Complaint:
    """user_id=None skips the ownership check (admin)."""
    res = await db.execute(
        select(Complaint)
        .where(Complaint.id == complaint_id)
        .execution_options(populate_existing=True)
    )
    complaint = res.scalar_one_or_none()
    if complaint is None or (user_id is not None and complaint.user_id != user_id):
        raise NotFoundError("Complaint", str(complaint_id))
    return complaint


async def list_complaints(
    db: AsyncSession,
    *,
    user_id: int | None,
    status: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Complaint], int]:
    """Newest first. user_id=None lists everyone's complaints (admin)."""
    filters = []
    if user_id is not None:
        filters.append(Complaint.user_id == user_id)
    if status:
        filters.append(Complaint.status == _parse_status(status).value)

    res = await db.execute(
        select(Complaint)
        .where(*filters)
        .order_by(Complaint.created_at.desc(), Complaint.id.desc())
        .limit(limit)
        .offset(offset)
    )
    total = (await db.execute(select(func.count(Complaint.id)).where(*filters))).scalar_one()
    return list(res.scalars().all()), total


async def update_status(
    db: AsyncSession,
    *,
    complaint_id: int,
    status: str,
    admin_response: str | None = None,
) -> Complaint:
    """Set status and replace the admin response (None clears it). The caller commits."""
    new_status = _parse_status(status)
    if admin_response is not None:
        admin_response = admin_response.strip() or None
    if admin_response and len(admin_response) > MAX_COMPLAINT_LENGTH:
        raise ValidationError(
            f"Response too long (max {MAX_COMPLAINT_LENGTH} characters)", field="admin_response"
        )

    complaint = await get_complaint(db, complaint_id=complaint_id)
    previous = complaint.status
    complaint.status = new_status.value
    complaint.admin_response = admin_response
    complaint.updated_at = datetime.utcnow()
    await db.flush()

    logger.info(f"Complaint {complaint_id}: {previous} → {new_status.value}")
    return complaint
