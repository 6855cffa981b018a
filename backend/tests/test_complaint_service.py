"""
Tests for complaints: submission, ownership, admin status updates.
"""
import pytest

from domain.errors import NotFoundError, ValidationError
from services import complaint_service


async def _submit(db, user, order_id=None, subject="Missing sock", message="One sock never came back."):
    complaint = await complaint_service.submit_complaint(
        db, user_id=user.id, subject=subject, message=message, order_id=order_id
    )
    await db.commit()
    return complaint


@pytest.mark.asyncio
async def test_submit_without_order(db_session, customer):
    complaint = await _submit(db_session, customer)

    assert complaint.status == "PENDING"
    assert complaint.order_id is None
    assert complaint.admin_response is None
    assert complaint.user.name == "Budi"


@pytest.mark.asyncio
async def test_submit_about_own_order(db_session, make_order, customer):
    order = await make_order()

    complaint = await _submit(db_session, customer, order_id=order.id)
    assert complaint.order_id == order.id


@pytest.mark.asyncio
async def test_cannot_complain_about_someone_elses_order(db_session, make_order, other_customer):
    order = await make_order()

    with pytest.raises(NotFoundError):
        await _submit(db_session, other_customer, order_id=order.id)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "subject,message",
    [("Bad", "One sock never came back."), ("Missing sock", "short"), ("Missing sock", "x" * 2001)],
)
async def test_length_limits(db_session, customer, subject, message):
    with pytest.raises(ValidationError):
        await _submit(db_session, customer, subject=subject, message=message)


@pytest.mark.asyncio
async def test_detail_is_private(db_session, customer, other_customer):
    complaint = await _submit(db_session, customer)

    mine = await complaint_service.get_complaint(db_session, complaint_id=complaint.id, user_id=customer.id)
    assert mine.id == complaint.id
    with pytest.raises(NotFoundError):
        await complaint_service.get_complaint(db_session, complaint_id=complaint.id, user_id=other_customer.id)


@pytest.mark.asyncio
async def test_admin_status_update(db_session, customer):
    complaint = await _submit(db_session, customer)

    updated = await complaint_service.update_status(
        db_session, complaint_id=complaint.id, status="RESOLVED", admin_response=" Refunded one item "
    )
    await db_session.commit()

    assert updated.status == "RESOLVED"
    assert updated.admin_response == "Refunded one item"

    rows, total = await complaint_service.list_complaints(db_session, user_id=None, status="RESOLVED")
    assert total == 1
    assert rows[0].id == complaint.id
    _, pending = await complaint_service.list_complaints(db_session, user_id=customer.id, status="PENDING")
    assert pending == 0


@pytest.mark.asyncio
async def test_invalid_status(db_session, customer):
    complaint = await _submit(db_session, customer)

    with pytest.raises(ValidationError) as exc_info:
        await complaint_service.update_status(db_session, complaint_id=complaint.id, status="DONE")
    assert "CLOSED" in exc_info.value.details["allowed"]

    with pytest.raises(ValidationError):
        await complaint_service.list_complaints(db_session, user_id=None, status="DONE")


@pytest.mark.asyncio
async def test_update_missing_complaint(db_session):
    with pytest.raises(NotFoundError):
        await complaint_service.update_status(db_session, complaint_id=5, status="CLOSED")
