"""
Tests for notification records: listing, unread counts, mark-as-read.
"""
import pytest

from domain.errors import NotFoundError
from services import notification_service


@pytest.mark.asyncio
async def test_order_creation_records_message(db_session, make_order, customer):
    order = await make_order()

    rows, total = await notification_service.list_notifications(db_session, user_id=customer.id)

    assert total == 1
    assert rows[0].order_id == order.id
    assert rows[0].type == "order_created"
    assert rows[0].channel == "EMAIL"
    assert "Rp 16.000" in rows[0].payload["message"]


@pytest.mark.asyncio
async def test_list_is_per_user_and_paginated(db_session, make_order, customer, other_customer):
    for _ in range(3):
        await make_order()
    await make_order(user=other_customer)

    rows, total = await notification_service.list_notifications(
        db_session, user_id=customer.id, limit=2, offset=0
    )
    assert total == 3
    assert len(rows) == 2
    assert rows[0].id > rows[1].id

    _, everyone = await notification_service.list_notifications(db_session, user_id=None)
    assert everyone == 4


@pytest.mark.asyncio
async def test_mark_read_sets_sent_at_once(db_session, make_order, customer):
    await make_order()
    rows, _ = await notification_service.list_notifications(db_session, user_id=customer.id)
    assert await notification_service.unread_count(db_session, user_id=customer.id) == 1

    first = await notification_service.mark_read(
        db_session, notification_id=rows[0].id, user_id=customer.id
    )
    read_at = first.sent_at
    assert read_at is not None

    again = await notification_service.mark_read(
        db_session, notification_id=rows[0].id, user_id=customer.id
    )
    assert again.sent_at == read_at
    assert await notification_service.unread_count(db_session, user_id=customer.id) == 0


@pytest.mark.asyncio
async def test_mark_read_other_users_notification(db_session, make_order, customer, other_customer):
    await make_order()
    rows, _ = await notification_service.list_notifications(db_session, user_id=customer.id)

    with pytest.raises(NotFoundError):
        await notification_service.mark_read(
            db_session, notification_id=rows[0].id, user_id=other_customer.id
        )

    # Admin path skips the ownership check.
    read = await notification_service.mark_read(db_session, notification_id=rows[0].id, user_id=None)
    assert read.sent_at is not None


@pytest.mark.asyncio
async def test_mark_read_missing(db_session, customer):
    with pytest.raises(NotFoundError):
        await notification_service.mark_read(db_session, notification_id=404, user_id=customer.id)
