"""
Tests for reviews: completed-order gate, one review per order, ratings.
"""
import pytest

from domain.enums import OrderStatus
from domain.errors import NotFoundError, PreconditionFailedError, ValidationError
from services import review_service


@pytest.fixture
def finished_order(make_order, force_status):
    async def _finish(**kwargs):
        order = await make_order(**kwargs)
        await force_status(order.id, OrderStatus.SELESAI.value)
        return order

    return _finish


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [s.value for s in OrderStatus if s != OrderStatus.SELESAI])
async def test_unfinished_order_cannot_be_reviewed(db_session, make_order, force_status, customer, status):
    order = await make_order()
    await force_status(order.id, status)

    with pytest.raises(PreconditionFailedError) as exc_info:
        await review_service.submit_review(db_session, order_id=order.id, user_id=customer.id, rating=5)
    assert exc_info.value.details["current_status"] == status


@pytest.mark.asyncio
async def test_review_finished_order(db_session, finished_order, customer, wash_service):
    order = await finished_order()

    review, created = await review_service.submit_review(
        db_session,
        order_id=order.id,
        user_id=customer.id,
        rating=4,
        comment=" Clean and fast ",
        service_id=wash_service.id,
    )
    await db_session.commit()

    assert created is True
    assert review.rating == 4
    assert review.comment == "Clean and fast"
    assert review.service.name == "Regular Wash"
    assert review.user.name == "Budi"


@pytest.mark.asyncio
async def test_resubmitting_replaces_review(db_session, finished_order, customer):
    order = await finished_order()
    first, _ = await review_service.submit_review(
        db_session, order_id=order.id, user_id=customer.id, rating=2, comment="Late"
    )
    second, created = await review_service.submit_review(
        db_session, order_id=order.id, user_id=customer.id, rating=5
    )
    await db_session.commit()

    assert created is False
    assert second.id == first.id
    assert second.rating == 5
    assert second.comment is None
    _, total = await review_service.list_reviews(db_session, order_id=order.id)
    assert total == 1


@pytest.mark.asyncio
async def test_only_owner_can_review(db_session, finished_order, other_customer):
    order = await finished_order()

    with pytest.raises(NotFoundError):
        await review_service.submit_review(db_session, order_id=order.id, user_id=other_customer.id, rating=5)


@pytest.mark.asyncio
async def test_service_must_belong_to_order(db_session, finished_order, customer, express_service):
    order = await finished_order()

    with pytest.raises(ValidationError):
        await review_service.submit_review(
            db_session, order_id=order.id, user_id=customer.id, rating=5, service_id=express_service.id
        )


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6, True, "5"])
async def test_rating_range(db_session, finished_order, customer, rating):
    order = await finished_order()

    with pytest.raises(ValidationError):
        await review_service.submit_review(db_session, order_id=order.id, user_id=customer.id, rating=rating)


@pytest.mark.asyncio
async def test_service_rating_average(db_session, finished_order, customer, other_customer, wash_service, express_service):
    first = await finished_order()
    second = await finished_order(user=other_customer)
    await review_service.submit_review(
        db_session, order_id=first.id, user_id=customer.id, rating=4, service_id=wash_service.id
    )
    await review_service.submit_review(
        db_session, order_id=second.id, user_id=other_customer.id, rating=5, service_id=wash_service.id
    )
    await db_session.commit()

    rating = await review_service.service_rating(db_session, service_id=wash_service.id)
    assert rating == {"service_id": wash_service.id, "average_rating": 4.5, "total_reviews": 2}

    unrated = await review_service.service_rating(db_session, service_id=express_service.id)
    assert unrated["total_reviews"] == 0
    assert unrated["average_rating"] == 0.0

    with pytest.raises(NotFoundError):
        await review_service.service_rating(db_session, service_id=999)

    high, total = await review_service.list_reviews(db_session, min_rating=5)
    assert total == 1
    assert high[0].order_id == second.id
