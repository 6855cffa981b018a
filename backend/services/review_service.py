"""
Reviews — 1-5 star ratings customers leave on finished orders.

Only the order's owner may review it, and only once the order is SELESAI.
There is one review per (order, customer): submitting again replaces the
rating and comment.
"""
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Review
from domain.constants import MAX_REVIEW_COMMENT_LENGTH
from domain.enums import OrderStatus
from domain.errors import PreconditionFailedError, ValidationError
from services import order_store

logger = logging.getLogger(__name__)


def _check_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5", field="rating")
    return rating


async def _reload(db: AsyncSession, review_id: int) -> Review:
    res = await db.execute(
        select(Review).where(Review.id == review_id).execution_options(populate_existing=True)
    )
    return res.scalar_one()


async def submit_review(
    db: AsyncSession,
    *,
    order_id: int,
    user_id: int,
    rating: int,
    comment: str | None = None,
    service_id: int | None = None,
) -> tuple[Review, bool]:
    """
    Create or replace the caller's review of an order.

    Returns (review, created). The caller commits.
    """
    rating = _check_rating(rating)
    if comment is not None:
        comment = comment.strip() or None
    if comment and len(comment) > MAX_REVIEW_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment too long (max {MAX_REVIEW_COMMENT_LENGTH} characters)", field="comment"
        )

    order = await order_store.get_owned_order(db, order_id, user_id)
    if order.status != OrderStatus.SELESAI.value:
        raise PreconditionFailedError(
            "Only completed orders can be reviewed",
            details={"current_status": order.status},
        )
    if service_id is not None and service_id not in {i.service_id for i in order.items}:
        raise ValidationError("Service is not part of this order", field="service_id")

    res = await db.execute(
        select(Review).where(Review.order_id == order_id, Review.user_id == user_id)
    )
    review = res.scalar_one_or_none()
    created = review is None
    if created:
        review = Review(order_id=order_id, user_id=user_id)
        db.add(review)
    review.rating = rating
    review.comment = comment
    review.service_id = service_id
    await db.flush()

    logger.info(f"Review {'created' if created else 'updated'} for order {order_id}: {rating}/5")
    return await _reload(db, review.id), created


async def list_reviews(
    db: AsyncSession,
    *,
    user_id: int | None = None,
    order_id: int | None = None,
    service_id: int | None = None,
    min_rating: int | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Review], int]:
    """Newest first, with the total matching count."""
    filters = []
    if user_id is not None:
        filters.append(Review.user_id == user_id)
    if order_id is not None:
        filters.append(Review.order_id == order_id)
    if service_id is not None:
        filters.append(Review.service_id == service_id)
    if min_rating is not None:
        filters.append(Review.rating >= min_rating)

    res = await db.execute(
        select(Review)
        .where(*filters)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(limit)
        .offset(offset)
    )
    total = (await db.execute(select(func.count(Review.id)).where(*filters))).scalar_one()
    return list(res.scalars().all()), total


async def service_rating(db: AsyncSession, *, service_id: int) -> dict:
    """Average rating (one decimal) and review count for a catalog service."""
    res = await db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.service_id == service_id)
    )
    average, count = res.one()
    if not count:
        from services import catalog_service

        # 404 for unknown services, zeros for services nobody has rated yet
        await catalog_service.get_service(db, service_id=service_id)
    return {
        "service_id": service_id,
        "average_rating": round(float(average), 1) if count else 0.0,
        "total_reviews": count,
    }

