"""
Review endpoints — customers rate completed orders; ratings are public.
"""

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import pagination_params, require_admin, require_customer, Pagination
from domain.constants import MAX_REVIEW_COMMENT_LENGTH
from domain.responses import success_response, paginated_response
from domain.serializers import review_payload

router = APIRouter(prefix="/reviews", tags=["reviews"])
admin_router = APIRouter(prefix="/admin/reviews", tags=["admin"])


class ReviewRequest(BaseModel):
    order_id: int = Field(..., gt=0)
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=MAX_REVIEW_COMMENT_LENGTH)
    service_id: int | None = Field(default=None, gt=0)


async def _page(db: AsyncSession, page: Pagination, **filters):
    from services import review_service

    reviews, total = await review_service.list_reviews(
        db, limit=page["limit"], offset=page["offset"], **filters
    )
    return paginated_response(
        [review_payload(r) for r in reviews],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("", status_code=201)
async def submit_review(
    request: ReviewRequest,
    response: Response,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """201 for a new review, 200 when it replaces the customer's earlier one."""
    from services import review_service

    review, created = await review_service.submit_review(
        db,
        order_id=request.order_id,
        user_id=user.id,
        rating=request.rating,
        comment=request.comment,
        service_id=request.service_id,
    )
    await db.commit()
    if not created:
        response.status_code = 200
    return success_response(data={"review": review_payload(review), "created": created})


@router.get("/me")
async def list_my_reviews(
    page: Pagination = Depends(pagination_params),
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    return await _page(db, page, user_id=user.id)


@router.get("/order/{order_id}")
async def list_order_reviews(
    order_id: int,
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    return await _page(db, page, order_id=order_id)


@router.get("/service/{service_id}")
async def list_service_reviews(
    service_id: int,
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    from services import review_service

    rating = await review_service.service_rating(db, service_id=service_id)
    body = await _page(db, page, service_id=service_id)
    body["meta"]["rating"] = rating
    return body


@admin_router.get("")
async def list_all_reviews(
    service_id: int | None = Query(None),
    min_rating: int | None = Query(None, ge=1, le=5),
    page: Pagination = Depends(pagination_params),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _page(db, page, service_id=service_id, min_rating=min_rating)
