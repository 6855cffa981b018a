"""
Customer order endpoints — catalog, order intake, history, delivery choice, payment.
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import get_side_effects, pagination_params, require_customer, Pagination
from domain.constants import MAX_ITEMS_PER_ORDER, MAX_NOTES_LENGTH
from domain.enums import DeliveryMethod, PaymentMethod, PickupMethod
from domain.responses import success_response, paginated_response
from domain.serializers import order_detail, order_summary, payment_payload, service_payload
from services.side_effects import SideEffects

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


class OrderItemRequest(BaseModel):
    service_id: int = Field(..., gt=0)
    qty: int = Field(..., ge=1, le=1000)


class OrderCreateRequest(BaseModel):
    pickup_method: PickupMethod
    items: list[OrderItemRequest] = Field(..., min_length=1, max_length=MAX_ITEMS_PER_ORDER)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)
    notification_email: str | None = Field(default=None, max_length=255)


class DeliveryChoiceRequest(BaseModel):
    delivery_method: DeliveryMethod


class PaymentConfirmRequest(BaseModel):
    method: PaymentMethod
    amount: Decimal = Field(..., ge=0)


@router.get("/services")
async def list_services(db: AsyncSession = Depends(get_db)):
    """Active laundry services for price calculation."""
    from services import catalog_service

    services = await catalog_service.list_services(db)
    return success_response(data={"services": [service_payload(s) for s in services]})


@router.post("", status_code=201)
async def create_order(
    request: OrderCreateRequest,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
    effects: SideEffects = Depends(get_side_effects),
):
    from services import lifecycle_service

    order = await lifecycle_service.create_order(
        db,
        user_id=user.id,
        pickup_method=request.pickup_method.value,
        items=[i.model_dump() for i in request.items],
        notes=request.notes,
        notification_email=request.notification_email,
        effects=effects,
    )
    return success_response(data={"order": order_detail(order)})


@router.get("/me")
async def list_my_orders(
    status: str | None = Query(None),
    page: Pagination = Depends(pagination_params),
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    from services import order_store

    rows, total = await order_store.list_user_orders(
        db, user_id=user.id, status=status, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        [order_summary(o, item_count=c) for o, c in rows],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    from services import order_store

    order = await order_store.get_owned_order(db, order_id, user.id)
    return success_response(data={"order": order_detail(order)})


@router.post("/{order_id}/delivery-method")
async def choose_delivery_method(
    order_id: int,
    request: DeliveryChoiceRequest,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
    effects: SideEffects = Depends(get_side_effects),
):
    from services import delivery_service

    order, fee = await delivery_service.choose_delivery_method(
        db,
        order_id=order_id,
        user_id=user.id,
        delivery_method=request.delivery_method.value,
        effects=effects,
    )
    return success_response(
        data={
            "status": order.status,
            "delivery_method": request.delivery_method.value,
            "additional_fee": fee,
            "price_total": order.price_total,
        }
    )


@router.post("/{order_id}/payment/confirm")
async def confirm_payment(
    order_id: int,
    request: PaymentConfirmRequest,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    from services import payment_service

    order, settled = await payment_service.confirm_payment(
        db,
        order_id=order_id,
        user_id=user.id,
        method=request.method.value,
        amount=request.amount,
    )
    return success_response(
        data={
            "order_id": order.id,
            "price_total": order.price_total,
            "payments": [payment_payload(p) for p in settled],
        }
    )
