"""
Admin endpoints — order dashboard, approval, status changes, service catalog.

Approval and delivery confirmation require ADMIN. Generic status changes are
open to staff (ADMIN or COURIER) so couriers can record pickups and drop-offs.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import get_side_effects, pagination_params, require_admin, require_staff, Pagination
from domain.constants import MAX_NOTES_LENGTH
from domain.responses import success_response, paginated_response
from domain.serializers import order_detail, order_summary, service_payload
from services.side_effects import SideEffects

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1, max_length=64)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)
    estimated_arrival: datetime | None = None


class ConfirmDeliveryRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)


class ServiceCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    base_price: int = Field(..., ge=0)
    unit: str = Field(..., min_length=1, max_length=20)
    description: str | None = Field(default=None, max_length=1000)


class ServiceUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    base_price: int | None = Field(default=None, ge=0)
    unit: str | None = Field(default=None, min_length=1, max_length=20)
    description: str | None = Field(default=None, max_length=1000)
    active: bool | None = None


# ── Orders ──────────────────────────────────────────────────────────

@router.get("/orders")
async def list_orders(
    status: str | None = Query(None),
    page: Pagination = Depends(pagination_params),
    staff: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Every customer's orders, newest first, optionally filtered by status."""
    from services import order_store

    rows, total = await order_store.list_user_orders(
        db, user_id=None, status=status, limit=page["limit"], offset=page["offset"]
    )
    orders = []
    for order, count in rows:
        data = order_summary(order, item_count=count)
        data["customer_name"] = order.user.name if order.user else None
        orders.append(data)
    return paginated_response(orders, limit=page["limit"], offset=page["offset"], total=total)


@router.get("/orders/{order_id}")
async def get_order(
    order_id: int,
    staff: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    from services import order_store

    order = await order_store.get_order(db, order_id)
    return success_response(data={"order": order_detail(order)})


@router.post("/orders/{order_id}/approve")
async def approve_order(
    order_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    effects: SideEffects = Depends(get_side_effects),
):
    from services import lifecycle_service

    order = await lifecycle_service.approve_order(db, order_id=order_id, effects=effects)
    logger.info(f"Admin {admin.id} approved order {order.id}")
    return success_response(data={"order": order_summary(order)})


@router.post("/orders/{order_id}/confirm-delivery")
async def confirm_delivery(
    order_id: int,
    request: ConfirmDeliveryRequest | None = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    effects: SideEffects = Depends(get_side_effects),
):
    from services import lifecycle_service

    order = await lifecycle_service.confirm_delivery(
        db,
        order_id=order_id,
        notes=request.notes if request else None,
        effects=effects,
    )
    return success_response(data={"order": order_summary(order)})


@router.patch("/orders/{order_id}/status")
async def update_status(
    order_id: int,
    request: StatusUpdateRequest,
    staff: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    effects: SideEffects = Depends(get_side_effects),
):
    from services import lifecycle_service

    order = await lifecycle_service.update_status(
        db,
        order_id=order_id,
        status=request.status,
        notes=request.notes,
        estimated_arrival=request.estimated_arrival,
        effects=effects,
    )
    logger.info(f"{staff.role} {staff.id} moved order {order.id} to {order.status}")
    data = order_summary(order)
    data["estimated_arrival"] = (
        order.estimated_arrival.isoformat() if order.estimated_arrival else None
    )
    return success_response(data={"order": data})


# ── Service catalog ─────────────────────────────────────────────────

@router.get("/services")
async def list_services(
    include_inactive: bool = Query(True),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import catalog_service

    services = await catalog_service.list_services(db, include_inactive=include_inactive)
    return success_response(
        data={"services": [service_payload(s) for s in services]},
        meta={"total": len(services)},
    )


@router.post("/services", status_code=201)
async def create_service(
    request: ServiceCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import catalog_service

    service = await catalog_service.create_service(
        db,
        name=request.name,
        base_price=request.base_price,
        unit=request.unit,
        description=request.description,
    )
    await db.commit()
    await db.refresh(service)
    return success_response(data={"service": service_payload(service)})


@router.patch("/services/{service_id}")
async def update_service(
    service_id: int,
    request: ServiceUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import catalog_service

    service = await catalog_service.update_service(
        db,
        service_id=service_id,
        name=request.name,
        base_price=request.base_price,
        unit=request.unit,
        description=request.description,
        active=request.active,
    )
    await db.commit()
    await db.refresh(service)
    return success_response(data={"service": service_payload(service)})


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import catalog_service

    service = await catalog_service.soft_delete_service(db, service_id=service_id)
    await db.commit()
    return success_response(
        data={
            "id": service.id,
            "message": f"Service '{service.name}' deactivated (active=False)",
        }
    )
