"""
Catalog service — laundry services and their unit prices.

Prices are snapshotted into order items, so editing a service never changes
existing orders. Services are soft-deleted (active=False), and only when no
unfinished order references them.
"""

from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Service, OrderItem, Order
from domain.enums import OrderStatus
from domain.errors import NotFoundError, PreconditionFailedError


async def list_services(db: AsyncSession, *, include_inactive: bool = False) -> list[Service]:
    q = select(Service).order_by(Service.name)
    if not include_inactive:
        q = q.where(Service.active == True)  # noqa: E712
    res = await db.execute(q)
    return res.scalars().all()


async def get_service(db: AsyncSession, *, service_id: int) -> Service:
    res = await db.execute(select(Service).where(Service.id == service_id))
    service = res.scalar_one_or_none()
    if not service:
        raise NotFoundError("Service", str(service_id))
    return service


async def create_service(
    db: AsyncSession,
    *,
    name: str,
    base_price: int,
    unit: str,
    description: str | None = None,
) -> Service:
    service = Service(
        name=name,
        base_price=base_price,
        unit=unit,
        description=description,
        active=True,
    )
    db.add(service)
    await db.flush()
    return service


async def update_service(
    db: AsyncSession,
    *,
    service_id: int,
    name: str | None = None,
    base_price: int | None = None,
    unit: str | None = None,
    description: str | None = None,
    active: bool | None = None,
) -> Service:
    """Update a service's fields. Only provided fields are updated."""
    service = await get_service(db, service_id=service_id)

    if name is not None:
        service.name = name
    if base_price is not None:
        service.base_price = base_price
    if unit is not None:
        service.unit = unit
    if description is not None:
        service.description = description
    if active is not None:
        service.active = active

    service.updated_at = datetime.utcnow()
    await db.flush()
    return service


async def soft_delete_service(db: AsyncSession, *, service_id: int) -> Service:
    """Deactivate a service unless an unfinished order still references it."""
    service = await get_service(db, service_id=service_id)

    res = await db.execute(
        select(func.count(OrderItem.id))
        .join(Order, OrderItem.order_id == Order.id)
        .where(
            OrderItem.service_id == service_id,
            Order.status != OrderStatus.SELESAI.value,
        )
    )
    open_refs = res.scalar_one()
    if open_refs:
        raise PreconditionFailedError(
            f"Cannot delete service '{service.name}': {open_refs} unfinished order item(s) reference it"
        )

    service.active = False
    service.updated_at = datetime.utcnow()
    await db.flush()
    return service
