"""
Tests for the service catalog (create, update, soft delete).
"""
import pytest

from domain.enums import OrderStatus
from domain.errors import NotFoundError, PreconditionFailedError
from services import catalog_service


@pytest.mark.asyncio
async def test_create_and_list(db_session):
    await catalog_service.create_service(db_session, name="Dry Clean", base_price=25000, unit="piece")
    await catalog_service.create_service(db_session, name="ALPHA Wash", base_price=15000, unit="kg")
    await db_session.commit()

    services = await catalog_service.list_services(db_session)
    assert [s.name for s in services] == ["ALPHA Wash", "Dry Clean"]


@pytest.mark.asyncio
async def test_update_only_given_fields(db_session, wash_service):
    updated = await catalog_service.update_service(db_session, service_id=wash_service.id, base_price=9000)
    await db_session.commit()

    assert updated.base_price == 9000
    assert updated.name == "Regular Wash"
    assert updated.unit == "kg"


@pytest.mark.asyncio
async def test_price_change_does_not_touch_existing_orders(db_session, make_order, wash_service):
    from services import order_store

    order = await make_order()
    await catalog_service.update_service(db_session, service_id=wash_service.id, base_price=12000)
    await db_session.commit()

    reloaded = await order_store.get_order(db_session, order.id)
    assert reloaded.items[0].unit_price == 8000
    assert reloaded.price_total == 16000


@pytest.mark.asyncio
async def test_update_missing_service(db_session):
    with pytest.raises(NotFoundError):
        await catalog_service.update_service(db_session, service_id=77, name="x")


@pytest.mark.asyncio
async def test_soft_delete_unused_service(db_session, wash_service):
    deleted = await catalog_service.soft_delete_service(db_session, service_id=wash_service.id)
    await db_session.commit()

    assert deleted.active is False
    assert await catalog_service.list_services(db_session) == []
    assert len(await catalog_service.list_services(db_session, include_inactive=True)) == 1


@pytest.mark.asyncio
async def test_soft_delete_refused_while_order_open(db_session, make_order, force_status, wash_service):
    order = await make_order()

    with pytest.raises(PreconditionFailedError):
        await catalog_service.soft_delete_service(db_session, service_id=wash_service.id)

    await force_status(order.id, OrderStatus.SELESAI.value)
    deleted = await catalog_service.soft_delete_service(db_session, service_id=wash_service.id)
    assert deleted.active is False


@pytest.mark.asyncio
async def test_inactive_service_cannot_be_ordered(db_session, make_order, wash_service):
    await catalog_service.update_service(db_session, service_id=wash_service.id, active=False)
    await db_session.commit()

    with pytest.raises(NotFoundError):
        await make_order()
