"""
Unit tests for the pricing engine.
"""
from types import SimpleNamespace

import pytest

from config import settings
from domain.errors import NotFoundError, ValidationError
from services import pricing_service


def _svc(id, price, active=True, name="Svc", unit="kg"):
    return SimpleNamespace(id=id, base_price=price, active=active, name=name, unit=unit)


@pytest.mark.unit
def test_self_order_has_no_pickup_fee():
    quote = pricing_service.build_quote(
        pickup_method="SELF",
        items=[{"service_id": 1, "qty": 2}],
        services={1: _svc(1, 8000)},
    )
    assert quote.services_total == 16000
    assert quote.pickup_fee == 0
    assert quote.total == 16000


@pytest.mark.unit
def test_pickup_order_adds_pickup_fee():
    quote = pricing_service.build_quote(
        pickup_method="PICKUP",
        items=[{"service_id": 1, "qty": 1}],
        services={1: _svc(1, 20000)},
    )
    assert quote.pickup_fee == settings.pickup_fee
    assert quote.total == 20000 + settings.pickup_fee


@pytest.mark.unit
def test_multiple_items_snapshot_unit_price():
    services = {1: _svc(1, 15000, name="Regular"), 2: _svc(2, 25000, name="Dry Clean", unit="piece")}
    quote = pricing_service.build_quote(
        pickup_method="SELF",
        items=[{"service_id": 1, "qty": 3}, {"service_id": 2, "qty": 2}],
        services=services,
    )
    assert [i.subtotal for i in quote.items] == [45000, 50000]
    assert quote.items[1].unit_price == 25000
    assert quote.items[1].unit == "piece"
    assert quote.total == 95000


@pytest.mark.unit
def test_unknown_service_names_the_id():
    with pytest.raises(NotFoundError) as exc_info:
        pricing_service.build_quote(
            pickup_method="SELF",
            items=[{"service_id": 42, "qty": 1}],
            services={},
        )
    assert "42" in exc_info.value.message


@pytest.mark.unit
def test_inactive_service_is_not_found():
    with pytest.raises(NotFoundError):
        pricing_service.build_quote(
            pickup_method="SELF",
            items=[{"service_id": 1, "qty": 1}],
            services={1: _svc(1, 8000, active=False)},
        )


@pytest.mark.unit
@pytest.mark.parametrize("qty", [0, -1])
def test_non_positive_quantity_rejected(qty):
    with pytest.raises(ValidationError):
        pricing_service.build_quote(
            pickup_method="SELF",
            items=[{"service_id": 1, "qty": qty}],
            services={1: _svc(1, 8000)},
        )


@pytest.mark.unit
def test_empty_items_rejected():
    with pytest.raises(ValidationError):
        pricing_service.build_quote(pickup_method="SELF", items=[], services={})


@pytest.mark.unit
def test_delivery_fee_is_additive():
    assert pricing_service.with_delivery_fee(25000) == 25000 + settings.delivery_fee


@pytest.mark.unit
def test_expected_total_counts_delivery_only_when_chosen():
    order = SimpleNamespace(
        items=[SimpleNamespace(subtotal=16000)],
        pickup_fee=5000,
        delivery_required=None,
    )
    assert pricing_service.expected_total(order) == 21000

    order.delivery_required = False
    assert pricing_service.expected_total(order) == 21000

    order.delivery_required = True
    assert pricing_service.expected_total(order) == 21000 + settings.delivery_fee
