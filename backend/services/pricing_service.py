"""
Pricing engine — order totals from the service catalog plus fixed surcharges.

    total = Σ(qty × service.base_price) + pickup_fee [+ delivery_fee]

The pickup fee is fixed at creation. The delivery fee is added on top of the
stored total when the customer chooses courier delivery; totals are never
recomputed from scratch after creation.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from config import settings
from domain.enums import PickupMethod
from domain.errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class PricedItem:
    service_id: int
    qty: int
    unit_price: int
    subtotal: int
    service_name: str = ""
    unit: str = ""


@dataclass(frozen=True)
class Quote:
    items: list[PricedItem] = field(default_factory=list)
    services_total: int = 0
    pickup_fee: int = 0

    @property
    def total(self) -> int:
        return self.services_total + self.pickup_fee


def pickup_fee_for(pickup_method: PickupMethod | str) -> int:
    """Fixed surcharge for courier collection; SELF drop-off is free."""
    return settings.pickup_fee if PickupMethod(pickup_method) == PickupMethod.PICKUP else 0


def delivery_fee() -> int:
    return settings.delivery_fee


def build_quote(
    *,
    pickup_method: PickupMethod | str,
    items: list[dict],
    services: dict,
) -> Quote:
    """
    Price requested items against already-loaded catalog rows.

    items: [{service_id:int, qty:int}]
    services: {service_id: Service}
    """
    if not items:
        raise ValidationError("At least one item required", field="items")

    priced: list[PricedItem] = []
    services_total = 0
    for i in items:
        sid = int(i["service_id"])
        qty = int(i["qty"])
        if qty < 1:
            raise ValidationError("Quantity must be at least 1", field="qty")
        svc = services.get(sid)
        if svc is None or not svc.active:
            raise NotFoundError("Service", str(sid))

        subtotal = int(svc.base_price) * qty
        services_total += subtotal
        priced.append(
            PricedItem(
                service_id=sid,
                qty=qty,
                unit_price=int(svc.base_price),
                subtotal=subtotal,
                service_name=svc.name,
                unit=svc.unit,
            )
        )

    return Quote(items=priced, services_total=services_total, pickup_fee=pickup_fee_for(pickup_method))


def with_delivery_fee(price_total: int) -> int:
    """Additive bump of a stored total; earlier payments stay valid against their amounts."""
    return int(price_total) + delivery_fee()


def expected_total(order) -> int:
    """
    Recompute the price invariant from persisted rows.

    Uses the item snapshots, the stored pickup fee and the configured delivery
    fee when delivery was chosen.
    """
    items_total = sum(int(i.subtotal) for i in order.items)
    extra = delivery_fee() if order.delivery_required else 0
    return items_total + int(order.pickup_fee) + extra
