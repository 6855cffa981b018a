"""
Order status state machine.

GENERIC_TRANSITIONS is the adjacency table for the generic "update status"
operation. Two branches are deliberately absent from it and have their own
operations:

    DICUCI → MENUNGGU_KONFIRMASI_DELIVERY            (confirm_delivery)
    MENUNGGU_KONFIRMASI_DELIVERY → AMBIL_SENDIRI |
                                   PEMBAYARAN_DELIVERY (choose_delivery_method)
"""

from domain.enums import OrderStatus, PickupMethod
from domain.errors import InvalidTransitionError, PreconditionFailedError, ValidationError

S = OrderStatus

GENERIC_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    S.DIPESAN: frozenset({S.PESANAN_DIJEMPUT, S.DICUCI}),
    S.PESANAN_DIJEMPUT: frozenset({S.DIAMBIL}),
    S.DIAMBIL: frozenset({S.DICUCI}),
    S.DICUCI: frozenset(),
    S.MENUNGGU_KONFIRMASI_DELIVERY: frozenset(),
    S.MENUNGGU_PEMBAYARAN_DELIVERY: frozenset({S.DIKIRIM}),
    S.MENUNGGU_AMBIL_SENDIRI: frozenset({S.SELESAI}),
    S.DIKIRIM: frozenset({S.SELESAI}),
    S.SELESAI: frozenset(),  # terminal
}

# Edges reachable only through dedicated operations
CONFIRM_DELIVERY_FROM = S.DICUCI
CONFIRM_DELIVERY_TO = S.MENUNGGU_KONFIRMASI_DELIVERY
DELIVERY_CHOICE_FROM = S.MENUNGGU_KONFIRMASI_DELIVERY

TERMINAL_STATUSES = frozenset({S.SELESAI})


def parse_status(value: str) -> OrderStatus:
    """Turn a raw status string into an OrderStatus or raise ValidationError."""
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(
            f"Unknown order status '{value}'",
            field="status",
            details={"allowed": [s.value for s in OrderStatus]},
        )


def allowed_targets(current: OrderStatus | str) -> frozenset[OrderStatus]:
    return GENERIC_TRANSITIONS.get(OrderStatus(current), frozenset())


def is_valid_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    """True if target is reachable from current through update_status."""
    return OrderStatus(target) in allowed_targets(current)


def check_generic_transition(order, target: OrderStatus) -> None:
    """
    Enforce the guards of update_status against a loaded order.

    The edge itself is checked first: a target outside the adjacency table is
    always InvalidTransitionError. Pickup-method and approval guards only
    apply to edges that exist.
    """
    current = OrderStatus(order.status)

    if target not in allowed_targets(current):
        raise InvalidTransitionError(
            current.value,
            target.value,
            details={"allowed": sorted(t.value for t in allowed_targets(current))},
        )

    if target in (S.PESANAN_DIJEMPUT, S.DIAMBIL) and order.pickup_method != PickupMethod.PICKUP.value:
        raise PreconditionFailedError(
            f"{target.value} is only valid for orders with pickup_method PICKUP",
            details={"pickup_method": order.pickup_method},
        )

    if target == S.PESANAN_DIJEMPUT and not order.admin_approved:
        raise PreconditionFailedError(
            "Order must be approved by an admin before courier pickup",
            details={"admin_approved": False},
        )


def check_approval(order) -> None:
    """Approval is only for unapproved PICKUP orders that are still DIPESAN."""
    if order.pickup_method != PickupMethod.PICKUP.value:
        raise PreconditionFailedError("Only PICKUP orders need approval")
    if order.admin_approved:
        raise PreconditionFailedError("Order already approved")
    if order.status != S.DIPESAN.value:
        raise PreconditionFailedError(
            "Can only approve orders with status DIPESAN",
            details={"status": order.status},
        )
