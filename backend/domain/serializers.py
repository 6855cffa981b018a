"""
ORM → JSON payload helpers shared by the customer and admin routers.
"""
from datetime import datetime


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def payment_payload(p) -> dict:
    return {
        "id": p.id,
        "method": p.method,
        "amount": p.amount,
        "status": p.status,
        "paid_at": _iso(p.paid_at),
        "created_at": _iso(p.created_at),
    }


def item_payload(i) -> dict:
    return {
        "id": i.id,
        "service_id": i.service_id,
        "service_name": i.service.name if i.service else None,
        "unit": i.service.unit if i.service else None,
        "qty": i.qty,
        "unit_price": i.unit_price,
        "subtotal": i.subtotal,
    }


def order_summary(order, item_count: int | None = None) -> dict:
    data = {
        "id": order.id,
        "user_id": order.user_id,
        "pickup_method": order.pickup_method,
        "status": order.status,
        "price_total": order.price_total,
        "pickup_fee": order.pickup_fee,
        "admin_approved": order.admin_approved,
        "delivery_required": order.delivery_required,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }
    if item_count is not None:
        data["item_count"] = item_count
    return data


def order_detail(order) -> dict:
    """Full order with owner contact, items and payments (newest first)."""
    data = order_summary(order)
    user = order.user
    data.update(
        {
            "notes": order.notes,
            "notification_email": order.notification_email,
            "estimated_arrival": _iso(order.estimated_arrival),
            "customer_name": user.name if user else None,
            "phone": user.phone if user else None,
            "address": user.address if user else None,
            "items": [item_payload(i) for i in order.items],
            "payments": [
                payment_payload(p)
                for p in sorted(order.payments, key=lambda p: p.id, reverse=True)
            ],
        }
    )
    return data


def notification_payload(n) -> dict:
    return {
        "id": n.id,
        "order_id": n.order_id,
        "user_id": n.user_id,
        "type": n.type,
        "payload": n.payload,
        "channel": n.channel,
        "sent_at": _iso(n.sent_at),
        "created_at": _iso(n.created_at),
    }


def service_payload(s) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "base_price": s.base_price,
        "unit": s.unit,
        "description": s.description,
        "active": s.active,
    }


def message_payload(m) -> dict:
    sender = m.sender
    return {
        "id": m.id,
        "order_id": m.order_id,
        "body": m.body,
        "sender_id": m.sender_id,
        "sender_name": sender.name if sender else None,
        "sender_role": sender.role if sender else None,
        "created_at": _iso(m.created_at),
    }


def review_payload(r) -> dict:
    return {
        "id": r.id,
        "order_id": r.order_id,
        "rating": r.rating,
        "comment": r.comment,
        "service_id": r.service_id,
        "service_name": r.service.name if r.service else None,
        "customer_name": r.user.name if r.user else None,
        "created_at": _iso(r.created_at),
        "updated_at": _iso(r.updated_at),
    }


def complaint_payload(c) -> dict:
    return {
        "id": c.id,
        "order_id": c.order_id,
        "user_id": c.user_id,
        "customer_name": c.user.name if c.user else None,
        "subject": c.subject,
        "message": c.message,
        "status": c.status,
        "admin_response": c.admin_response,
        "created_at": _iso(c.created_at),
        "updated_at": _iso(c.updated_at),
    }
