"""
SQLAlchemy ORM models for the Laundry Order Platform.

Tables:
    users          — customers, admins and couriers
    services       — laundry service catalog (price per unit)
    orders         — one laundry order, owns the status state machine
    order_items    — per-service lines with a unit price snapshot
    payments       — payment records (initial order + delivery fee)
    notifications  — per-user notification records (sent_at null = unread)
    messages       — per-order chat between customer and staff
    reviews        — 1-5 star rating of a finished order
    complaints     — customer complaints with an admin status and response

Money columns are integer rupiah (BigInteger) so equality checks are exact.
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, BigInteger, String, Boolean, DateTime, Text, ForeignKey, JSON,
    Index, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


class User(Base):
    """Platform accounts. Credentials live with the auth provider, not here."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(120), nullable=False)
    phone = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)
    role = Column(String(20), nullable=False, default="CUSTOMER")  # CUSTOMER | ADMIN | COURIER
    created_at = Column(DateTime, default=datetime.utcnow)

    orders = relationship("Order", back_populates="user", lazy="select")


class Service(Base):
    """Catalog entry. Soft-deleted (active=False) instead of removed."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    base_price = Column(BigInteger, nullable=False)  # rupiah per unit
    unit = Column(String(20), nullable=False, default="kg")  # "kg" | "piece"
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_services_base_price_nonneg"),
    )


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    pickup_method = Column(String(10), nullable=False)  # PICKUP | SELF
    status = Column(String(40), nullable=False, default="DIPESAN", index=True)
    price_total = Column(BigInteger, nullable=False, default=0)
    pickup_fee = Column(BigInteger, nullable=False, default=0)
    delivery_required = Column(Boolean, nullable=True)  # null = customer has not chosen yet
    admin_approved = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    notification_email = Column(String(255), nullable=True)
    estimated_arrival = Column(DateTime, nullable=True)  # set when courier is dispatched
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", lazy="select", order_by="OrderItem.id")
    payments = relationship("Payment", back_populates="order", lazy="select", order_by="Payment.id")

    __table_args__ = (
        CheckConstraint("price_total >= 0", name="ck_orders_price_total_nonneg"),
        # Customer order history: filter by user_id, order by created_at DESC
        Index("ix_orders_user_created", "user_id", "created_at"),
        # Admin/courier dashboards: filter by status
        Index("ix_orders_status_approved", "status", "admin_approved"),
    )


class OrderItem(Base):
    """Immutable after creation; unit_price is the catalog price at order time."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    qty = Column(Integer, nullable=False, default=1)
    unit_price = Column(BigInteger, nullable=False)
    subtotal = Column(BigInteger, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="items")
    service = relationship("Service", lazy="select")

    __table_args__ = (
        CheckConstraint("qty >= 1", name="ck_order_items_qty_positive"),
    )


class Payment(Base):
    """
    Payment records for an order.

    An order usually has one (created with the order) and gains a second,
    separate record when the customer chooses courier delivery.
    PENDING → PAID is terminal.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    method = Column(String(20), nullable=False, default="QRIS")  # QRIS | TRANSFER
    amount = Column(BigInteger, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")  # PENDING | PAID
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="payments")

    __table_args__ = (
        Index("ix_payments_order_status", "order_id", "status"),
    )


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    channel = Column(String(20), nullable=False, default="EMAIL")  # EMAIL | IN_APP
    sent_at = Column(DateTime, nullable=True)  # null = unread
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        # Unread counters: filter by user_id where sent_at IS NULL
        Index("ix_notifications_user_sent", "user_id", "sent_at"),
    )


class Message(Base):
    """Per-order chat between the customer and staff. Append-only."""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    sender = relationship("User", lazy="joined")

    __table_args__ = (
        # Conversation view: filter by order_id, oldest first
        Index("ix_messages_order_created", "order_id", "created_at"),
    )


class Review(Base):
    """One rating per (order, customer); resubmitting replaces it."""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", lazy="joined")
    service = relationship("Service", lazy="joined")

    __table_args__ = (
        UniqueConstraint("order_id", "user_id", name="uq_reviews_order_user"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )


class Complaint(Base):
    """Customer complaint, optionally about one order. Staff answer via admin_response."""
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)  # PENDING | IN_PROGRESS | RESOLVED | CLOSED
    admin_response = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", lazy="joined")
