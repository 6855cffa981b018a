"""
Domain enums shared by services, routes and models.
"""

from enum import Enum


class OrderStatus(str, Enum):
    DIPESAN = "DIPESAN"                                            # placed
    PESANAN_DIJEMPUT = "PESANAN_DIJEMPUT"                          # courier on the way
    DIAMBIL = "DIAMBIL"                                            # collected by courier
    DICUCI = "DICUCI"                                              # washing
    MENUNGGU_KONFIRMASI_DELIVERY = "MENUNGGU_KONFIRMASI_DELIVERY"  # awaiting delivery choice
    MENUNGGU_AMBIL_SENDIRI = "MENUNGGU_AMBIL_SENDIRI"              # ready for self pickup
    MENUNGGU_PEMBAYARAN_DELIVERY = "MENUNGGU_PEMBAYARAN_DELIVERY"  # awaiting delivery fee
    DIKIRIM = "DIKIRIM"                                            # out for delivery
    SELESAI = "SELESAI"                                            # done


class PickupMethod(str, Enum):
    PICKUP = "PICKUP"
    SELF = "SELF"


class DeliveryMethod(str, Enum):
    SELF_PICKUP = "SELF_PICKUP"
    DELIVERY = "DELIVERY"


class PaymentMethod(str, Enum):
    QRIS = "QRIS"
    TRANSFER = "TRANSFER"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class NotificationChannel(str, Enum):
    EMAIL = "EMAIL"
    IN_APP = "IN_APP"


class NotificationType(str, Enum):
    ORDER_CREATED = "order_created"
    ORDER_APPROVED = "order_approved"
    STATUS_UPDATE = "status_update"
    DELIVERY_CONFIRMATION_REQUIRED = "delivery_confirmation_required"
    DELIVERY_METHOD_SELECTED = "delivery_method_selected"


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"
    COURIER = "COURIER"


class ComplaintStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
