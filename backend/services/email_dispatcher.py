"""
Notification dispatcher — outgoing email over SMTP (aiosmtplib).

send() never raises: it returns True when the message was handed to the SMTP
server and False otherwise (disabled, unknown template, no recipient, SMTP
error). Callers treat False as a non-fatal side-effect failure.

Templates are plain subject/body pairs filled from the context dict; HTML
rendering is left to a mail provider.
"""
import logging
from email.message import EmailMessage

import aiosmtplib

from config import Settings, settings as default_settings
from domain.enums import NotificationChannel, OrderStatus

logger = logging.getLogger(__name__)


STATUS_MESSAGES = {
    OrderStatus.PESANAN_DIJEMPUT.value: "A courier is on the way to collect your laundry.",
    OrderStatus.DIAMBIL.value: "Your laundry has been collected and is on its way to us.",
    OrderStatus.DICUCI.value: "Your laundry is being washed.",
    OrderStatus.MENUNGGU_KONFIRMASI_DELIVERY.value: "Your laundry is ready. Please choose self pickup or delivery.",
    OrderStatus.MENUNGGU_AMBIL_SENDIRI.value: "Your laundry is ready for pickup at our store.",
    OrderStatus.MENUNGGU_PEMBAYARAN_DELIVERY.value: "Please pay the delivery fee so we can send your laundry.",
    OrderStatus.DIKIRIM.value: "Your laundry is out for delivery.",
    OrderStatus.SELESAI.value: "Your order is complete. Thank you!",
}


def _rupiah(amount) -> str:
    return f"Rp {int(amount):,}".replace(",", ".")


def _render_order_created(ctx: dict) -> tuple[str, str]:
    lines = [
        f"Hello {ctx.get('name', '')},",
        "",
        f"Thank you for your order #{ctx['order_id']}. It has been received.",
        f"Pickup method: {ctx.get('pickup_method')}",
        "Items:",
    ]
    for item in ctx.get("items", []):
        lines.append(f"  - {item['service_name']} ({item['qty']} {item['unit']}): {_rupiah(item['subtotal'])}")
    if ctx.get("pickup_fee"):
        lines.append(f"Pickup fee: {_rupiah(ctx['pickup_fee'])}")
    lines.append(f"Total: {_rupiah(ctx['price_total'])}")
    if ctx.get("notes"):
        lines.append(f"Notes: {ctx['notes']}")
    lines += ["", "We will notify you when your order status changes."]
    return f"Order Confirmation - Order #{ctx['order_id']}", "\n".join(lines)


def _render_status_update(ctx: dict) -> tuple[str, str]:
    status = ctx["status"]
    message = STATUS_MESSAGES.get(status, "Your order status has been updated.")
    if status == OrderStatus.PESANAN_DIJEMPUT.value and ctx.get("estimated_arrival"):
        message += f" Estimated arrival: {ctx['estimated_arrival']}."
    lines = [
        f"Hello {ctx.get('name', '')},",
        "",
        f"Your order #{ctx['order_id']} status is now {status}.",
        message,
    ]
    if ctx.get("notes"):
        lines.append(f"Notes: {ctx['notes']}")
    return f"Order Status Update - Order #{ctx['order_id']}", "\n".join(lines)


def _render_order_approved(ctx: dict) -> tuple[str, str]:
    body = (
        f"Hello {ctx.get('name', '')},\n\n"
        f"Your order #{ctx['order_id']} has been approved. A courier will collect it soon."
    )
    return f"Order Approved - Order #{ctx['order_id']}", body


def _render_delivery_confirmation(ctx: dict) -> tuple[str, str]:
    lines = [
        f"Hello {ctx.get('name', '')},",
        "",
        f"Your order #{ctx['order_id']} has been processed and is ready.",
        "Please choose how you want to receive it:",
        "  - Pick up yourself: free, at our store",
        f"  - Delivery: additional {_rupiah(ctx.get('delivery_fee', 0))}",
    ]
    if ctx.get("notes"):
        lines.append(f"Notes: {ctx['notes']}")
    return f"Order Ready - Order #{ctx['order_id']}", "\n".join(lines)


def _render_delivery_selected(ctx: dict) -> tuple[str, str]:
    if ctx.get("delivery_method") == "DELIVERY":
        text = (
            f"Please pay the delivery fee ({_rupiah(ctx.get('delivery_fee', 0))}) "
            "so your order can be sent."
        )
    else:
        text = f"Order #{ctx['order_id']} is ready to be picked up at our store."
    return f"Delivery Method Selected - Order #{ctx['order_id']}", f"Hello {ctx.get('name', '')},\n\n{text}"


TEMPLATES = {
    "order_created": _render_order_created,
    "status_update": _render_status_update,
    "order_approved": _render_order_approved,
    "delivery_confirmation_required": _render_delivery_confirmation,
    "delivery_method_selected": _render_delivery_selected,
}


class EmailDispatcher:
    """SMTP-backed notification dispatcher."""

    def __init__(self, config: Settings | None = None):
        self.config = config or default_settings
        self.sent_total = 0
        self.failed_total = 0

    def render(self, template: str, context: dict) -> EmailMessage | None:
        renderer = TEMPLATES.get(template)
        if renderer is None:
            logger.error(f"Unknown email template '{template}'")
            return None
        subject, body = renderer(context)
        msg = EmailMessage()
        msg["From"] = self.config.smtp_from
        msg["To"] = context["recipient"]
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    async def send(self, user_id: int, channel: str, template: str, context: dict) -> bool:
        """
        Deliver one notification. Never raises.

        context must carry "recipient" (the resolved email address).
        """
        if channel != NotificationChannel.EMAIL.value:
            # In-app notifications are the persisted rows themselves.
            return True

        recipient = context.get("recipient")
        if not recipient:
            logger.warning(f"No email recipient for user {user_id}; skipping '{template}'")
            self.failed_total += 1
            return False

        if not self.config.email_enabled:
            logger.info(f"📧 Email disabled; would send '{template}' to {recipient} (user {user_id})")
            return False

        message = self.render(template, context)
        if message is None:
            self.failed_total += 1
            return False

        try:
            await aiosmtplib.send(
                message,
                hostname=self.config.smtp_host,
                port=self.config.smtp_port,
                username=self.config.smtp_user or None,
                password=self.config.smtp_password or None,
                start_tls=self.config.smtp_start_tls,
                timeout=self.config.smtp_timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{template}' email to user {user_id}: {e}")
            self.failed_total += 1
            return False

        self.sent_total += 1
        logger.info(f"📧 Sent '{template}' email to user {user_id}")
        return True
