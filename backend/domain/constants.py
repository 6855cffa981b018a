"""
Domain constants used across services/routers.
"""

# Real-time topics are keyed by order: "order:<id>"
ORDER_TOPIC_PREFIX = "order:"

# Event names published on order topics
EVENT_ORDER_STATUS_UPDATED = "order.status.updated"
EVENT_MESSAGE_NEW = "message:new"

# Request limits
MAX_NOTES_LENGTH = 500
MAX_ITEMS_PER_ORDER = 50
MAX_MESSAGE_LENGTH = 1000
MAX_REVIEW_COMMENT_LENGTH = 1000
MAX_COMPLAINT_LENGTH = 2000


def order_topic(order_id: int) -> str:
    return f"{ORDER_TOPIC_PREFIX}{order_id}"
