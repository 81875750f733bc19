# notifications/services/sink.py

"""
ORDER NOTIFICATION SINK

notify_order_event(order, event) is the single entry point used by checkout
and the order lifecycle (always from transaction.on_commit).

- The concrete sink is resolved from settings.ORDER_NOTIFICATION_SINK
  (dotted path to a callable `sink(order, event) -> None`).
- A failing sink is logged and swallowed: notifications never undo or
  fail the order operation that triggered them, and are never retried.

default_sink():
- stores an in-app Notification for the customer
- emails the order's contact address when ORDER_EMAILS_ENABLED
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.utils.module_loading import import_string

from notifications.models import Notification

logger = logging.getLogger(__name__)

EVENT_ORDER_PLACED = "ORDER_PLACED"

L = Notification.Level

# event -> (title, message template, level)
MESSAGES = {
    EVENT_ORDER_PLACED: (
        "Order Placed",
        "Your order #{number} has been placed successfully. Total: {total}.",
        L.SUCCESS,
    ),
    "ORDER_CONFIRMED": (
        "Order Confirmed",
        "Your order #{number} has been confirmed and is being prepared for shipment.",
        L.SUCCESS,
    ),
    "ORDER_PROCESSING": (
        "Order Processing",
        "Your order #{number} is now being processed.",
        L.INFO,
    ),
    "ORDER_SHIPPED": (
        "Order Shipped",
        "Good news! Your order #{number} has been shipped and is on its way.",
        L.SUCCESS,
    ),
    "ORDER_DELIVERED": (
        "Order Delivered",
        "Your order #{number} has been delivered. We hope you enjoy your purchase!",
        L.SUCCESS,
    ),
    "ORDER_CANCELLED": (
        "Order Cancelled",
        "Your order #{number} has been cancelled.",
        L.WARNING,
    ),
    "ORDER_REFUNDED": (
        "Order Refunded",
        "Your order #{number} has been refunded. The amount will be credited to your account.",
        L.INFO,
    ),
}


def render(order, event: str) -> tuple[str, str, str]:
    title, template, level = MESSAGES.get(
        event,
        ("Order Update", "Order #{number} - {status}", L.INFO),
    )
    message = template.format(
        number=order.order_number,
        total=order.total_amount,
        status=order.status,
    )
    return title, message, level


def _email_subject(order, event: str, title: str) -> str:
    if event == EVENT_ORDER_PLACED:
        return f"Order Confirmation - Order #{order.order_number}"
    return f"{title} - Order #{order.order_number}"


def default_sink(order, event: str) -> None:
    title, message, level = render(order, event)

    Notification.objects.create(
        recipient_id=order.customer_id,
        order=order,
        event=event,
        title=title,
        message=message,
        level=level,
        link=f"/orders/{order.id}",
    )

    if settings.ORDER_EMAILS_ENABLED and order.customer_email:
        send_mail(
            subject=_email_subject(order, event, title),
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[order.customer_email],
        )


def get_sink():
    return import_string(settings.ORDER_NOTIFICATION_SINK)


def notify_order_event(order, event: str) -> None:
    try:
        get_sink()(order, event)
    except Exception:
        logger.exception(
            "Order notification failed",
            extra={"order_id": str(order.id), "event": event},
        )
