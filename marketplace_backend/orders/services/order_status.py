# orders/services/order_status.py

"""
ORDER STATUS SERVICE

Purpose:
- Persist lifecycle transitions (admin / seller fulfilment).
- Customer self-cancellation inside the cancellation window.
- Tracking number updates.

Hard rules:
- The order row is locked before its status is read, so concurrent writers
  are evaluated against the committed status of the previous one.
- Requesting the current status is a no-op: no write, no effects.
- Cancellation releases every line's stock in the SAME transaction as the
  status write. CANCELLED is terminal, so stock is released at most once.
- Customer notifications are sent after commit only.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from common.errors import ForbiddenError, NotFoundError
from notifications.services.sink import notify_order_event
from orders.models import Order
from permissions.roles import (
    CAP_ORDER_CANCEL_OWN,
    CAP_ORDER_FULFIL,
    has_capability,
    is_admin,
)
from products.services.inventory import release_stock

from .order_lifecycle import (
    CUSTOMER_CANCELLABLE,
    InvalidTransitionError,
    effects_for,
    validate_transition,
)

logger = logging.getLogger(__name__)


class OrderNotFoundError(NotFoundError):
    default_message = "Order not found."


# ============================================================
# ACCESS RULES
# ============================================================

def _lock_order(order_id) -> Order:
    order = Order.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise OrderNotFoundError(details={"order_id": str(order_id)})
    return order


def sells_in_order(user, order: Order) -> bool:
    return order.items.filter(seller_id=user.pk).exists()


def can_operate(user, order: Order) -> bool:
    """Admin, or a seller with at least one line in the order."""
    if is_admin(user):
        return True
    return has_capability(user, CAP_ORDER_FULFIL) and sells_in_order(user, order)


def can_view(user, order: Order) -> bool:
    return order.customer_id == user.pk or can_operate(user, order)


def _assert_can_operate(user, order: Order) -> None:
    if not can_operate(user, order):
        raise ForbiddenError(
            "Only an admin or a seller with items in this order can update it.",
            details={"order_id": str(order.id)},
        )


# ============================================================
# TRANSITION (shared)
# ============================================================

def _release_order_stock(order: Order, actor) -> None:
    for item in order.items.all():
        if item.product_id is None:
            logger.warning(
                "Stock release skipped: product no longer exists",
                extra={"order_id": str(order.id), "order_item_id": str(item.id)},
            )
            continue
        release_stock(
            product_id=item.product_id,
            quantity=item.quantity,
            order=order,
            user=actor,
        )


def _apply_transition(order: Order, target: str, actor) -> Order:
    if order.status == target:
        return order

    validate_transition(order=order, target_status=target)

    effects = effects_for(target)
    previous = order.status

    order.status = target
    update_fields = ["status", "updated_at"]

    if effects.stamp_field and getattr(order, effects.stamp_field) is None:
        setattr(order, effects.stamp_field, timezone.now())
        update_fields.append(effects.stamp_field)

    if effects.release_stock:
        _release_order_stock(order, actor)

    order.save(update_fields=update_fields)

    logger.info(
        "Order status changed",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "from": previous,
            "to": target,
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )

    if effects.notify_event:
        event = effects.notify_event
        transaction.on_commit(lambda: notify_order_event(order, event))

    return order


# ============================================================
# PUBLIC OPERATIONS
# ============================================================

@transaction.atomic
def transition_order(*, order_id, new_status: str, actor) -> Order:
    """
    Raises:
    - OrderNotFoundError
    - ForbiddenError: not an admin, not a seller in this order
    - InvalidTransitionError: edge not in the lifecycle table
    """
    order = _lock_order(order_id)
    _assert_can_operate(actor, order)
    return _apply_transition(order, new_status, actor)


@transaction.atomic
def request_cancellation(*, order_id, actor) -> Order:
    """
    Cancel an order.

    - Admin / seller in the order: same rules as transition_order(CANCELLED).
    - Customer: own orders only, while PENDING, CONFIRMED or PROCESSING.
    """
    order = _lock_order(order_id)

    if can_operate(actor, order):
        return _apply_transition(order, Order.Status.CANCELLED, actor)

    if order.customer_id != actor.pk or not has_capability(actor, CAP_ORDER_CANCEL_OWN):
        raise ForbiddenError(
            "You can only cancel your own orders.",
            details={"order_id": str(order.id)},
        )

    if order.status == Order.Status.CANCELLED:
        return order

    if order.status not in CUSTOMER_CANCELLABLE:
        raise InvalidTransitionError(
            f"Order {order.order_number} is {order.status} and can no longer be cancelled.",
            details={"from": order.status, "to": Order.Status.CANCELLED},
        )

    return _apply_transition(order, Order.Status.CANCELLED, actor)


@transaction.atomic
def update_tracking_number(*, order_id, tracking_number: str, actor) -> Order:
    order = _lock_order(order_id)
    _assert_can_operate(actor, order)

    value = (tracking_number or "").strip()
    if value == order.tracking_number:
        return order

    order.tracking_number = value
    order.save(update_fields=["tracking_number", "updated_at"])

    logger.info(
        "Order tracking number updated",
        extra={"order_id": str(order.id), "actor_id": str(actor.pk)},
    )
    return order
