"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed status transitions for Order
and the side effects attached to each target status.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects (effects are described, order_status applies them)
- Single source of truth
"""

from __future__ import annotations

from dataclasses import dataclass

from rest_framework import status

from common.errors import MarketplaceError
from orders.models import Order

S = Order.Status


# ============================================================
# DOMAIN ERRORS
# ============================================================

class InvalidTransitionError(MarketplaceError):
    code = "INVALID_TRANSITION"
    http_status = status.HTTP_409_CONFLICT
    default_message = "This status change is not allowed."


# ============================================================
# STATE DEFINITIONS
# ============================================================

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.PROCESSING, S.CANCELLED}),
    S.PROCESSING: frozenset({S.SHIPPED, S.CANCELLED}),
    S.SHIPPED: frozenset({S.DELIVERED, S.CANCELLED}),
    S.DELIVERED: frozenset({S.REFUNDED}),
    S.CANCELLED: frozenset(),
    S.REFUNDED: frozenset(),
}

TERMINAL_STATES = frozenset({S.CANCELLED, S.REFUNDED})

# Window in which a customer may cancel their own order.
CUSTOMER_CANCELLABLE = frozenset({S.PENDING, S.CONFIRMED, S.PROCESSING})


# ============================================================
# EFFECTS
# ============================================================

@dataclass(frozen=True)
class TransitionEffects:
    release_stock: bool = False
    stamp_field: str | None = None
    notify_event: str | None = None


_STAMPS = {
    S.SHIPPED: "shipped_at",
    S.DELIVERED: "delivered_at",
    S.CANCELLED: "cancelled_at",
}

_NOTIFY = {S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.DELIVERED, S.CANCELLED, S.REFUNDED}


def event_for_status(target: str) -> str:
    return f"ORDER_{target}"


def effects_for(target: str) -> TransitionEffects:
    return TransitionEffects(
        release_stock=target == S.CANCELLED,
        stamp_field=_STAMPS.get(target),
        notify_event=event_for_status(target) if target in _NOTIFY else None,
    )


# ============================================================
# DOMAIN RULES
# ============================================================

def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


def validate_transition(*, order: Order, target_status: str):
    if target_status not in S.values:
        raise InvalidTransitionError(
            f"Unknown order status '{target_status}'.",
            details={"allowed": sorted(ALLOWED_TRANSITIONS.get(order.status, ()))},
        )

    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidTransitionError(
            f"Order {order.order_number} cannot move from "
            f"{order.status} to {target_status}.",
            details={
                "from": order.status,
                "to": target_status,
                "allowed": sorted(ALLOWED_TRANSITIONS.get(order.status, ())),
            },
        )
