from .checkout_orchestrator import (
    CartEmptyError,
    CartInvalidError,
    CheckoutFailedError,
    InvalidShippingDetailsError,
    LineSnapshot,
    ShippingDetails,
    place_order,
)
from .order_lifecycle import InvalidTransitionError, can_transition, effects_for
from .order_status import (
    OrderNotFoundError,
    request_cancellation,
    transition_order,
    update_tracking_number,
)

__all__ = [
    "CartEmptyError",
    "CartInvalidError",
    "CheckoutFailedError",
    "InvalidShippingDetailsError",
    "InvalidTransitionError",
    "LineSnapshot",
    "OrderNotFoundError",
    "ShippingDetails",
    "can_transition",
    "effects_for",
    "place_order",
    "request_cancellation",
    "transition_order",
    "update_tracking_number",
]
