from .order import (
    CheckoutInputSerializer,
    OrderItemSerializer,
    OrderSerializer,
    OrderStatusInputSerializer,
    TrackingInputSerializer,
)

__all__ = [
    "CheckoutInputSerializer",
    "OrderItemSerializer",
    "OrderSerializer",
    "OrderStatusInputSerializer",
    "TrackingInputSerializer",
]
