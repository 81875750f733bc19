from .sink import EVENT_ORDER_PLACED, default_sink, notify_order_event

__all__ = [
    "EVENT_ORDER_PLACED",
    "default_sink",
    "notify_order_event",
]
