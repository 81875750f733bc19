from .api import (
    CartItemDetailView,
    CartItemsView,
    CartValidateView,
    CartView,
)

__all__ = [
    "CartItemDetailView",
    "CartItemsView",
    "CartValidateView",
    "CartView",
]
