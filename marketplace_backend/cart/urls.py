"""
PATH: cart/urls.py

CART URLS

- Cart read / clear
- Cart item add / update / remove
- Advisory validation before checkout
"""

from django.urls import path

from cart.views import (
    CartItemDetailView,
    CartItemsView,
    CartValidateView,
    CartView,
)

app_name = "cart"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("items/", CartItemsView.as_view(), name="cart-items"),
    path("items/<uuid:item_id>/", CartItemDetailView.as_view(), name="cart-item-detail"),
    path("validate/", CartValidateView.as_view(), name="cart-validate"),
]
