# orders/models/order_item.py

"""
ORDER ITEM (IMMUTABLE SNAPSHOT)

Frozen copy of a cart line at checkout time.

Notes:
- Insert-only: no update, no delete.
- product is SET_NULL so deleting a listing never rewrites history;
  name / sku / image / seller are copied so the line still reads correctly.
- seller drives seller-side authorization on the order.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from products.models import Product

from .order import Order


class OrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sold_items",
    )

    product_name = models.CharField(max_length=255)
    product_sku = models.CharField(max_length=128, blank=True, default="")
    product_image = models.CharField(max_length=500, blank=True, default="")

    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField()
    line_total = models.DecimalField(max_digits=12, decimal_places=2, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order"], name="orders_orde_order_i_2c3d4e_idx"),
            models.Index(fields=["seller", "order"], name="orders_orde_seller__5f6a7b_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_item_quantity_positive",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("OrderItem records are immutable")

        self.line_total = Decimal(self.unit_price) * Decimal(int(self.quantity or 0))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("OrderItem records are immutable")

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"
