# cart/models/cart_item.py

"""
CART ITEM MODEL

Live reference to a product (NOT a price snapshot).

Rules:
- One line per product per cart (DB constraint).
- Quantity is a whole number >= 1.
- Price is read from the product at view time; checkout freezes it into an OrderItem.
- Removing a product from the catalog removes it from every cart (CASCADE).
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from products.models import Product
from .cart import Cart


class CartItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )

    quantity = models.PositiveIntegerField(help_text="Must be greater than zero")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"],
                name="unique_product_per_cart",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_item_quantity_positive",
            ),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def unit_price(self) -> Decimal:
        return self.product.price

    @property
    def line_total(self) -> Decimal:
        return (self.product.price or Decimal("0.00")) * Decimal(int(self.quantity or 0))

    @property
    def is_available(self) -> bool:
        return self.product.status == Product.Status.ACTIVE

    def __str__(self):
        return f"{getattr(self.product, 'name', 'Product')} x {self.quantity}"
