# products/models/product.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable marketplace listing owned by a seller.

    STOCK MODEL (IMPORTANT):
    - `stock` is a single non-negative counter per product.
    - It is written ONLY by products.services.inventory (reserve / release / adjust).
    - Every write leaves a StockMovement row (audit trail).

    PRICE:
    - `price` is the live listing price. Carts read it live; orders snapshot it.
    """

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        INACTIVE = "INACTIVE", "Inactive"
        OUT_OF_STOCK = "OUT_OF_STOCK", "Out of stock"
        PENDING_APPROVAL = "PENDING_APPROVAL", "Pending approval"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="products",
    )

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    # Storage of the file itself is handled elsewhere; we keep the URL/path.
    image = models.CharField(max_length=500, blank=True, default="")

    price = models.DecimalField(max_digits=10, decimal_places=2)

    stock = models.PositiveIntegerField(default=0)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sku"], name="products_pr_sku_5b8b1e_idx"),
            models.Index(fields=["name"], name="products_pr_name_9ff0a3_idx"),
            models.Index(fields=["seller", "status"], name="products_pr_seller__3c1d2a_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="product_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="product_price_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.price is None or Decimal(self.price) < Decimal("0.00"):
            raise ValidationError("Price cannot be negative")

        if self.stock is None or int(self.stock) < 0:
            raise ValidationError("Stock cannot be negative")

    @property
    def is_purchasable(self) -> bool:
        return self.status == self.Status.ACTIVE
