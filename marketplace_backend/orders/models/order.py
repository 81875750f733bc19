# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

User = settings.AUTH_USER_MODEL


class Order(models.Model):
    """
    A placed order (created once by checkout).

    GUARANTEES:
    - Money fields are frozen at checkout (never recomputed from live prices)
    - total_amount == subtotal + shipping_cost + tax
    - Only status / tracking / lifecycle timestamps change after creation
    - Never deleted by the application
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        CONFIRMED = "CONFIRMED", "Confirmed"
        PROCESSING = "PROCESSING", "Processing"
        SHIPPED = "SHIPPED", "Shipped"
        DELIVERED = "DELIVERED", "Delivered"
        CANCELLED = "CANCELLED", "Cancelled"
        REFUNDED = "REFUNDED", "Refunded"

    MUTABLE_FIELDS = (
        "status",
        "tracking_number",
        "shipped_at",
        "delivered_at",
        "cancelled_at",
        "updated_at",
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(
        max_length=64,
        unique=True,
        help_text="System-generated public order number",
    )

    customer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    # Contact + shipping (captured at checkout)
    customer_name = models.CharField(max_length=120)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=40, blank=True, default="")
    shipping_address = models.CharField(max_length=255)
    shipping_city = models.CharField(max_length=100)
    shipping_state = models.CharField(max_length=100)
    shipping_zip_code = models.CharField(max_length=20)
    shipping_country = models.CharField(max_length=100, default="USA")
    order_notes = models.TextField(blank=True, default="")

    payment_method = models.CharField(max_length=32, default="COD")

    # Money (server authoritative, frozen)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )

    tracking_number = models.CharField(max_length=100, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="orders_orde_created_1a2b3c_idx"),
            models.Index(fields=["status"], name="orders_orde_status_4d5e6f_idx"),
            models.Index(fields=["customer", "created_at"], name="orders_orde_custome_7a8b9c_idx"),
        ]

    def _validate_immutable(self, previous: "Order"):
        for field in self._meta.concrete_fields:
            name = field.attname
            if name in self.MUTABLE_FIELDS or name == "id":
                continue
            if getattr(self, name) != getattr(previous, name):
                raise ValidationError(
                    f"Order {previous.order_number}: field '{field.name}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Order.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Orders cannot be deleted.")

    @property
    def item_count(self) -> int:
        return sum(int(i.quantity) for i in self.items.all())

    def __str__(self):
        return f"{self.order_number} | {self.total_amount} | {self.status}"
