"""
PATH: cart/models/cart.py

CART MODEL

Purpose:
- Mutable shopping cart, owned by EITHER a user OR an anonymous session.
- Derive total + item count from CartItems and the LIVE product price.

Rules:
- Exactly one owner: user XOR session_key (DB check constraint).
- At most one cart per user and one per session key (unique constraints).
- Created lazily on first add, emptied by clear/checkout, never deleted.
- Totals are never stored.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Sum

User = settings.AUTH_USER_MODEL


class Cart(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="cart",
    )

    session_key = models.CharField(
        max_length=64,
        unique=True,
        null=True,
        blank=True,
        help_text="Anonymous session owning this cart (guest checkout flow).",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(user__isnull=False, session_key__isnull=True)
                    | models.Q(user__isnull=True, session_key__isnull=False)
                ),
                name="cart_has_exactly_one_owner",
            )
        ]

    def clean(self):
        if self.session_key == "":
            self.session_key = None

        if bool(self.user_id) == bool(self.session_key):
            raise ValidationError("Cart must belong to exactly one of: user, session")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def item_count(self) -> int:
        total = self.items.aggregate(total=Sum("quantity")).get("total")
        return int(total or 0)

    @property
    def total_amount(self) -> Decimal:
        total = (
            self.items.annotate(line_total=F("quantity") * F("product__price"))
            .aggregate(total=Sum("line_total"))
            .get("total")
        )
        return (total or Decimal("0.00")).quantize(Decimal("0.01"))

    @property
    def is_empty(self) -> bool:
        return not self.items.exists()

    def __str__(self):
        owner = self.user or f"session:{(self.session_key or '')[:8]}"
        return f"Cart {self.id} | {owner}"
