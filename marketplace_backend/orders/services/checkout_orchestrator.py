# orders/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn the user's cart into a PENDING Order (atomic, auditable).
- Reserve stock through the inventory ledger.
- Freeze prices + product details into OrderItem snapshots.

Hard rules:
- Quantities are integer units; money is Decimal, 2dp, ROUND_HALF_UP at the tax step only.
- Totals are computed server-side; the client never sends money.
- Steps 1-7 run in ONE transaction: stock reservations, order rows and the
  cart clear succeed together or roll back together.
- Product rows are locked in primary-key order so two checkouts sharing
  products cannot deadlock.
- The ORDER_PLACED notification is sent only after commit and can never
  fail a checkout.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, fields
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework import status

from cart.services.cart_store import CartOwner, find_problems, lock_cart
from common.errors import MarketplaceError
from common.numbers import TWOPLACES, money
from notifications.services.sink import EVENT_ORDER_PLACED, notify_order_event
from orders.models import Order, OrderItem
from products.models import Product, StockMovement
from products.services.inventory import reserve_stock

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "COD"


# ============================================================
# DOMAIN ERRORS
# ============================================================

class CheckoutError(MarketplaceError):
    http_status = status.HTTP_409_CONFLICT


class CartEmptyError(CheckoutError):
    code = "CART_EMPTY"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Your cart is empty."


class CartInvalidError(CheckoutError):
    """details = {"problems": [CartProblem.as_dict(), ...]}"""

    code = "CART_INVALID"
    default_message = "Some items in your cart are no longer available in the requested quantity."


class CheckoutFailedError(CheckoutError):
    """details["reason"] carries the underlying error code."""

    code = "CHECKOUT_FAILED"
    default_message = "Checkout could not be completed. Nothing was charged or reserved."


class InvalidShippingDetailsError(MarketplaceError):
    code = "INVALID_SHIPPING_DETAILS"
    default_message = "Shipping details are incomplete."


# ============================================================
# VALUE TYPES
# ============================================================

@dataclass(frozen=True)
class ShippingDetails:
    customer_name: str
    customer_email: str
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_zip_code: str
    shipping_country: str = "USA"
    customer_phone: str = ""
    order_notes: str = ""

    REQUIRED = (
        "customer_name",
        "customer_email",
        "shipping_address",
        "shipping_city",
        "shipping_state",
        "shipping_zip_code",
        "shipping_country",
    )

    def cleaned(self) -> "ShippingDetails":
        values = {f.name: str(getattr(self, f.name) or "").strip() for f in fields(self)}

        missing = [name for name in self.REQUIRED if not values[name]]
        if missing:
            raise InvalidShippingDetailsError(details={"missing": missing})

        try:
            validate_email(values["customer_email"])
        except ValidationError:
            raise InvalidShippingDetailsError(
                "Enter a valid email address.",
                details={"invalid": ["customer_email"]},
            )

        return ShippingDetails(**values)

    def as_order_fields(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class LineSnapshot:
    """A cart line frozen at checkout. Never recomputed from the live product."""

    product_id: uuid.UUID
    seller_id: uuid.UUID | None
    product_name: str
    product_sku: str
    product_image: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def freeze(cls, *, product: Product, quantity: int) -> "LineSnapshot":
        return cls(
            product_id=product.pk,
            seller_id=product.seller_id,
            product_name=product.name,
            product_sku=product.sku,
            product_image=product.image or "",
            unit_price=money(product.price),
            quantity=int(quantity),
        )


# ============================================================
# HELPERS
# ============================================================

def compute_totals(lines: list[LineSnapshot]) -> dict:
    subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
    shipping_cost = money(settings.CHECKOUT_SHIPPING_FLAT_RATE)
    tax = (subtotal * Decimal(settings.CHECKOUT_TAX_RATE)).quantize(
        TWOPLACES, rounding=ROUND_HALF_UP
    )
    return {
        "subtotal": subtotal,
        "shipping_cost": shipping_cost,
        "tax": tax,
        "total_amount": subtotal + shipping_cost + tax,
    }


def generate_order_number() -> str:
    prefix = getattr(settings, "ORDER_NUMBER_PREFIX", "ORD") or "ORD"
    stamp = timezone.now().strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}-{uuid.uuid4().hex[:6].upper()}"


def _unique_order_number() -> str:
    attempts = int(getattr(settings, "ORDER_NUMBER_MAX_ATTEMPTS", 5) or 1)
    for _ in range(attempts):
        candidate = generate_order_number()
        if not Order.objects.filter(order_number=candidate).exists():
            return candidate

    raise CheckoutFailedError(
        "Could not allocate an order number. Please retry.",
        details={"reason": "ORDER_NUMBER_EXHAUSTED", "attempts": attempts},
    )


def _normalize_payment_method(method: str | None) -> str:
    m = (method or "").strip()
    return m or DEFAULT_PAYMENT_METHOD


# ============================================================
# PLACE ORDER
# ============================================================

@transaction.atomic
def place_order(*, user, shipping: ShippingDetails, payment_method: str | None = None) -> Order:
    """
    Raises:
    - InvalidShippingDetailsError: a required shipping/contact field is blank
    - CartEmptyError: no cart or no lines
    - CartInvalidError: a line is unavailable or short on stock (details.problems)
    - CheckoutFailedError: a reservation or the order write failed (details.reason)
    """
    shipping = shipping.cleaned()
    method = _normalize_payment_method(payment_method)

    # 1) lock cart, lock products (pk order), re-validate
    cart = lock_cart(CartOwner.for_user(user))
    if cart is None:
        raise CartEmptyError()

    product_ids = list(cart.items.values_list("product_id", flat=True))
    if not product_ids:
        raise CartEmptyError()

    list(Product.objects.select_for_update().filter(pk__in=product_ids).order_by("pk"))

    # Re-read lines after the product locks: prices + stock are now stable.
    items = list(cart.items.select_related("product").order_by("product_id"))
    if not items:
        raise CartEmptyError()

    problems = find_problems(items)
    if problems:
        raise CartInvalidError(details={"problems": [p.as_dict() for p in problems]})

    # 2) reserve stock (any failure unwinds the whole transaction)
    movement_ids = []
    for item in items:
        try:
            movement = reserve_stock(product_id=item.product_id, quantity=item.quantity, user=user)
        except MarketplaceError as exc:
            logger.warning(
                "Checkout reservation failed",
                extra={"user_id": str(user.pk), "product_id": str(item.product_id), "code": exc.code},
            )
            raise CheckoutFailedError(
                exc.message,
                details={"reason": exc.code, **(exc.details or {})},
            ) from exc
        movement_ids.append(movement.pk)

    # 3) freeze lines, 4) totals
    lines = [LineSnapshot.freeze(product=item.product, quantity=item.quantity) for item in items]
    totals = compute_totals(lines)

    # 5) order number, 6) persist
    try:
        with transaction.atomic():
            order = Order.objects.create(
                order_number=_unique_order_number(),
                customer=user,
                payment_method=method,
                status=Order.Status.PENDING,
                **shipping.as_order_fields(),
                **totals,
            )
    except IntegrityError as exc:
        raise CheckoutFailedError(
            "Could not allocate an order number. Please retry.",
            details={"reason": "ORDER_NUMBER_COLLISION"},
        ) from exc

    for line in lines:
        OrderItem.objects.create(
            order=order,
            product_id=line.product_id,
            seller_id=line.seller_id,
            product_name=line.product_name,
            product_sku=line.product_sku,
            product_image=line.product_image,
            unit_price=line.unit_price,
            quantity=line.quantity,
        )

    StockMovement.objects.filter(pk__in=movement_ids).update(order=order)

    # 7) clear cart
    cart.items.all().delete()

    logger.info(
        "Order placed",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "user_id": str(user.pk),
            "lines": len(lines),
            "total_amount": str(order.total_amount),
        },
    )

    # 8) notify after commit
    transaction.on_commit(lambda: notify_order_event(order, EVENT_ORDER_PLACED))

    return order
