# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY LEDGER SERVICES

Purpose:
- reserve_stock(): decrement Product.stock for a purchase (checkout).
- release_stock(): add stock back (order cancellation).
- adjust_stock(): seller/admin restock or correction.

Rules:
- Quantities are integer units > 0.
- Product.stock never goes below zero:
  - the product row is locked (select_for_update) before it is read
  - the decrement itself is a conditional UPDATE (stock >= qty), so even a
    backend that ignores row locks cannot let two reservations share the
    last unit
- Every stock write appends a StockMovement row in the same transaction.
- release_stock() for an order never gives back more than that order reserved
  (ceiling from the movement ledger).

Callers own the outer transaction (checkout / cancellation); these functions
are atomic on their own as well so they are safe to call standalone.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone
from rest_framework import status

from common.errors import InvalidQuantityError, MarketplaceError, NotFoundError
from common.numbers import to_positive_qty, to_whole_qty
from products.models import Product, StockMovement

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================

class InventoryError(MarketplaceError):
    http_status = status.HTTP_409_CONFLICT


class InsufficientStockError(InventoryError):
    code = "INSUFFICIENT_STOCK"
    default_message = "Not enough stock available."


class ProductUnavailableError(InventoryError):
    code = "PRODUCT_UNAVAILABLE"
    default_message = "Product is not available for purchase."


class ProductNotFoundError(NotFoundError):
    default_message = "Product not found."


class StockReleaseError(InventoryError):
    code = "STOCK_RELEASE_REJECTED"
    default_message = "Cannot release more stock than was reserved."


# ============================================================
# HELPERS
# ============================================================

def _lock_product(product_id) -> Product | None:
    return Product.objects.select_for_update().filter(pk=product_id).first()


def _record(*, product: Product, reason: str, movement_type: str, quantity: int, order=None, user=None):
    product.refresh_from_db(fields=["stock", "updated_at"])
    return StockMovement.objects.create(
        product=product,
        movement_type=movement_type,
        reason=reason,
        quantity=quantity,
        stock_after=product.stock,
        order=order,
        performed_by=user,
    )


def reserved_quantity(*, order, product_id) -> int:
    """
    Net quantity still held by `order` for one product:
    sum(RESERVATION) - sum(RELEASE).
    """
    rows = (
        StockMovement.objects.filter(order=order, product_id=product_id)
        .values("reason")
        .annotate(total=Sum("quantity"))
    )
    totals = {r["reason"]: int(r["total"] or 0) for r in rows}
    return totals.get(StockMovement.Reason.RESERVATION, 0) - totals.get(
        StockMovement.Reason.RELEASE, 0
    )


# ============================================================
# RESERVE
# ============================================================

@transaction.atomic
def reserve_stock(*, product_id, quantity, order=None, user=None) -> StockMovement:
    """
    Decrement stock for a purchase.

    Raises:
    - InvalidQuantityError: quantity not a positive whole number
    - ProductUnavailableError: product missing or not ACTIVE (regardless of stock)
    - InsufficientStockError: stock < quantity
    """
    qty = to_positive_qty(quantity)

    product = _lock_product(product_id)
    if product is None:
        raise ProductUnavailableError(
            "This product is no longer available.",
            details={"product_id": str(product_id)},
        )

    if product.status != Product.Status.ACTIVE:
        raise ProductUnavailableError(
            f"{product.name} is not available for purchase.",
            details={"product_id": str(product.id), "status": product.status},
        )

    if product.stock < qty:
        raise InsufficientStockError(
            f"Only {product.stock} left in stock for {product.name}.",
            details={
                "product_id": str(product.id),
                "requested": qty,
                "available": int(product.stock),
            },
        )

    # Compare-and-set: the WHERE clause is the final guard.
    updated = Product.objects.filter(pk=product.pk, stock__gte=qty).update(
        stock=F("stock") - qty,
        updated_at=timezone.now(),
    )
    if updated != 1:
        product.refresh_from_db(fields=["stock"])
        raise InsufficientStockError(
            f"Only {product.stock} left in stock for {product.name}.",
            details={
                "product_id": str(product.id),
                "requested": qty,
                "available": int(product.stock),
            },
        )

    movement = _record(
        product=product,
        reason=StockMovement.Reason.RESERVATION,
        movement_type=StockMovement.MovementType.OUT,
        quantity=qty,
        order=order,
        user=user,
    )

    logger.info(
        "Stock reserved",
        extra={
            "product_id": str(product.id),
            "quantity": qty,
            "stock_after": movement.stock_after,
        },
    )
    return movement


# ============================================================
# RELEASE
# ============================================================

@transaction.atomic
def release_stock(*, product_id, quantity, order=None, user=None) -> StockMovement | None:
    """
    Add stock back.

    - Product deleted since the order: nothing to restore, returns None (logged).
    - With an order: refuses to release beyond what the order still holds.
    """
    qty = to_positive_qty(quantity)

    product = _lock_product(product_id)
    if product is None:
        logger.warning(
            "Stock release skipped: product no longer exists",
            extra={
                "product_id": str(product_id),
                "quantity": qty,
                "order_id": str(getattr(order, "id", "") or ""),
            },
        )
        return None

    if order is not None:
        held = reserved_quantity(order=order, product_id=product.pk)
        if qty > held:
            raise StockReleaseError(
                f"Order {order.order_number} holds {held} unit(s) of {product.name}; "
                f"cannot release {qty}.",
                details={"product_id": str(product.id), "held": held, "requested": qty},
            )

    Product.objects.filter(pk=product.pk).update(
        stock=F("stock") + qty,
        updated_at=timezone.now(),
    )

    movement = _record(
        product=product,
        reason=StockMovement.Reason.RELEASE,
        movement_type=StockMovement.MovementType.IN,
        quantity=qty,
        order=order,
        user=user,
    )

    logger.info(
        "Stock released",
        extra={
            "product_id": str(product.id),
            "quantity": qty,
            "stock_after": movement.stock_after,
        },
    )
    return movement


# ============================================================
# ADJUST (restock / correction)
# ============================================================

@transaction.atomic
def adjust_stock(*, product_id, quantity_delta, user=None) -> StockMovement:
    delta = to_whole_qty(quantity_delta, field_name="quantity_delta")

    if delta == 0:
        raise InvalidQuantityError("quantity_delta cannot be 0")

    product = _lock_product(product_id)
    if product is None:
        raise ProductNotFoundError(details={"product_id": str(product_id)})

    current = int(product.stock)
    if current + delta < 0:
        raise InsufficientStockError(
            f"Stock adjustment would result in negative stock. Remaining={current}, delta={delta}",
            details={"product_id": str(product.id), "available": current, "delta": delta},
        )

    Product.objects.filter(pk=product.pk).update(
        stock=F("stock") + delta,
        updated_at=timezone.now(),
    )

    return _record(
        product=product,
        reason=StockMovement.Reason.ADJUSTMENT,
        movement_type=(
            StockMovement.MovementType.IN if delta > 0 else StockMovement.MovementType.OUT
        ),
        quantity=abs(delta),
        user=user,
    )
