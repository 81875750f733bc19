# cart/services/cart_store.py

"""
CART STORE (APPLICATION SERVICE)

Purpose:
- Add / update / remove / clear cart lines for one owner (user XOR session).
- Read the cart with totals derived from LIVE product prices.
- Advisory validation of the cart against current availability + stock.

Hard rules:
- The cart never touches inventory: a cart may hold more than is in stock.
  Stock is only checked + decremented by checkout.
- Mutations lock the owner's cart row (select_for_update) inside one
  transaction, so concurrent edits by the same owner serialize while other
  owners are never blocked.
- Acting on an item that is not in the acting owner's cart is UNAUTHORIZED.
- view() never creates a cart.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from cart.models import Cart, CartItem
from common.errors import NotFoundError, UnauthorizedError
from common.numbers import money, to_positive_qty
from products.models import Product
from products.services.inventory import ProductNotFoundError, ProductUnavailableError

logger = logging.getLogger(__name__)

PROBLEM_PRODUCT_UNAVAILABLE = "PRODUCT_UNAVAILABLE"
PROBLEM_INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"


# ============================================================
# DOMAIN ERRORS
# ============================================================

class CartItemNotFoundError(NotFoundError):
    default_message = "Cart item not found."


class UnauthorizedCartAccessError(UnauthorizedError):
    default_message = "Unauthorized access to cart."


# ============================================================
# VALUE TYPES
# ============================================================

@dataclass(frozen=True)
class CartOwner:
    """Exactly one of user / session_key."""

    user: object | None = None
    session_key: str | None = None

    def __post_init__(self):
        if (self.user is None) == (not self.session_key):
            raise ValueError("CartOwner needs exactly one of: user, session_key")

    @classmethod
    def for_user(cls, user) -> "CartOwner":
        return cls(user=user)

    @classmethod
    def for_session(cls, session_key: str) -> "CartOwner":
        return cls(session_key=session_key)

    @property
    def is_guest(self) -> bool:
        return self.user is None

    def lookup(self) -> dict:
        if self.user is not None:
            return {"user": self.user}
        return {"session_key": self.session_key}

    def log_context(self) -> dict:
        if self.user is not None:
            return {"user_id": str(self.user.pk)}
        return {"session": self.session_key[:8]}


@dataclass(frozen=True)
class CartLine:
    item_id: str
    product_id: str
    product_name: str
    product_sku: str
    product_image: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    available: bool
    stock: int


@dataclass(frozen=True)
class CartView:
    cart_id: str | None
    items: list[CartLine] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    count: int = 0


@dataclass(frozen=True)
class CartProblem:
    item_id: str
    product_id: str
    product_name: str
    code: str
    message: str
    requested: int
    available: int

    def as_dict(self) -> dict:
        return asdict(self)


# ============================================================
# HELPERS
# ============================================================

def _find_locked(owner: CartOwner) -> Cart | None:
    return Cart.objects.select_for_update().filter(**owner.lookup()).first()


def lock_cart(owner: CartOwner, *, create: bool = False) -> Cart | None:
    """
    Return the owner's cart row locked for update (inside the caller's transaction).
    Lazily creates it when `create` is set.
    """
    cart = _find_locked(owner)
    if cart is not None or not create:
        return cart

    try:
        with transaction.atomic():
            cart = Cart.objects.create(**owner.lookup())
    except (IntegrityError, ValidationError):
        # Another request created it first; use theirs.
        # Cart.save() runs full_clean(), so a rival that already committed
        # fails the unique check before the INSERT is attempted.
        cart = Cart.objects.select_for_update().get(**owner.lookup())
    return cart


def _owned_item(owner: CartOwner, item_id) -> CartItem:
    cart = lock_cart(owner)

    item = CartItem.objects.select_related("product").filter(pk=item_id).first()
    if item is None:
        raise CartItemNotFoundError(details={"item_id": str(item_id)})

    if cart is None or item.cart_id != cart.pk:
        logger.warning(
            "Cart access denied",
            extra={"item_id": str(item_id), **owner.log_context()},
        )
        raise UnauthorizedCartAccessError()

    return item


def find_problems(items) -> list[CartProblem]:
    """
    Per-line availability + stock problems for cart items (product preloaded).
    Used by the advisory validation endpoint and by checkout re-validation.
    """
    problems: list[CartProblem] = []
    for item in items:
        product = item.product
        if product.status != Product.Status.ACTIVE:
            problems.append(
                CartProblem(
                    item_id=str(item.pk),
                    product_id=str(product.pk),
                    product_name=product.name,
                    code=PROBLEM_PRODUCT_UNAVAILABLE,
                    message=f"{product.name} is no longer available.",
                    requested=int(item.quantity),
                    available=0,
                )
            )
        elif product.stock < item.quantity:
            problems.append(
                CartProblem(
                    item_id=str(item.pk),
                    product_id=str(product.pk),
                    product_name=product.name,
                    code=PROBLEM_INSUFFICIENT_STOCK,
                    message=f"Only {product.stock} left in stock for {product.name}.",
                    requested=int(item.quantity),
                    available=int(product.stock),
                )
            )
    return problems


# ============================================================
# COMMANDS
# ============================================================

@transaction.atomic
def add_item(owner: CartOwner, *, product_id, quantity) -> CartItem:
    """
    Add `quantity` of a product; an existing line for the product is incremented.
    """
    qty = to_positive_qty(quantity)

    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise ProductNotFoundError(details={"product_id": str(product_id)})

    if product.status != Product.Status.ACTIVE:
        raise ProductUnavailableError(
            f"{product.name} is not available for purchase.",
            details={"product_id": str(product.pk), "status": product.status},
        )

    cart = lock_cart(owner, create=True)

    item = CartItem.objects.filter(cart=cart, product=product).first()
    if item is None:
        item = CartItem.objects.create(cart=cart, product=product, quantity=qty)
    else:
        item.quantity = int(item.quantity) + qty
        item.save(update_fields=["quantity", "updated_at"])

    logger.info(
        "Cart item added",
        extra={"product_id": str(product.pk), "quantity": qty, **owner.log_context()},
    )
    return item


@transaction.atomic
def update_quantity(owner: CartOwner, *, item_id, quantity) -> CartItem:
    qty = to_positive_qty(quantity)

    item = _owned_item(owner, item_id)
    item.quantity = qty
    item.save(update_fields=["quantity", "updated_at"])
    return item


@transaction.atomic
def remove_item(owner: CartOwner, *, item_id) -> None:
    item = _owned_item(owner, item_id)
    item.delete()


@transaction.atomic
def clear(owner: CartOwner) -> int:
    """Empty the owner's cart. Returns the number of lines removed."""
    cart = lock_cart(owner)
    if cart is None:
        return 0
    removed, _ = cart.items.all().delete()
    return removed


# ============================================================
# QUERIES
# ============================================================

def _items_for(owner: CartOwner):
    return (
        CartItem.objects.filter(**{f"cart__{k}": v for k, v in owner.lookup().items()})
        .select_related("product", "cart")
        .order_by("created_at", "id")
    )


def view(owner: CartOwner) -> CartView:
    items = list(_items_for(owner))
    if not items:
        cart_id = Cart.objects.filter(**owner.lookup()).values_list("id", flat=True).first()
        return CartView(cart_id=str(cart_id) if cart_id else None)

    lines = []
    total = Decimal("0.00")
    count = 0
    for item in items:
        product = item.product
        line_total = money(product.price * item.quantity)
        lines.append(
            CartLine(
                item_id=str(item.pk),
                product_id=str(product.pk),
                product_name=product.name,
                product_sku=product.sku,
                product_image=product.image,
                unit_price=money(product.price),
                quantity=int(item.quantity),
                line_total=line_total,
                available=product.status == Product.Status.ACTIVE,
                stock=int(product.stock),
            )
        )
        total += line_total
        count += int(item.quantity)

    return CartView(cart_id=str(items[0].cart_id), items=lines, total=money(total), count=count)


def validate_cart(owner: CartOwner) -> list[CartProblem]:
    """Advisory only: nothing is reserved."""
    return find_problems(_items_for(owner))
