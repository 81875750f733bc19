# cart/services/cart_merge.py

"""
GUEST → USER CART MERGE

Called by the login view right after authentication.

Rules:
- Every guest line is re-added to the user's cart through add_item(), so the
  same availability checks apply as for a normal add.
- A failing line is logged and recorded; the batch never aborts.
- Guest lines are claimed (deleted) before they are re-added, under a lock
  on the guest cart row, so a line is merged at most once even when two
  logins share a session. Dropped lines are not put back.
- Best-effort, at most once: nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction

from cart.models import CartItem
from common.errors import MarketplaceError
from .cart_store import CartOwner, add_item, lock_cart

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeLineResult:
    product_id: str
    product_name: str
    quantity: int
    ok: bool
    code: str = ""
    message: str = ""

    def as_dict(self) -> dict:
        data = {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
        }
        if not self.ok:
            data["code"] = self.code
            data["message"] = self.message
        return data


@dataclass(frozen=True)
class MergeResult:
    lines: list[MergeLineResult] = field(default_factory=list)

    @property
    def merged(self) -> list[MergeLineResult]:
        return [line for line in self.lines if line.ok]

    @property
    def dropped(self) -> list[MergeLineResult]:
        return [line for line in self.lines if not line.ok]

    def as_dict(self) -> dict:
        return {
            "merged": [line.as_dict() for line in self.merged],
            "dropped": [line.as_dict() for line in self.dropped],
        }


def _guest_lines(cart) -> list[CartItem]:
    return list(
        CartItem.objects.filter(cart=cart)
        .select_related("product")
        .order_by("created_at", "id")
    )


def _claim_guest_lines(cart) -> list[CartItem]:
    """
    Remove the guest lines and return the ones this call removed.
    A line already taken by another merge is skipped.
    """
    claimed = []
    for item in _guest_lines(cart):
        deleted, _ = CartItem.objects.filter(pk=item.pk).delete()
        if deleted:
            claimed.append(item)
    return claimed


@transaction.atomic
def merge_guest_cart(*, session_key: str | None, user) -> MergeResult:
    if not session_key:
        return MergeResult()

    guest = CartOwner.for_session(session_key)
    target = CartOwner.for_user(user)

    # A second login with the same session waits here, then finds no lines.
    guest_cart = lock_cart(guest)
    if guest_cart is None:
        return MergeResult()

    guest_items = _claim_guest_lines(guest_cart)
    if not guest_items:
        return MergeResult()

    results: list[MergeLineResult] = []
    for item in guest_items:
        product = item.product
        try:
            # Savepoint per line so one failure leaves the others intact.
            with transaction.atomic():
                add_item(target, product_id=product.pk, quantity=item.quantity)
        except MarketplaceError as exc:
            logger.warning(
                "Guest cart line dropped during merge",
                extra={
                    "user_id": str(user.pk),
                    "product_id": str(product.pk),
                    "quantity": int(item.quantity),
                    "code": exc.code,
                },
            )
            results.append(
                MergeLineResult(
                    product_id=str(product.pk),
                    product_name=product.name,
                    quantity=int(item.quantity),
                    ok=False,
                    code=exc.code,
                    message=exc.message,
                )
            )
        else:
            results.append(
                MergeLineResult(
                    product_id=str(product.pk),
                    product_name=product.name,
                    quantity=int(item.quantity),
                    ok=True,
                )
            )

    logger.info(
        "Guest cart merged",
        extra={
            "user_id": str(user.pk),
            "merged": sum(1 for r in results if r.ok),
            "dropped": sum(1 for r in results if not r.ok),
        },
    )
    return MergeResult(lines=results)
