from .cart_merge import MergeLineResult, MergeResult, merge_guest_cart
from .cart_store import (
    CartItemNotFoundError,
    CartLine,
    CartOwner,
    CartProblem,
    CartView,
    UnauthorizedCartAccessError,
    add_item,
    clear,
    find_problems,
    lock_cart,
    remove_item,
    update_quantity,
    validate_cart,
    view,
)

__all__ = [
    "CartItemNotFoundError",
    "CartLine",
    "CartOwner",
    "CartProblem",
    "CartView",
    "MergeLineResult",
    "MergeResult",
    "UnauthorizedCartAccessError",
    "add_item",
    "clear",
    "find_problems",
    "lock_cart",
    "merge_guest_cart",
    "remove_item",
    "update_quantity",
    "validate_cart",
    "view",
]
