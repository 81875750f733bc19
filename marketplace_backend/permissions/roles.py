# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (MARKETPLACE ACTORS)
# =========================================================
ROLE_ADMIN = "admin"
ROLE_SELLER = "seller"
ROLE_CUSTOMER = "customer"

ROLE_CHOICES = [
    (ROLE_ADMIN, "Admin"),
    (ROLE_SELLER, "Seller"),
    (ROLE_CUSTOMER, "Customer"),
]

ALL_ROLES = {ROLE_ADMIN, ROLE_SELLER, ROLE_CUSTOMER}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_CART_USE = "cart.use"
CAP_ORDER_PLACE = "orders.place"
CAP_ORDER_CANCEL_OWN = "orders.cancel_own"
CAP_ORDER_FULFIL = "orders.fulfil"          # status + tracking on orders with own lines
CAP_ORDER_MANAGE_ALL = "orders.manage_all"  # any order, any line
CAP_INVENTORY_ADJUST = "inventory.adjust"

ALL_CAPABILITIES = {
    CAP_CART_USE,
    CAP_ORDER_PLACE,
    CAP_ORDER_CANCEL_OWN,
    CAP_ORDER_FULFIL,
    CAP_ORDER_MANAGE_ALL,
    CAP_INVENTORY_ADJUST,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_SELLER: {
        CAP_CART_USE,
        CAP_ORDER_PLACE,
        CAP_ORDER_CANCEL_OWN,
        CAP_ORDER_FULFIL,
        CAP_INVENTORY_ADJUST,
    },
    ROLE_CUSTOMER: {
        CAP_CART_USE,
        CAP_ORDER_PLACE,
        CAP_ORDER_CANCEL_OWN,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for(user) -> set[str]:
    if not user or not getattr(user, "is_authenticated", False):
        return set()
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def has_capability(user, capability: str) -> bool:
    return capability in capabilities_for(user)


def is_admin(user) -> bool:
    return has_capability(user, CAP_ORDER_MANAGE_ALL)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        required_capability = CAP_INVENTORY_ADJUST  # on the view
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        return has_capability(user, required)

