# common/testing.py

"""
Shared test seeding helpers.

Kept tiny on purpose: each test module still builds its own scenario in setUp().
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model

from permissions.roles import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER
from products.models import Product

User = get_user_model()

DEFAULT_PASSWORD = "pass-1234-strong"


def make_user(*, email: str | None = None, role: str = ROLE_CUSTOMER, **extra):
    email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
    return User.objects.create_user(email=email, password=DEFAULT_PASSWORD, role=role, **extra)


def make_customer(**kwargs):
    return make_user(role=ROLE_CUSTOMER, **kwargs)


def make_seller(**kwargs):
    return make_user(role=ROLE_SELLER, **kwargs)


def make_admin(**kwargs):
    return make_user(role=ROLE_ADMIN, **kwargs)


def make_product(*, seller, price="10.00", stock=10, sku: str | None = None, **extra) -> Product:
    """
    Direct insert (fixture seeding). Production stock writes go through
    products.services.inventory.
    """
    sku = sku or f"SKU-{uuid.uuid4().hex[:8].upper()}"
    extra.setdefault("name", f"Product {sku}")
    return Product.objects.create(
        seller=seller,
        sku=sku,
        price=Decimal(str(price)),
        stock=stock,
        **extra,
    )


def shipping_details(**overrides) -> dict:
    data = {
        "customer_name": "Ada Buyer",
        "customer_email": "ada@example.com",
        "customer_phone": "+1 555 0100",
        "shipping_address": "1 Market Street",
        "shipping_city": "Springfield",
        "shipping_state": "IL",
        "shipping_zip_code": "62701",
        "shipping_country": "USA",
        "order_notes": "",
    }
    data.update(overrides)
    return data


def make_order(*, customer, lines, payment_method: str = "COD", **shipping_overrides):
    """
    Place a real order through the cart + checkout services.
    lines: [(product, quantity), ...]
    """
    from cart.services.cart_store import CartOwner, add_item
    from orders.services.checkout_orchestrator import ShippingDetails, place_order

    owner = CartOwner.for_user(customer)
    for product, quantity in lines:
        add_item(owner, product_id=product.id, quantity=quantity)

    return place_order(
        user=customer,
        shipping=ShippingDetails(**shipping_details(**shipping_overrides)),
        payment_method=payment_method,
    )
