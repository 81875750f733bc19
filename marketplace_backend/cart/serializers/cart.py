# cart/serializers/cart.py

"""
CART SERIALIZERS

Output shapes are built from the cart store's read models (CartView /
CartLine / CartProblem), never from raw model rows: totals are always
server-derived from live prices.

Input serializers only check shape. Quantity rules (whole number >= 1)
are enforced by the store itself so every caller gets the same
INVALID_QUANTITY error.
"""

from rest_framework import serializers


# =====================================================
# INPUT
# =====================================================

class AddCartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.JSONField(required=False, default=1)


class UpdateCartItemInputSerializer(serializers.Serializer):
    quantity = serializers.JSONField()


# =====================================================
# OUTPUT
# =====================================================

class CartLineSerializer(serializers.Serializer):
    id = serializers.CharField(source="item_id", read_only=True)
    product_id = serializers.CharField(read_only=True)
    product_name = serializers.CharField(read_only=True)
    product_sku = serializers.CharField(read_only=True)
    product_image = serializers.CharField(read_only=True)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    available = serializers.BooleanField(read_only=True)
    stock = serializers.IntegerField(read_only=True)


class CartSerializer(serializers.Serializer):
    id = serializers.CharField(source="cart_id", read_only=True, allow_null=True)
    items = CartLineSerializer(many=True, read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    count = serializers.IntegerField(read_only=True)


class CartProblemSerializer(serializers.Serializer):
    item_id = serializers.CharField(read_only=True)
    product_id = serializers.CharField(read_only=True)
    product_name = serializers.CharField(read_only=True)
    code = serializers.CharField(read_only=True)
    message = serializers.CharField(read_only=True)
    requested = serializers.IntegerField(read_only=True)
    available = serializers.IntegerField(read_only=True)


class CartValidationSerializer(serializers.Serializer):
    valid = serializers.BooleanField(read_only=True)
    problems = CartProblemSerializer(many=True, read_only=True)
