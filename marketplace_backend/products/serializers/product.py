# products/serializers/product.py

"""
PRODUCT SERIALIZERS

Purpose:
- Read-only catalog representation used by the storefront and carts.
- Stock adjustment input (seller restock / correction).
- Stock movement (audit ledger) output.

Money is returned as strings (Decimal-safe).
"""

from rest_framework import serializers

from products.models import Product, StockMovement


class ProductSerializer(serializers.ModelSerializer):
    seller_id = serializers.UUIDField(source="seller.id", read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=True, read_only=True)
    is_purchasable = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "image",
            "seller_id",
            "price",
            "stock",
            "status",
            "is_purchasable",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockAdjustmentInputSerializer(serializers.Serializer):
    """
    quantity_delta > 0 restocks, < 0 corrects down (never below zero).
    """
    quantity_delta = serializers.IntegerField()

    def validate_quantity_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("quantity_delta cannot be 0")
        return value


class StockMovementSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "movement_type",
            "reason",
            "quantity",
            "stock_after",
            "order",
            "order_number",
            "performed_by",
            "created_at",
        ]
        read_only_fields = fields
