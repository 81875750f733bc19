# orders/serializers/order.py

"""
ORDER SERIALIZERS

Output is read-only: orders are only created by checkout and only changed
through the status / tracking endpoints.
"""

from rest_framework import serializers

from orders.models import Order, OrderItem


# =====================================================
# INPUT
# =====================================================

class CheckoutInputSerializer(serializers.Serializer):
    """
    Shipping + contact details captured at checkout.
    payment_method is opaque to the backend (default COD).
    """

    customer_name = serializers.CharField(max_length=120)
    customer_email = serializers.EmailField()
    customer_phone = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    shipping_address = serializers.CharField(max_length=255)
    shipping_city = serializers.CharField(max_length=100)
    shipping_state = serializers.CharField(max_length=100)
    shipping_zip_code = serializers.CharField(max_length=20)
    shipping_country = serializers.CharField(max_length=100, required=False, default="USA")
    order_notes = serializers.CharField(required=False, allow_blank=True, default="")

    payment_method = serializers.CharField(max_length=32, required=False, default="COD")


class OrderStatusInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)


class TrackingInputSerializer(serializers.Serializer):
    tracking_number = serializers.CharField(max_length=100, allow_blank=True)


# =====================================================
# OUTPUT
# =====================================================

class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "seller",
            "product_name",
            "product_sku",
            "product_image",
            "unit_price",
            "quantity",
            "line_total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    customer_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "customer_name",
            "customer_email",
            "customer_phone",
            "shipping_address",
            "shipping_city",
            "shipping_state",
            "shipping_zip_code",
            "shipping_country",
            "order_notes",
            "payment_method",
            "subtotal",
            "shipping_cost",
            "tax",
            "total_amount",
            "tracking_number",
            "items",
            "created_at",
            "updated_at",
            "shipped_at",
            "delivered_at",
            "cancelled_at",
        ]
        read_only_fields = fields
