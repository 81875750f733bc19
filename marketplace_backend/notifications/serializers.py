from rest_framework import serializers

from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True, allow_null=True)
    order_number = serializers.CharField(source="order.order_number", read_only=True, default=None)

    class Meta:
        model = Notification
        fields = [
            "id",
            "event",
            "title",
            "message",
            "level",
            "link",
            "order_id",
            "order_number",
            "is_read",
            "created_at",
            "read_at",
        ]
        read_only_fields = fields
