from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "recipient", "event", "level", "is_read", "created_at")
    list_filter = ("event", "level", "is_read")
    search_fields = ("recipient__email", "order__order_number", "title")
    readonly_fields = (
        "id",
        "recipient",
        "order",
        "event",
        "title",
        "message",
        "level",
        "link",
        "created_at",
        "read_at",
    )
