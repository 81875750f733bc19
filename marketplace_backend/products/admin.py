# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe stock):

- Opening stock may be set when a product is created.
- After that, `stock` is read-only here: changes go through the inventory
  ledger (adjust-stock endpoint / checkout / cancellation) so every change
  leaves a StockMovement row.
- StockMovement rows are immutable and cannot be added, edited or deleted.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Product, StockMovement


# =====================================================
# STOCK MOVEMENT INLINE (READ-ONLY)
# =====================================================

class StockMovementInline(admin.TabularInline):
    model = StockMovement
    extra = 0
    can_delete = False
    fields = (
        "created_at",
        "reason",
        "movement_type",
        "quantity",
        "stock_after",
        "order",
        "performed_by",
    )
    readonly_fields = fields
    ordering = ("-created_at",)

    def has_add_permission(self, request, obj=None):
        return False


# =====================================================
# PRODUCT ADMIN
# =====================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "seller", "price", "stock", "status", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("name", "sku", "seller__email")
    ordering = ("-created_at",)
    inlines = [StockMovementInline]

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ("stock", "created_at", "updated_at")
        return ("created_at", "updated_at")


# =====================================================
# STOCK MOVEMENT ADMIN (FULLY IMMUTABLE)
# =====================================================

@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "product",
        "reason",
        "movement_type",
        "quantity",
        "stock_after",
        "order",
        "performed_by",
    )
    list_filter = ("reason", "movement_type", "created_at")
    search_fields = ("product__name", "product__sku", "order__order_number")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
