from django.contrib import admin

from .models import Cart, CartItem

# =====================================================
# CART ITEM INLINE (READ-ONLY)
# =====================================================


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "quantity",
        "unit_price",
        "line_total",
        "created_at",
    )

    def has_add_permission(self, request, obj=None):
        return False


# =====================================================
# CART ADMIN
# =====================================================
# Carts are shopper-owned: staff can look, not edit.


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "session_key",
        "item_count",
        "total_amount",
        "updated_at",
    )

    readonly_fields = (
        "id",
        "user",
        "session_key",
        "item_count",
        "total_amount",
        "created_at",
        "updated_at",
    )

    search_fields = ("user__email", "session_key")
    list_filter = ("created_at",)

    inlines = [CartItemInline]

    def has_add_permission(self, request):
        return False


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "cart",
        "product",
        "quantity",
        "unit_price",
        "line_total",
        "created_at",
    )
    list_select_related = ("cart", "product")

    readonly_fields = (
        "id",
        "cart",
        "product",
        "quantity",
        "unit_price",
        "line_total",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
