# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Public catalog browsing (AllowAny): ACTIVE products only.
- Sellers see their own listings in every status (?mine=1).
- Stock adjustments (restock / correction) by the owning seller or an admin,
  routed through the inventory ledger so every change is audited.

Catalog CRUD (create/edit listings) is handled by the catalog service / admin.
"""

from django.db import DatabaseError
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from common.errors import (
    ForbiddenError,
    MarketplaceError,
    domain_error_response,
    infrastructure_error_response,
)
from permissions.roles import CAP_INVENTORY_ADJUST, HasCapability, has_capability, is_admin
from products.models import Product, StockMovement
from products.serializers import (
    ProductSerializer,
    StockAdjustmentInputSerializer,
    StockMovementSerializer,
)
from products.services.inventory import adjust_stock


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Product endpoints.

    Public:
    - GET /products/products/?q=<search>
    - GET /products/products/<id>/

    Seller / admin:
    - GET  /products/products/?mine=1
    - POST /products/products/<id>/adjust-stock/
    - GET  /products/products/<id>/movements/
    """

    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    required_capability = CAP_INVENTORY_ADJUST

    def _wants_own_listings(self) -> bool:
        user = self.request.user
        mine = (self.request.query_params.get("mine") or "").strip().lower()
        return bool(user and user.is_authenticated and mine in {"1", "true", "yes"})

    def get_queryset(self):
        qs = Product.objects.select_related("seller")

        if self.action in {"adjust_stock", "movements"}:
            return qs

        if self._wants_own_listings():
            qs = qs.filter(seller=self.request.user)
        else:
            qs = qs.filter(status=Product.Status.ACTIVE)

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(name__icontains=q) | qs.filter(sku__iexact=q)

        return qs.order_by("-created_at")

    def _assert_can_manage(self, product: Product) -> None:
        user = self.request.user
        if is_admin(user):
            return
        if has_capability(user, CAP_INVENTORY_ADJUST) and product.seller_id == user.id:
            return
        raise ForbiddenError("Only the listing's seller or an admin can manage its stock.")

    @extend_schema(
        parameters=[
            OpenApiParameter("q", str, description="Search by name (contains) or exact SKU"),
            OpenApiParameter("mine", str, description="1 = seller's own listings in any status"),
        ],
        responses={200: ProductSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        request=StockAdjustmentInputSerializer,
        responses={200: ProductSerializer},
        description="Restock or correct a product's stock (audited).",
    )
    @action(
        detail=True,
        methods=["post"],
        url_path="adjust-stock",
        permission_classes=[IsAuthenticated, HasCapability],
    )
    def adjust_stock(self, request, pk=None):
        product = self.get_object()

        serializer = StockAdjustmentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            self._assert_can_manage(product)
            adjust_stock(
                product_id=product.pk,
                quantity_delta=serializer.validated_data["quantity_delta"],
                user=request.user,
            )
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="adjust_stock")

        product.refresh_from_db()
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    @extend_schema(responses={200: StockMovementSerializer(many=True)})
    @action(
        detail=True,
        methods=["get"],
        url_path="movements",
        permission_classes=[IsAuthenticated, HasCapability],
    )
    def movements(self, request, pk=None):
        product = self.get_object()
        try:
            self._assert_can_manage(product)
        except MarketplaceError as exc:
            return domain_error_response(exc)

        rows = (
            StockMovement.objects.filter(product=product)
            .select_related("order")
            .order_by("-created_at")
        )
        return Response(StockMovementSerializer(rows, many=True).data)
