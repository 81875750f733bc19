# orders/views.py

"""
ORDER VIEWSET

Customer:
- POST /api/orders/checkout/          cart → PENDING order
- GET  /api/orders/                   own orders (?status=PENDING&status=SHIPPED)
- GET  /api/orders/<id>/
- POST /api/orders/<id>/cancel/       while PENDING / CONFIRMED / PROCESSING

Seller (orders containing their items) / admin (all orders):
- GET  /api/orders/
- POST /api/orders/<id>/status/       {"status": "SHIPPED"}
- POST /api/orders/<id>/cancel/
- POST /api/orders/<id>/tracking/     {"tracking_number": "..."}

Every business failure is returned as {"error": {"code", "message", "details"}}.
"""

from __future__ import annotations

from django.db import DatabaseError
from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.errors import (
    ForbiddenError,
    MarketplaceError,
    domain_error_response,
    infrastructure_error_response,
)
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import (
    CheckoutInputSerializer,
    OrderSerializer,
    OrderStatusInputSerializer,
    TrackingInputSerializer,
)
from orders.services.checkout_orchestrator import ShippingDetails, place_order
from orders.services.order_status import (
    OrderNotFoundError,
    can_view,
    request_cancellation,
    transition_order,
    update_tracking_number,
)
from permissions.roles import CAP_ORDER_PLACE, has_capability, is_admin


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter
    lookup_value_regex = r"[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}"

    def get_queryset(self):
        user = self.request.user
        qs = Order.objects.prefetch_related("items")

        if not is_admin(user):
            qs = qs.filter(Q(customer=user) | Q(items__seller=user)).distinct()

        return qs.order_by("-created_at")

    def _fresh(self, order: Order):
        order = Order.objects.prefetch_related("items").get(pk=order.pk)
        return OrderSerializer(order).data

    # ------------------------------------------------------------------
    # READ
    # ------------------------------------------------------------------

    def retrieve(self, request, pk=None):
        order = Order.objects.prefetch_related("items").filter(pk=pk).first()
        if order is None or not can_view(request.user, order):
            return domain_error_response(OrderNotFoundError(details={"order_id": str(pk)}))
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # CHECKOUT
    # ------------------------------------------------------------------

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: OrderSerializer},
        description="Place an order from the signed-in user's cart.",
        examples=[
            OpenApiExample(
                "Cash on delivery",
                value={
                    "customer_name": "Ada Buyer",
                    "customer_email": "ada@example.com",
                    "shipping_address": "1 Market Street",
                    "shipping_city": "Springfield",
                    "shipping_state": "IL",
                    "shipping_zip_code": "62701",
                    "shipping_country": "USA",
                    "payment_method": "COD",
                },
                request_only=True,
            ),
        ],
    )
    @action(detail=False, methods=["post"], url_path="checkout", url_name="checkout")
    def checkout(self, request):
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = dict(serializer.validated_data)
        payment_method = data.pop("payment_method", None)

        try:
            if not has_capability(request.user, CAP_ORDER_PLACE):
                raise ForbiddenError("This account cannot place orders.")
            order = place_order(
                user=request.user,
                shipping=ShippingDetails(**data),
                payment_method=payment_method,
            )
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="checkout")

        return Response(self._fresh(order), status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    @extend_schema(request=OrderStatusInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="status", url_name="status")
    def set_status(self, request, pk=None):
        serializer = OrderStatusInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = transition_order(
                order_id=pk,
                new_status=serializer.validated_data["status"],
                actor=request.user,
            )
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="order_transition")

        return Response(self._fresh(order), status=status.HTTP_200_OK)

    @extend_schema(request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="cancel", url_name="cancel")
    def cancel(self, request, pk=None):
        try:
            order = request_cancellation(order_id=pk, actor=request.user)
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="order_cancel")

        return Response(self._fresh(order), status=status.HTTP_200_OK)

    @extend_schema(request=TrackingInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="tracking", url_name="tracking")
    def tracking(self, request, pk=None):
        serializer = TrackingInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = update_tracking_number(
                order_id=pk,
                tracking_number=serializer.validated_data["tracking_number"],
                actor=request.user,
            )
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="order_tracking")

        return Response(self._fresh(order), status=status.HTTP_200_OK)
