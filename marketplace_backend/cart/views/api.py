# cart/views/api.py

"""
CART API VIEWS

Purpose:
- One cart endpoint set for BOTH signed-in users and anonymous shoppers.
- Signed-in: the cart belongs to request.user.
- Anonymous: the cart belongs to the Django session (created on first write).

Hard rules:
- Views only resolve the owner + validate request shape.
  Every rule (quantity, availability, ownership) lives in cart.services.cart_store.
- Every response after a mutation returns the fresh cart view.
"""

from __future__ import annotations

from django.db import DatabaseError
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from cart.serializers import (
    AddCartItemInputSerializer,
    CartSerializer,
    CartValidationSerializer,
    UpdateCartItemInputSerializer,
)
from cart.services import cart_store
from cart.services.cart_store import CartOwner
from common.errors import (
    ForbiddenError,
    MarketplaceError,
    domain_error_response,
    infrastructure_error_response,
)
from permissions.roles import CAP_CART_USE, has_capability


# =====================================================
# HELPERS
# =====================================================

def _resolve_owner(request, *, create_session: bool) -> CartOwner | None:
    """
    Resolve the acting cart owner.

    Returns None for an anonymous visitor without a session when
    `create_session` is False (read paths: there is no cart to show).
    """
    user = request.user
    if user and user.is_authenticated:
        if not has_capability(user, CAP_CART_USE):
            raise ForbiddenError("This account cannot use a shopping cart.")
        return CartOwner.for_user(user)

    session = request.session
    if not session.session_key:
        if not create_session:
            return None
        session.create()

    return CartOwner.for_session(session.session_key)


def _cart_payload(owner: CartOwner | None):
    if owner is None:
        return CartSerializer(cart_store.CartView(cart_id=None)).data
    return CartSerializer(cart_store.view(owner)).data


# =====================================================
# CART
# =====================================================

class CartView(APIView):
    """
    GET    /api/cart/   current cart with live totals
    DELETE /api/cart/   remove every line
    """

    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    @extend_schema(
        responses={200: CartSerializer},
        description="Current cart (signed-in user or anonymous session). Never creates a cart.",
    )
    def get(self, request):
        try:
            owner = _resolve_owner(request, create_session=False)
            return Response(_cart_payload(owner), status=status.HTTP_200_OK)
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="cart_view")

    @extend_schema(responses={200: CartSerializer}, description="Empty the cart.")
    def delete(self, request):
        try:
            owner = _resolve_owner(request, create_session=False)
            if owner is not None:
                cart_store.clear(owner)
            return Response(_cart_payload(owner), status=status.HTTP_200_OK)
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="cart_clear")


class CartItemsView(APIView):
    """POST /api/cart/items/"""

    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={201: CartSerializer},
        description="Add a product to the cart (increments the line if already present).",
        examples=[
            OpenApiExample(
                "Add two units",
                value={"product_id": "7b7f0f8e-6a0c-4a55-9d7e-3f1c2a9b0d11", "quantity": 2},
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = AddCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            owner = _resolve_owner(request, create_session=True)
            cart_store.add_item(
                owner,
                product_id=serializer.validated_data["product_id"],
                quantity=serializer.validated_data["quantity"],
            )
            return Response(_cart_payload(owner), status=status.HTTP_201_CREATED)
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="cart_add_item")


class CartItemDetailView(APIView):
    """
    PATCH  /api/cart/items/<item_id>/   set quantity
    DELETE /api/cart/items/<item_id>/   remove line
    """

    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    @extend_schema(request=UpdateCartItemInputSerializer, responses={200: CartSerializer})
    def patch(self, request, item_id):
        serializer = UpdateCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            owner = _resolve_owner(request, create_session=True)
            cart_store.update_quantity(
                owner,
                item_id=item_id,
                quantity=serializer.validated_data["quantity"],
            )
            return Response(_cart_payload(owner), status=status.HTTP_200_OK)
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="cart_update_item")

    @extend_schema(responses={200: CartSerializer})
    def delete(self, request, item_id):
        try:
            owner = _resolve_owner(request, create_session=True)
            cart_store.remove_item(owner, item_id=item_id)
            return Response(_cart_payload(owner), status=status.HTTP_200_OK)
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="cart_remove_item")


class CartValidateView(APIView):
    """
    GET /api/cart/validate/

    Advisory pre-checkout check. Nothing is reserved: checkout re-validates
    under row locks.
    """

    permission_classes = [AllowAny]
    serializer_class = CartValidationSerializer

    @extend_schema(responses={200: CartValidationSerializer})
    def get(self, request):
        try:
            owner = _resolve_owner(request, create_session=False)
            problems = cart_store.validate_cart(owner) if owner is not None else []
        except MarketplaceError as exc:
            return domain_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, operation="cart_validate")

        data = CartValidationSerializer({"valid": not problems, "problems": problems}).data
        return Response(data, status=status.HTTP_200_OK)
