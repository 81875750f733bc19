"""
USER AUTH VIEWS

Login is also the hand-off point for guest carts:
- an anonymous shopper's session cart is merged into the user's cart
  right after authentication succeeds (best-effort, per line)
- lines that could not be merged are reported back in `cart_merge.dropped`
"""

from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from cart.services.cart_merge import merge_guest_cart
from users.serializers import LoginSerializer, RegisterSerializer, UserSerializer

logger = logging.getLogger(__name__)


class LoginResponseSerializer(serializers.Serializer):
    access = serializers.CharField()
    refresh = serializers.CharField()
    user = UserSerializer()
    cart_merge = serializers.DictField()


# ---------------- THROTTLES (TARGETED) ----------------
class AuthAnonThrottle(AnonRateThrottle):
    scope = "anon"


# ---------------------------
# VIEWS
# ---------------------------


class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthAnonThrottle]
    serializer_class = RegisterSerializer

    @extend_schema(
        request=RegisterSerializer,
        responses={201: UserSerializer},
        description="Register a new customer or seller account",
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        return Response(
            {
                "message": "User registered successfully",
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthAnonThrottle]
    serializer_class = LoginSerializer

    @extend_schema(
        request=LoginSerializer,
        responses={200: LoginResponseSerializer},
        description=(
            "Authenticate with email and password. "
            "Any guest cart held by the current session is merged into the user's cart."
        ),
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request=request,
            email=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )

        if not user:
            return Response(
                {"detail": "Invalid email or password"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        session_key = request.session.session_key
        merge = merge_guest_cart(session_key=session_key, user=user)

        if merge.dropped:
            logger.info(
                "Guest cart merged with dropped lines",
                extra={"user_id": str(user.id), "dropped": len(merge.dropped)},
            )

        refresh = RefreshToken.for_user(user)

        return Response(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
                "user": UserSerializer(user).data,
                "cart_merge": merge.as_dict(),
            },
            status=status.HTTP_200_OK,
        )
