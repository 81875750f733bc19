# notifications/views.py

"""
NOTIFICATION VIEWS

- GET  /api/notifications/              own notifications (?unread=1)
- POST /api/notifications/<id>/read/    mark one as read
- POST /api/notifications/read-all/     mark all as read
"""

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.errors import NotFoundError, domain_error_response
from notifications.models import Notification
from notifications.serializers import NotificationSerializer


class NotificationListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        qs = Notification.objects.filter(recipient=self.request.user).select_related("order")
        unread = (self.request.query_params.get("unread") or "").strip().lower()
        if unread in {"1", "true", "yes"}:
            qs = qs.filter(is_read=False)
        return qs.order_by("-created_at")

    @extend_schema(
        parameters=[OpenApiParameter("unread", str, description="1 = unread only")],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class NotificationReadView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    @extend_schema(request=None, responses={200: NotificationSerializer})
    def post(self, request, notification_id):
        notification = (
            Notification.objects.filter(pk=notification_id, recipient=request.user)
            .select_related("order")
            .first()
        )
        if notification is None:
            return domain_error_response(NotFoundError("Notification not found."))

        notification.mark_read()
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)


class NotificationReadAllView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: dict})
    def post(self, request):
        updated = Notification.objects.filter(recipient=request.user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        return Response({"updated": updated}, status=status.HTTP_200_OK)
