from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.notifications.application.use_cases.inbox import (
    ListInboxUseCase,
    MarkAllNotificationsReadUseCase,
    MarkNotificationReadUseCase,
)
from apps.notifications.domain.errors import NotificationNotFoundError
from apps.notifications.interfaces.api.serializers import NotificationSerializer


def _success(*, data, http_status: int = status.HTTP_200_OK, **extra) -> Response:
    return Response({"success": True, "data": data, **extra}, status=http_status)


class NotificationListAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        unread_only = (request.query_params.get("unread") or "").lower() in ("1", "true", "yes")
        inbox = ListInboxUseCase.execute(user_id=request.user.id, unread_only=unread_only)
        return _success(
            data=NotificationSerializer(inbox.notifications, many=True).data,
            unread_count=inbox.unread_count,
        )


class NotificationReadAPI(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request, notification_id: int):
        try:
            notification = MarkNotificationReadUseCase.execute(user_id=request.user.id, notification_id=notification_id)
        except NotificationNotFoundError as exc:
            return Response({"success": False, "message": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return _success(data=NotificationSerializer(notification).data)


class NotificationReadAllAPI(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request):
        updated = MarkAllNotificationsReadUseCase.execute(user_id=request.user.id)
        return _success(data={"updated": updated})
