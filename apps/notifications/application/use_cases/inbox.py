from __future__ import annotations

from dataclasses import dataclass

from django.db.models import QuerySet

from apps.notifications.domain.errors import NotificationNotFoundError
from apps.notifications.models import Notification

INBOX_LIMIT = 50


@dataclass(frozen=True)
class Inbox:
    notifications: list[Notification]
    unread_count: int


class ListInboxUseCase:
    @staticmethod
    def execute(*, user_id: int, unread_only: bool = False, limit: int = INBOX_LIMIT) -> Inbox:
        qs: QuerySet = Notification.objects.select_related("sender").filter(recipient_id=user_id)
        unread_count = qs.filter(is_read=False).count()
        if unread_only:
            qs = qs.filter(is_read=False)
        return Inbox(notifications=list(qs[: max(1, min(limit, INBOX_LIMIT))]), unread_count=unread_count)


class MarkNotificationReadUseCase:
    @staticmethod
    def execute(*, user_id: int, notification_id: int) -> Notification:
        notification = Notification.objects.filter(id=notification_id, recipient_id=user_id).first()
        if not notification:
            raise NotificationNotFoundError("Notification not found.")
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return notification


class MarkAllNotificationsReadUseCase:
    @staticmethod
    def execute(*, user_id: int) -> int:
        return Notification.objects.filter(recipient_id=user_id, is_read=False).update(is_read=True)
