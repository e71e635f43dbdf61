from __future__ import annotations

from dataclasses import asdict

from django.conf import settings

from apps.notifications.application.use_cases.deliver_notifications import DeliverNotificationsUseCase
from apps.notifications.infrastructure.stream import OrderStreamBroker
from apps.orders.domain.ports import NotificationRequest, OrderEvent


class OrderMessageRouter:
    """
    Sends each published message to the side that handles it.

    Lifecycle events go to the live stream. Notification requests become
    inbox rows, through Celery when NOTIFICATIONS_ASYNC is on.
    """

    def __init__(self, *, stream: OrderStreamBroker):
        self.stream = stream

    def route(self, message: OrderEvent | NotificationRequest) -> None:
        if isinstance(message, OrderEvent):
            self.stream.broadcast(message)
            return
        if isinstance(message, NotificationRequest):
            self.deliver(message)
            return
        raise TypeError(f"Unsupported message type: {type(message).__name__}")

    @staticmethod
    def deliver(request: NotificationRequest) -> None:
        if getattr(settings, "NOTIFICATIONS_ASYNC", False):
            from apps.notifications.tasks import deliver_notifications_task

            payload = asdict(request)
            payload["recipient_roles"] = sorted(request.recipient_roles)
            payload["recipient_ids"] = list(request.recipient_ids)
            deliver_notifications_task.delay(payload=payload)
            return
        DeliverNotificationsUseCase.execute(request)
