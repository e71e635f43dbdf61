from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from django.apps import apps

from apps.orders.domain.ports import NotificationRequest, OrderEvent

logger = logging.getLogger("framehouse.notifications")

Handler = Callable[[OrderEvent | NotificationRequest], None]


class InProcessEventBus:
    """
    Publish/subscribe bus owned by the notifications AppConfig.

    Publishing happens after the order transaction committed, so a failing
    subscriber is logged and skipped rather than propagated to the caller.
    """

    def __init__(self) -> None:
        self._handlers: list[Handler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Handler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def publish(self, message: OrderEvent | NotificationRequest) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(message)
            except Exception:
                logger.exception(
                    "notification_handler_failed",
                    extra={"message_type": type(message).__name__, "order_id": getattr(message, "order_id", None)},
                )


def get_event_bus() -> InProcessEventBus:
    return apps.get_app_config("notifications").bus
