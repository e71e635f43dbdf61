from __future__ import annotations

import itertools
import logging
import queue
import threading
from dataclasses import dataclass, field

from apps.orders.domain.ports import OrderEvent

logger = logging.getLogger("framehouse.notifications")

# Events a slow client has not drained yet are dropped past this size.
MAX_PENDING_EVENTS = 100


@dataclass
class StreamSubscription:
    id: int
    user_id: int
    roles: frozenset[str]
    queue: queue.Queue = field(default_factory=lambda: queue.Queue(maxsize=MAX_PENDING_EVENTS))

    def wants(self, event: OrderEvent) -> bool:
        if not event.target_roles:
            return True
        return bool(self.roles & event.target_roles)

    def get(self, timeout: float) -> OrderEvent | None:
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None


class OrderStreamBroker:
    """Fans order events out to the connected event-stream clients."""

    def __init__(self) -> None:
        self._subscriptions: dict[int, StreamSubscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def connect(self, *, user_id: int, roles) -> StreamSubscription:
        subscription = StreamSubscription(
            id=next(self._ids),
            user_id=user_id,
            roles=frozenset(str(role) for role in roles),
        )
        with self._lock:
            self._subscriptions[subscription.id] = subscription
        logger.info("stream_connected", extra={"user_id": user_id, "clients": self.client_count})
        return subscription

    def disconnect(self, subscription: StreamSubscription) -> None:
        with self._lock:
            self._subscriptions.pop(subscription.id, None)
        logger.info("stream_disconnected", extra={"user_id": subscription.user_id, "clients": self.client_count})

    @property
    def client_count(self) -> int:
        return len(self._subscriptions)

    def broadcast(self, event: OrderEvent) -> int:
        with self._lock:
            targets = [sub for sub in self._subscriptions.values() if sub.wants(event)]
        delivered = 0
        for subscription in targets:
            try:
                subscription.queue.put_nowait(event)
                delivered += 1
            except queue.Full:
                logger.warning(
                    "stream_client_lagging",
                    extra={"user_id": subscription.user_id, "order_id": event.order_id},
                )
        return delivered


order_stream = OrderStreamBroker()
