from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class OrderEvent:
    """Lifecycle event pushed to live subscribers (order list screens)."""

    order_id: int
    action: str
    target_roles: frozenset[str] = frozenset()
    metadata: dict = field(default_factory=dict)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def as_payload(self) -> dict:
        payload = {"order_id": self.order_id, "action": self.action, "timestamp": self.timestamp}
        payload.update(self.metadata)
        if self.target_roles:
            payload["target_roles"] = sorted(self.target_roles)
        return payload


@dataclass(frozen=True)
class NotificationRequest:
    """Ask the notification side to store messages for a role audience and/or explicit users."""

    title: str
    message: str
    order_id: int | None = None
    sender_id: int | None = None
    recipient_roles: frozenset[str] = frozenset()
    recipient_ids: tuple[int, ...] = ()
    action_type: str = "edit"
    metadata: dict = field(default_factory=dict)


class OrderEventPublisher(Protocol):
    def publish(self, message: OrderEvent | NotificationRequest) -> None:
        ...
