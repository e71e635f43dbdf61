from __future__ import annotations

import logging

from apps.accounts.application.services.identity_service import StaffDirectory
from apps.notifications.models import Notification
from apps.orders.domain.ports import NotificationRequest

logger = logging.getLogger("framehouse.notifications")


def request_from_payload(payload: dict) -> NotificationRequest:
    return NotificationRequest(
        title=payload.get("title", ""),
        message=payload.get("message", ""),
        order_id=payload.get("order_id"),
        sender_id=payload.get("sender_id"),
        recipient_roles=frozenset(payload.get("recipient_roles") or ()),
        recipient_ids=tuple(payload.get("recipient_ids") or ()),
        action_type=payload.get("action_type") or "edit",
        metadata=payload.get("metadata") or {},
    )


class DeliverNotificationsUseCase:
    @staticmethod
    def recipients(request: NotificationRequest) -> list[int]:
        ids: set[int] = set()
        if request.recipient_roles:
            ids.update(StaffDirectory.user_ids_with_roles(request.recipient_roles, exclude_user_id=request.sender_id))
        if request.recipient_ids:
            ids.update(StaffDirectory.active_user_ids(request.recipient_ids))
        ids.discard(request.sender_id)
        return sorted(ids)

    @staticmethod
    def execute(request: NotificationRequest) -> int:
        recipients = DeliverNotificationsUseCase.recipients(request)
        if not recipients:
            return 0

        link = f"/orders/{request.order_id}" if request.order_id else ""
        Notification.objects.bulk_create(
            [
                Notification(
                    recipient_id=user_id,
                    sender_id=request.sender_id,
                    title=request.title,
                    message=request.message,
                    type=request.action_type,
                    link=link,
                    order_id=request.order_id,
                    metadata=request.metadata,
                )
                for user_id in recipients
            ]
        )
        logger.info(
            "notifications_delivered",
            extra={"order_id": request.order_id, "type": request.action_type, "count": len(recipients)},
        )
        return len(recipients)
