from __future__ import annotations

from typing import Any

from celery import shared_task

from apps.notifications.application.use_cases.deliver_notifications import (
    DeliverNotificationsUseCase,
    request_from_payload,
)


@shared_task(
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)
def deliver_notifications_task(*, payload: dict[str, Any]) -> int:
    return DeliverNotificationsUseCase.execute(request_from_payload(payload))
