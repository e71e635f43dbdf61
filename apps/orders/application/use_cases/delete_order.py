from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from django.db import transaction
from django.utils import timezone

from apps.accounts.domain.types import Actor
from apps.orders.application.services.config import admin_secret_code
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.domain.errors import OrderNotFoundError, OrderValidationError
from apps.orders.domain.policies import ensure_admin, ensure_order_desk, ensure_secret
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.models import Order

logger = logging.getLogger("framehouse.orders")


@dataclass(frozen=True)
class DeleteOrderCommand:
    actor: Actor
    order_id: int
    secret_code: str


@dataclass(frozen=True)
class PurgeOrdersCommand:
    actor: Actor
    months: int
    secret_code: str


@dataclass(frozen=True)
class PurgeOrdersResult:
    deleted_count: int
    cutoff: datetime


class DeleteOrderUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: DeleteOrderCommand) -> int:
        ensure_order_desk(cmd.actor.roles, "delete orders")
        ensure_secret(cmd.secret_code, admin_secret_code())

        order = Order.objects.select_for_update().filter(id=cmd.order_id).first()
        if not order:
            raise OrderNotFoundError("Order not found.")
        order_id, code = order.id, order.code
        # Paintings, drafts, history, shares and assignments cascade.
        order.delete()

        logger.warning("order_deleted", extra={"order_id": order_id, "code": code, "actor_id": cmd.actor.user_id})
        self.notifier.deleted(order_id, code)
        return order_id


def purge_cutoff(months: int, now: datetime | None = None) -> datetime:
    """Midnight (local time) `months` calendar months before `now`."""
    now = timezone.localtime(now or timezone.now())
    year, month = divmod(now.year * 12 + now.month - 1 - months, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return timezone.make_aware(datetime.combine(date(year, month, day), time.min))


class PurgeOrdersUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: PurgeOrdersCommand) -> PurgeOrdersResult:
        ensure_admin(cmd.actor.roles, "purge old orders")
        ensure_secret(cmd.secret_code, admin_secret_code())
        try:
            months = int(cmd.months)
        except (TypeError, ValueError) as exc:
            raise OrderValidationError("Months must be a whole number.", field="months") from exc
        if months <= 0:
            raise OrderValidationError("Months must be greater than 0.", field="months")

        cutoff = purge_cutoff(months)
        old = Order.objects.filter(created_at__lt=cutoff)
        ids = list(old.values_list("id", flat=True))
        if ids:
            Order.objects.filter(id__in=ids).delete()

        logger.warning(
            "orders_purged",
            extra={"count": len(ids), "cutoff": cutoff.isoformat(), "actor_id": cmd.actor.user_id},
        )
        return PurgeOrdersResult(deleted_count=len(ids), cutoff=cutoff)
