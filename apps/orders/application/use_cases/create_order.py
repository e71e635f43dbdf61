from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction
from django.utils import timezone

from apps.accounts.domain.types import Actor
from apps.orders.application.services.config import vat_rate_percent
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.aggregation import initial_frame_cutting_status
from apps.orders.domain.errors import OrderValidationError
from apps.orders.domain.policies import ensure_order_desk, generate_order_code
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.snapshots import OrderFieldsSnapshot, build_proposal
from apps.orders.domain.statuses import OrderStatus, PrintingStatus
from apps.orders.models import Order

logger = logging.getLogger("framehouse.orders")


@dataclass(frozen=True)
class CreateOrderCommand:
    actor: Actor
    code: str
    fields: dict = field(default_factory=dict)
    printing_status: str | None = None
    frame_cutting_status: str | None = None


class CreateOrderUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: CreateOrderCommand) -> Order:
        actor = cmd.actor
        ensure_order_desk(actor.roles, "create orders")

        code = generate_order_code(cmd.code, timezone.localdate())
        if Order.objects.filter(code=code).exists():
            raise OrderValidationError(f"Order code {code} already exists.", field="code")
        if not cmd.fields.get("paintings"):
            raise OrderValidationError("An order needs at least one painting.", field="paintings")

        snapshot = build_proposal(OrderFieldsSnapshot(), cmd.fields, vat_rate_percent=vat_rate_percent())
        order = Order.objects.create(
            code=code,
            customer_name=snapshot.customer_name,
            customer_phone=snapshot.customer_phone,
            status=OrderStatus.NEW.value,
            printing_status=cmd.printing_status or PrintingStatus.NOT_PRINTED.value,
            frame_cutting_status=initial_frame_cutting_status(snapshot.paintings, cmd.frame_cutting_status),
            created_by_id=actor.user_id,
        )

        aggregate = OrderAggregate(order, actor)
        aggregate.apply_fields(snapshot)
        aggregate.record(f"{actor.name} created the order")
        aggregate.save()

        logger.info("order_created", extra={"order_id": order.id, "code": code, "actor_id": actor.user_id})

        self.notifier.status_roles(
            order,
            actor,
            title="New order",
            message=f"{actor.name} created order {code}",
            action_type="create",
        )
        self.notifier.mentions(order, actor, snapshot.mention_ids)
        for painting in snapshot.paintings:
            self.notifier.mentions(order, actor, painting.mention_ids, where="a painting note")
        self.notifier.order_event(order, "created")
        return order
