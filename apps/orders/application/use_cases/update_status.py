from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction

from apps.accounts.domain.types import Actor
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.errors import InvalidTransitionError
from apps.orders.domain.policies import ensure_can_set_status
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.state_machine import OrderStateMachine
from apps.orders.domain.statuses import OrderStatus, PrintingStatus
from apps.orders.models import Order


@dataclass(frozen=True)
class UpdateStatusCommand:
    actor: Actor
    order_id: int
    status: str
    note: str = ""
    expected_version: int | None = None


class UpdateStatusUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: UpdateStatusCommand) -> Order:
        actor = cmd.actor
        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        order = aggregate.order

        target = OrderStateMachine.ensure_transition(order.status, cmd.status)
        ensure_can_set_status(actor.roles, target)
        if target == OrderStatus.FRAMED and order.printing_status != PrintingStatus.RECEIVED_BY_PRODUCTION:
            raise InvalidTransitionError(
                "An order can only be framed after production has received the paintings.",
                current=order.status,
                requested=target.value,
            )

        note = (cmd.note or "").strip()
        history_note = f"{actor.name} - {note}" if note else f"{actor.name} moved the order to {OrderStateMachine.label(target)}"
        aggregate.transition(target, history_note)
        aggregate.save()

        self.notifier.status_entered(order, actor, target, note)
        self.notifier.order_event(order, "status_changed")
        return order
