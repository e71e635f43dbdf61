from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.aggregation import aggregate_framing_receipt, requires_framing
from apps.orders.domain.errors import InvalidTransitionError, OrderForbiddenError, OrderValidationError
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.statuses import FrameCuttingStatus, OrderStatus, PrintingStatus, ReceiveType
from apps.orders.models import Order


@dataclass(frozen=True)
class ReceiveOrderCommand:
    actor: Actor
    order_id: int
    type: str
    expected_version: int | None = None


class ReceiveOrderUseCase:
    """Order-level hand-over of printed artwork (or cut frames) to the next station."""

    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: ReceiveOrderCommand) -> Order:
        actor = cmd.actor
        try:
            kind = ReceiveType(cmd.type)
        except ValueError as exc:
            raise OrderValidationError("Type must be 'artwork' or 'frame'.", field="type") from exc

        production = Role.PRODUCTION in actor.roles
        packing = Role.PACKING in actor.roles
        if not production and not packing:
            raise OrderForbiddenError("Only production or packing can receive paintings.")

        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        order = aggregate.order

        match kind:
            case ReceiveType.ARTWORK:
                self._artwork(aggregate, production=production, packing=packing)
            case ReceiveType.FRAME:
                if not production:
                    raise OrderForbiddenError("Only production can receive frames.")
                if order.frame_cutting_status != FrameCuttingStatus.CUT:
                    raise InvalidTransitionError("Frames can only be received once they are cut.")
                aggregate.record(f"{actor.name} received the frames")
                aggregate.assign(Role.PRODUCTION.value)

        aggregate.save()
        for status in aggregate.entered:
            self.notifier.status_entered(order, actor, status)
        self.notifier.order_event(order, "received", type=kind.value)
        return order

    @staticmethod
    def _artwork(aggregate: OrderAggregate, *, production: bool, packing: bool) -> None:
        order = aggregate.order
        actor = aggregate.actor
        if order.printing_status != PrintingStatus.PRINTED:
            raise InvalidTransitionError("Paintings can only be received once printed.")

        now = timezone.now()
        if packing and order.status == OrderStatus.AWAITING_PACKING:
            for painting in aggregate.paintings():
                if painting.is_printed and not requires_framing(painting) and not painting.received_by_packing:
                    painting.received_by_packing = True
                    painting.packing_received_by_id = actor.user_id
                    painting.packing_received_at = now
                    painting.save(update_fields=["received_by_packing", "packing_received_by", "packing_received_at"])
            aggregate.set_printing_status(
                PrintingStatus.RECEIVED_BY_PACKING.value, f"{actor.name} (packing) received the paintings"
            )
            aggregate.assign(Role.PACKING.value)
        elif production and order.status != OrderStatus.AWAITING_PACKING:
            for painting in aggregate.paintings():
                if painting.is_printed and requires_framing(painting) and not painting.received_by_production:
                    painting.received_by_production = True
                    painting.production_received_by_id = actor.user_id
                    painting.production_received_at = now
                    painting.save(
                        update_fields=["received_by_production", "production_received_by", "production_received_at"]
                    )
            aggregate.set_printing_status(
                PrintingStatus.RECEIVED_BY_PRODUCTION.value, f"{actor.name} (production) received the paintings"
            )
            aggregate.assign(Role.PRODUCTION.value)
            aggregate.apply_outcome(
                aggregate_framing_receipt(
                    aggregate.item_states(), status=order.status, printing_status=order.printing_status
                )
            )
        else:
            raise InvalidTransitionError("Paintings cannot be received in the order's current status.")
