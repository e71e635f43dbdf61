"""
Per-painting progress: printed, received by production, received by packing.

Each flag is set on one painting, then the order's printing status and
status are re-aggregated from all of its paintings in the same transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.aggregation import (
    ItemState,
    aggregate_framing_receipt,
    aggregate_packing_receipt,
    aggregate_printing,
    ensure_receivable_by_packing,
    ensure_receivable_by_production,
)
from apps.orders.domain.errors import InvalidTransitionError, OrderForbiddenError
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.models import Order, Painting


@dataclass(frozen=True)
class PaintingStepCommand:
    actor: Actor
    order_id: int
    painting_id: int
    expected_version: int | None = None


def _item(painting: Painting) -> ItemState:
    return ItemState(
        painting_type=painting.painting_type,
        is_printed=painting.is_printed,
        received_by_production=painting.received_by_production,
        received_by_packing=painting.received_by_packing,
    )


class _PaintingStep(ABC):
    station: Role

    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: PaintingStepCommand) -> Order:
        actor = cmd.actor
        if not actor.has_any(Role.ADMIN, self.station):
            raise OrderForbiddenError(f"Only {self.station.value} can do this.")

        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        painting = aggregate.painting(cmd.painting_id)
        self.mark(painting, actor)

        order = aggregate.order
        outcome = self.aggregate(aggregate.item_states(), status=order.status, printing_status=order.printing_status)
        aggregate.apply_outcome(outcome)
        aggregate.save()

        for status in aggregate.entered:
            self.notifier.status_entered(order, actor, status)
        self.notifier.order_event(order, "updated", painting_id=painting.id)
        return order

    @abstractmethod
    def mark(self, painting: Painting, actor: Actor) -> None:
        """Set this station's flag on one painting, or raise if it cannot be set."""

    @abstractmethod
    def aggregate(self, items, *, status, printing_status): ...


class MarkPaintingPrintedUseCase(_PaintingStep):
    station = Role.PRINTING

    def mark(self, painting: Painting, actor: Actor) -> None:
        if painting.is_printed:
            raise InvalidTransitionError("Painting is already printed.")
        painting.is_printed = True
        painting.printed_by_id = actor.user_id
        painting.printed_at = timezone.now()
        painting.save(update_fields=["is_printed", "printed_by", "printed_at"])

    def aggregate(self, items, *, status, printing_status):
        return aggregate_printing(items, status=status, printing_status=printing_status)


class ReceivePaintingByProductionUseCase(_PaintingStep):
    station = Role.PRODUCTION

    def mark(self, painting: Painting, actor: Actor) -> None:
        ensure_receivable_by_production(_item(painting))
        painting.received_by_production = True
        painting.production_received_by_id = actor.user_id
        painting.production_received_at = timezone.now()
        painting.save(update_fields=["received_by_production", "production_received_by", "production_received_at"])

    def aggregate(self, items, *, status, printing_status):
        return aggregate_framing_receipt(items, status=status, printing_status=printing_status)


class ReceivePaintingByPackingUseCase(_PaintingStep):
    station = Role.PACKING

    def mark(self, painting: Painting, actor: Actor) -> None:
        ensure_receivable_by_packing(_item(painting))
        painting.received_by_packing = True
        painting.packing_received_by_id = actor.user_id
        painting.packing_received_at = timezone.now()
        painting.save(update_fields=["received_by_packing", "packing_received_by", "packing_received_at"])

    def aggregate(self, items, *, status, printing_status):
        return aggregate_packing_receipt(items, status=status, printing_status=printing_status)
