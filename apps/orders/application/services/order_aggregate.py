"""
Write side of an order.

Every mutation goes through one `OrderAggregate`: it loads the order under a
row lock, exposes the pure domain views (snapshot, item states, capability
input), applies changes through a single method per concern and persists the
root with a version-checked UPDATE.
"""

from __future__ import annotations

import logging
from datetime import date

from django.contrib.auth import get_user_model
from django.db.models import F
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.accounts.domain.types import Actor
from apps.orders.domain.aggregation import AggregateOutcome, ItemState, has_cutting_items
from apps.orders.domain.capabilities import CapabilitySnapshot
from apps.orders.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    OrderNotFoundError,
    PaintingNotFoundError,
)
from apps.orders.domain.financials import ProfitShareLine
from apps.orders.domain.snapshots import OrderFieldsSnapshot, PaintingDraft
from apps.orders.domain.state_machine import OrderStateMachine
from apps.orders.domain.statuses import FrameCuttingStatus, OrderStatus
from apps.orders.models import Order, OrderAssignment, OrderStatusHistory, Painting, ProfitShare

logger = logging.getLogger("framehouse.orders")

_SCALAR_FIELDS = (
    "customer_name",
    "customer_phone",
    "customer_address",
    "order_type",
    "note",
    "painting_price",
    "construction_price",
    "design_fee",
    "shipping_installation_price",
    "customer_pays_shipping",
    "include_vat",
    "vat",
    "deposit_amount",
    "total_amount",
    "cod",
    "extra_fee_name",
    "extra_fee_amount",
    "shipping_method",
    "shipping_tracking_code",
    "shipping_external_info",
    "shipping_external_cost",
)
_LIST_FIELDS = ("mention_ids", "deposit_images", "payment_bill_images")
_UNVERSIONED = {"id", "version", "created_at", "updated_at"}


class OrderAggregate:
    def __init__(self, order: Order, actor: Actor):
        self.order = order
        self.actor = actor
        self.entered: list[OrderStatus] = []
        self._paintings: list[Painting] | None = None

    @classmethod
    def load(
        cls,
        order_id: int,
        actor: Actor,
        *,
        expected_version: int | None = None,
        lock: bool = True,
    ) -> OrderAggregate:
        qs = Order.objects.select_for_update() if lock else Order.objects.all()
        order = qs.filter(id=order_id).first()
        if not order:
            raise OrderNotFoundError("Order not found.")
        if expected_version is not None and int(expected_version) != order.version:
            raise ConflictError(
                f"Order was changed by someone else (version {order.version}, you had {expected_version})."
            )
        return cls(order, actor)

    # Read views

    def paintings(self) -> list[Painting]:
        if self._paintings is None:
            self._paintings = list(self.order.paintings.all())
        return self._paintings

    def painting(self, painting_id: int) -> Painting:
        for painting in self.paintings():
            if painting.id == int(painting_id):
                return painting
        raise PaintingNotFoundError("Painting not found in this order.")

    def ensure_own_paintings(self, drafts) -> None:
        known = {p.id for p in self.paintings()}
        for draft in drafts:
            if draft.id is not None and draft.id not in known:
                raise PaintingNotFoundError(f"Painting {draft.id} does not belong to this order.")

    def item_states(self) -> list[ItemState]:
        return [
            ItemState(
                painting_type=p.painting_type,
                is_printed=p.is_printed,
                received_by_production=p.received_by_production,
                received_by_packing=p.received_by_packing,
            )
            for p in self.paintings()
        ]

    def snapshot(self) -> OrderFieldsSnapshot:
        order = self.order
        values = {name: getattr(order, name) for name in _SCALAR_FIELDS}
        for name in _LIST_FIELDS:
            values[name] = tuple(getattr(order, name) or ())
        expected = order.expected_completion_date
        values["expected_completion_date"] = expected.isoformat() if expected else None
        values["profit_sharing"] = tuple(
            ProfitShareLine(user_id=share.user_id, percentage=share.percentage, amount=share.amount)
            for share in order.profit_shares.all()
        )
        values["paintings"] = tuple(
            PaintingDraft(
                id=p.id,
                painting_type=p.painting_type,
                width=p.width,
                height=p.height,
                frame_type=p.frame_type,
                quantity=p.quantity,
                note=p.note,
                mention_ids=tuple(p.mention_ids or ()),
                images=tuple(p.images or ()),
                files=tuple(p.files or ()),
            )
            for p in self.paintings()
        )
        return OrderFieldsSnapshot(**values)

    def capability_snapshot(self) -> CapabilitySnapshot:
        return capability_snapshot_for(self.order, self.paintings())

    # Mutations

    def transition(self, target: str, note: str = "") -> OrderStatus:
        current = self.order.status
        status = OrderStateMachine.ensure_transition(current, target)
        self.order.status = status.value
        if status == OrderStatus.COMPLETED and not self.order.actual_completion_date:
            self.order.actual_completion_date = timezone.now()
        self._history(status.value, note)
        self.entered.append(status)
        logger.info(
            "order_transition",
            extra={"order_id": self.order.id, "from": current, "to": status.value, "actor_id": self.actor.user_id},
        )
        return status

    def close_as_picked_up(self, note: str) -> None:
        """In-stock goods collected at the counter skip the production pipeline."""
        current = self.order.status
        if OrderStateMachine.is_terminal(current) or current == OrderStatus.COMPLETED:
            raise InvalidTransitionError(
                f"Cannot complete an order that is '{current}'.",
                current=current,
                requested=OrderStatus.COMPLETED.value,
            )
        self.order.status = OrderStatus.COMPLETED.value
        self.order.actual_completion_date = timezone.now()
        self._history(OrderStatus.COMPLETED.value, note)
        self.entered.append(OrderStatus.COMPLETED)
        logger.info(
            "order_picked_up",
            extra={"order_id": self.order.id, "from": current, "actor_id": self.actor.user_id},
        )

    def record(self, note: str) -> None:
        """History entry that keeps the current status."""
        self._history(self.order.status, note)

    def set_printing_status(self, value: str, note: str = "") -> None:
        self.order.printing_status = value
        if note:
            self.record(note)

    def set_frame_cutting_status(self, value: str, note: str = "") -> None:
        self.order.frame_cutting_status = value
        if note:
            self.record(note)

    def apply_outcome(self, outcome: AggregateOutcome) -> None:
        # Status moves go first so "started printing" lands before "finished printing".
        for step in outcome.steps:
            self.transition(step.status, f"{self.actor.name} - {step.reason}")
        if outcome.printing_status is not None and outcome.printing_status != self.order.printing_status:
            note = f"{self.actor.name} - {outcome.printing_reason}" if outcome.printing_reason else ""
            self.set_printing_status(outcome.printing_status.value, note)

    def apply_fields(self, snapshot: OrderFieldsSnapshot) -> None:
        order = self.order
        for name in _SCALAR_FIELDS:
            setattr(order, name, getattr(snapshot, name))
        for name in _LIST_FIELDS:
            setattr(order, name, list(getattr(snapshot, name)))
        expected = snapshot.expected_completion_date
        order.expected_completion_date = _as_date(expected)

        known_users = set(
            get_user_model().objects.filter(id__in=[line.user_id for line in snapshot.profit_sharing]).values_list(
                "id", flat=True
            )
        )
        ProfitShare.objects.filter(order=order).delete()
        ProfitShare.objects.bulk_create(
            [
                ProfitShare(order=order, user_id=line.user_id, percentage=line.percentage, amount=line.amount)
                for line in snapshot.profit_sharing
                if line.user_id in known_users
            ]
        )
        if snapshot.paintings:
            self.upsert_paintings(snapshot.paintings)

    def upsert_paintings(self, drafts) -> None:
        """Update matching ids in place, create the rest, delete rows missing from `drafts`."""
        self.ensure_own_paintings(drafts)
        existing = {p.id: p for p in self.paintings()}
        kept: list[Painting] = []
        for position, draft in enumerate(drafts):
            painting = existing.pop(draft.id, None) if draft.id is not None else None
            if painting is None:
                painting = Painting(order=self.order)
            painting.painting_type = draft.painting_type
            painting.width = draft.width
            painting.height = draft.height
            painting.frame_type = draft.frame_type
            painting.quantity = draft.quantity
            painting.note = draft.note
            painting.mention_ids = list(draft.mention_ids)
            painting.images = list(draft.images)
            painting.files = list(draft.files)
            painting.position = position
            painting.save()
            kept.append(painting)
        if existing:
            Painting.objects.filter(id__in=list(existing)).delete()
        self._paintings = kept

        cutting = has_cutting_items(kept)
        if not cutting and self.order.frame_cutting_status != FrameCuttingStatus.IN_STOCK:
            self.order.frame_cutting_status = FrameCuttingStatus.NOT_APPLICABLE.value
        elif self.order.frame_cutting_status == FrameCuttingStatus.NOT_APPLICABLE:
            self.order.frame_cutting_status = FrameCuttingStatus.NOT_CUT.value

    def assign(self, role: str) -> None:
        OrderAssignment.objects.get_or_create(order=self.order, user_id=self.actor.user_id, role=role)

    def save(self) -> Order:
        order = self.order
        values = {
            field.attname: getattr(order, field.attname)
            for field in Order._meta.concrete_fields
            if field.attname not in _UNVERSIONED
        }
        now = timezone.now()
        updated = Order.objects.filter(id=order.id, version=order.version).update(
            **values,
            version=F("version") + 1,
            updated_at=now,
        )
        if not updated:
            raise ConflictError("Order was changed by someone else. Reload and try again.")
        order.version += 1
        order.updated_at = now
        return order

    def _history(self, status: str, note: str) -> None:
        OrderStatusHistory.objects.create(order=self.order, status=status, actor_id=self.actor.user_id, note=note)


def capability_snapshot_for(order: Order, paintings) -> CapabilitySnapshot:
    history = tuple(sorted(set(order.status_history.values_list("status", flat=True))))
    return CapabilitySnapshot(
        status=order.status,
        printing_status=order.printing_status,
        frame_cutting_status=order.frame_cutting_status,
        painting_types=tuple(p.painting_type for p in paintings),
        history_statuses=history,
        shipping_method=order.shipping_method,
        stored_frame_cutting_status=order.frame_cutting_status,
    )


def _as_date(value) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return parse_date(str(value))
