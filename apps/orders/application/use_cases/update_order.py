"""
Edit an order, or defer the edit to an admin.

Sale staff (without admin) cannot change money directly: an edit that touches
a financial field, or any edit while a draft is already waiting, becomes a
pending `OrderDraft`. Drafts accumulate: a second deferred edit is overlaid on
the pending proposal, which is then replaced, so there is never more than one
pending draft per order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction

from apps.accounts.domain.roles import Role, is_restricted_financial_editor
from apps.accounts.domain.types import Actor
from apps.orders.application.services.config import vat_rate_percent
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.changes import describe_changes, financial_fields_touched
from apps.orders.domain.errors import OrderValidationError
from apps.orders.domain.policies import ensure_order_desk
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.snapshots import OrderFieldsSnapshot, build_proposal
from apps.orders.domain.statuses import DraftStatus
from apps.orders.models import Order, OrderDraft

logger = logging.getLogger("framehouse.orders")


@dataclass(frozen=True)
class UpdateOrderCommand:
    actor: Actor
    order_id: int
    fields: dict = field(default_factory=dict)
    expected_version: int | None = None


@dataclass(frozen=True)
class UpdateOrderResult:
    order: Order
    draft: OrderDraft | None = None
    changed_fields: tuple[str, ...] = ()

    @property
    def pending_approval(self) -> bool:
        return self.draft is not None


class UpdateOrderUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: UpdateOrderCommand) -> UpdateOrderResult:
        actor = cmd.actor
        ensure_order_desk(actor.roles, "edit orders")
        if "paintings" in cmd.fields and not cmd.fields.get("paintings"):
            raise OrderValidationError("An order needs at least one painting.", field="paintings")

        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        order = aggregate.order
        current = aggregate.snapshot()

        pending = OrderDraft.objects.select_for_update().filter(order=order, status=DraftStatus.PENDING).first()
        touched = financial_fields_touched(current, cmd.fields)

        if is_restricted_financial_editor(actor.roles) and (touched or pending):
            return self._defer(aggregate, current, pending, cmd.fields)

        proposed = build_proposal(current, cmd.fields, vat_rate_percent=vat_rate_percent())
        changed = describe_changes(current, proposed)
        aggregate.apply_fields(proposed)
        if changed:
            aggregate.record(f"Edited by {actor.name}: {', '.join(changed)}")
        aggregate.save()

        if changed:
            self.notifier.status_roles(
                order,
                actor,
                title="Order updated",
                message=f"{actor.name} edited order {order.code}: {', '.join(changed)}",
                action_type="edit",
                edit=True,
            )
        self._notify_new_mentions(order, actor, current, proposed)
        self.notifier.order_event(order, "updated", changed_fields=changed)
        return UpdateOrderResult(order=order, changed_fields=tuple(changed))

    def _defer(
        self,
        aggregate: OrderAggregate,
        current: OrderFieldsSnapshot,
        pending: OrderDraft | None,
        fields: dict,
    ) -> UpdateOrderResult:
        actor = aggregate.actor
        order = aggregate.order
        base = OrderFieldsSnapshot.from_dict(pending.proposed) if pending else current
        proposed = build_proposal(base, fields, vat_rate_percent=vat_rate_percent())
        aggregate.ensure_own_paintings(proposed.paintings)
        changed = describe_changes(current, proposed)

        OrderDraft.objects.filter(order=order, status=DraftStatus.PENDING).delete()
        draft = OrderDraft.objects.create(
            order=order,
            proposed_by_id=actor.user_id,
            status=DraftStatus.PENDING.value,
            original=current.as_dict(),
            proposed=proposed.as_dict(),
            changed_fields=changed,
        )
        logger.info(
            "order_draft_created",
            extra={
                "order_id": order.id,
                "draft_id": draft.id,
                "replaced": bool(pending),
                "actor_id": actor.user_id,
            },
        )

        self.notifier.roles(
            order,
            actor,
            {Role.ADMIN},
            title="Order changes need approval",
            message=f"{actor.name} proposed changes to order {order.code}: {', '.join(changed) or 'no visible change'}",
            action_type="draft",
            metadata={"draft_id": draft.id},
        )
        self.notifier.order_event(
            order,
            "draft_pending",
            target_roles={Role.ADMIN, Role.SALE},
            draft_id=draft.id,
        )
        return UpdateOrderResult(order=order, draft=draft, changed_fields=tuple(changed))

    def _notify_new_mentions(self, order, actor, before: OrderFieldsSnapshot, after: OrderFieldsSnapshot) -> None:
        self.notifier.mentions(order, actor, set(after.mention_ids) - set(before.mention_ids))
        old_by_id = {p.id: set(p.mention_ids) for p in before.paintings if p.id is not None}
        for painting in after.paintings:
            fresh = set(painting.mention_ids) - old_by_id.get(painting.id, set())
            self.notifier.mentions(order, actor, fresh, where="a painting note")
