from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.accounts.application.services.identity_service import StaffDirectory
from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.orders.application.services.config import vat_rate_percent
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.errors import DraftNotFoundError
from apps.orders.domain.policies import ensure_admin
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.snapshots import OrderFieldsSnapshot, replay
from apps.orders.domain.statuses import DraftStatus
from apps.orders.models import Order, OrderDraft

logger = logging.getLogger("framehouse.orders")


@dataclass(frozen=True)
class ReviewDraftCommand:
    actor: Actor
    order_id: int
    reason: str = ""


def _pending_draft(order: Order) -> OrderDraft:
    draft = OrderDraft.objects.select_for_update().filter(order=order, status=DraftStatus.PENDING).first()
    if not draft:
        raise DraftNotFoundError("No pending draft for this order.")
    return draft


def _proposer_name(draft: OrderDraft) -> str:
    if not draft.proposed_by_id:
        return "a former user"
    return StaffDirectory.display_names([draft.proposed_by_id]).get(draft.proposed_by_id, "sale")


class ApproveDraftUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: ReviewDraftCommand) -> Order:
        actor = cmd.actor
        ensure_admin(actor.roles, "approve order changes")

        aggregate = OrderAggregate.load(cmd.order_id, actor)
        order = aggregate.order
        draft = _pending_draft(order)

        proposed = OrderFieldsSnapshot.from_dict(draft.proposed)
        merged = replay(aggregate.snapshot(), proposed, vat_rate_percent=vat_rate_percent())
        aggregate.apply_fields(merged)
        aggregate.record(f"{actor.name} approved changes from {_proposer_name(draft)}")
        aggregate.save()

        proposer_id = draft.proposed_by_id
        OrderDraft.objects.filter(order=order).delete()
        logger.info(
            "order_draft_approved",
            extra={"order_id": order.id, "draft_id": draft.id, "actor_id": actor.user_id},
        )

        if proposer_id:
            self.notifier.users(
                order,
                actor,
                [proposer_id],
                title="Your changes were approved",
                message=f"{actor.name} approved your changes to order {order.code}",
                action_type="draft_approved",
            )
        self.notifier.order_event(order, "updated", target_roles={Role.ADMIN, Role.SALE}, draft_approved=True)
        return order


class RejectDraftUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: ReviewDraftCommand) -> Order:
        actor = cmd.actor
        ensure_admin(actor.roles, "reject order changes")

        aggregate = OrderAggregate.load(cmd.order_id, actor)
        order = aggregate.order
        draft = _pending_draft(order)
        reason = (cmd.reason or "").strip()

        draft.status = DraftStatus.REJECTED.value
        draft.reviewed_by_id = actor.user_id
        draft.reviewed_at = timezone.now()
        draft.review_note = reason
        draft.save(update_fields=["status", "reviewed_by", "reviewed_at", "review_note"])
        OrderDraft.objects.filter(order=order, status=DraftStatus.PENDING).delete()

        aggregate.record(f"{actor.name} rejected changes{f': {reason}' if reason else ''}")
        logger.info(
            "order_draft_rejected",
            extra={"order_id": order.id, "draft_id": draft.id, "actor_id": actor.user_id},
        )

        if draft.proposed_by_id:
            self.notifier.users(
                order,
                actor,
                [draft.proposed_by_id],
                title="Your changes were rejected",
                message=f"{actor.name} rejected your changes to order {order.code}{f': {reason}' if reason else ''}",
                action_type="draft_rejected",
                metadata={"reason": reason},
            )
        self.notifier.order_event(order, "updated", target_roles={Role.ADMIN, Role.SALE}, draft_rejected=True)
        return order
