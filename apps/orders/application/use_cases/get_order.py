from __future__ import annotations

from dataclasses import dataclass, replace

from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.orders.application.services.order_aggregate import capability_snapshot_for
from apps.orders.domain.aggregation import effective_frame_cutting_status
from apps.orders.domain.capabilities import Capabilities, resolve_capabilities
from apps.orders.domain.errors import OrderNotFoundError
from apps.orders.domain.policies import ensure_admin
from apps.orders.domain.statuses import DraftStatus
from apps.orders.models import Order, OrderDraft


@dataclass(frozen=True)
class OrderDetail:
    order: Order
    frame_cutting_status: str
    capabilities: Capabilities
    pending_draft: OrderDraft | None = None
    has_pending_draft: bool = False


class GetOrderUseCase:
    @staticmethod
    def execute(*, actor: Actor, order_id: int) -> OrderDetail:
        order = (
            Order.objects.select_related("created_by")
            .prefetch_related("paintings", "status_history", "profit_shares", "assignments")
            .filter(id=order_id)
            .first()
        )
        if not order:
            raise OrderNotFoundError("Order not found.")

        paintings = list(order.paintings.all())
        frame_status = effective_frame_cutting_status(order.frame_cutting_status, paintings)
        snapshot = capability_snapshot_for(order, paintings)
        # Resolve against the reported frame status, not the stored one.
        snapshot = replace(snapshot, frame_cutting_status=frame_status)

        draft = OrderDraft.objects.select_related("proposed_by").filter(order=order, status=DraftStatus.PENDING).first()
        return OrderDetail(
            order=order,
            frame_cutting_status=frame_status,
            capabilities=resolve_capabilities(snapshot, actor.roles),
            pending_draft=draft if Role.ADMIN in actor.roles else None,
            has_pending_draft=draft is not None,
        )


class GetPendingDraftUseCase:
    @staticmethod
    def execute(*, actor: Actor, order_id: int) -> OrderDraft | None:
        ensure_admin(actor.roles, "review order changes")
        if not Order.objects.filter(id=order_id).exists():
            raise OrderNotFoundError("Order not found.")
        return OrderDraft.objects.select_related("proposed_by").filter(order_id=order_id, status=DraftStatus.PENDING).first()
