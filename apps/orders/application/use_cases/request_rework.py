"""
Send an order back for reprinting or recutting.

`RequestReworkUseCase` is the order desk (admin or sale) acting on a customer
complaint. `ProductionRequestUseCase` is the shop floor (production or
packing) rejecting what it received. Both park the order in `fix_requested`
when the table allows it and notify the station that has to redo the job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.errors import InvalidTransitionError, OrderForbiddenError, OrderValidationError
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.state_machine import OrderStateMachine
from apps.orders.domain.statuses import FrameCuttingStatus, OrderStatus, PrintingStatus, ReworkType
from apps.orders.models import Order

logger = logging.getLogger("framehouse.orders")

P = PrintingStatus
F = FrameCuttingStatus
S = OrderStatus

_STATION = {ReworkType.REPRINT: Role.PRINTING, ReworkType.RECUT: Role.FRAME_CUTTING}


@dataclass(frozen=True)
class ReworkCommand:
    actor: Actor
    order_id: int
    type: str
    reason: str = ""
    expected_version: int | None = None


def _rework_type(value: str) -> ReworkType:
    try:
        return ReworkType(value)
    except ValueError as exc:
        raise OrderValidationError("Type must be 'reprint' or 'recut'.", field="type") from exc


def _park_in_fix_requested(aggregate: OrderAggregate) -> None:
    status = aggregate.order.status
    if status != S.FIX_REQUESTED and OrderStateMachine.can_transition(status, S.FIX_REQUESTED):
        aggregate.transition(S.FIX_REQUESTED, "Back to fix requested for a rework")


class _ReworkBase:
    action = "rework_requested"

    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    def _finish(self, aggregate: OrderAggregate, kind: ReworkType, note: str, reason: str) -> Order:
        order = aggregate.order
        actor = aggregate.actor
        _park_in_fix_requested(aggregate)
        aggregate.record(note)
        aggregate.save()

        logger.info(
            "order_rework_requested",
            extra={"order_id": order.id, "type": kind.value, "actor_id": actor.user_id, "action": self.action},
        )
        what = "reprint" if kind == ReworkType.REPRINT else "recut of the frames"
        self.notifier.roles(
            order,
            actor,
            {_STATION[kind]},
            title=f"Rework requested: {kind.value}",
            message=f"{actor.name} requested a {what} for order {order.code}{f'. Reason: {reason}' if reason else ''}",
            action_type="rework",
            metadata={"request_type": kind.value, "reason": reason},
        )
        self.notifier.order_event(order, self.action, type=kind.value, reason=reason)
        return order


class RequestReworkUseCase(_ReworkBase):
    @transaction.atomic
    def execute(self, cmd: ReworkCommand) -> Order:
        actor = cmd.actor
        if not actor.has_any(Role.ADMIN, Role.SALE):
            raise OrderForbiddenError("Only admin or sale can request a rework.")
        kind = _rework_type(cmd.type)

        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        order = aggregate.order
        if order.status != S.FIX_REQUESTED and not OrderStateMachine.can_transition(order.status, S.FIX_REQUESTED):
            raise InvalidTransitionError(
                f"Cannot request a fix while the order is '{order.status}'.",
                current=order.status,
                requested=S.FIX_REQUESTED.value,
            )

        reason = (cmd.reason or "").strip()
        suffix = f" - reason: {reason}" if reason else ""
        if kind == ReworkType.REPRINT:
            if order.printing_status == P.AWAITING_REPRINT:
                raise InvalidTransitionError("The order is already awaiting a reprint.")
            aggregate.set_printing_status(P.AWAITING_REPRINT.value)
            note = f"{actor.name} requested a reprint for order {order.code}{suffix}"
        else:
            if order.frame_cutting_status == F.AWAITING_RECUT:
                raise InvalidTransitionError("The order is already awaiting a recut.")
            aggregate.set_frame_cutting_status(F.AWAITING_RECUT.value)
            note = f"{actor.name} requested a frame recut for order {order.code}{suffix}"
        return self._finish(aggregate, kind, note, reason)


class ProductionRequestUseCase(_ReworkBase):
    action = "production_request"

    @transaction.atomic
    def execute(self, cmd: ReworkCommand) -> Order:
        actor = cmd.actor
        if not actor.has_any(Role.ADMIN, Role.PRODUCTION, Role.PACKING):
            raise OrderForbiddenError("Only production or packing can send work back.")
        kind = _rework_type(cmd.type)
        reason = (cmd.reason or "").strip()
        if not reason:
            raise OrderValidationError("A reason is required.", field="reason")

        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        order = aggregate.order

        if kind == ReworkType.REPRINT:
            if actor.has(Role.PACKING):
                if order.status != S.AWAITING_PACKING:
                    raise InvalidTransitionError("Packing can only send back paintings while awaiting packing.")
                if order.printing_status not in (P.PRINTED, P.RECEIVED_BY_PACKING):
                    raise InvalidTransitionError("Packing can only send back printed paintings.")
                station = "packing"
            else:
                if order.printing_status != P.PRINTED:
                    raise InvalidTransitionError("A reprint can only be requested for printed paintings.")
                station = "production"
            aggregate.set_printing_status(P.AWAITING_REPRINT.value)
            note = f"{actor.name} ({station}) requested a reprint for order {order.code} - reason: {reason}"
        else:
            if order.frame_cutting_status != F.CUT:
                raise InvalidTransitionError("A recut can only be requested once the frames are cut.")
            aggregate.set_frame_cutting_status(F.AWAITING_RECUT.value)
            note = f"{actor.name} (production) requested a frame recut for order {order.code} - reason: {reason}"
        return self._finish(aggregate, kind, note, reason)
