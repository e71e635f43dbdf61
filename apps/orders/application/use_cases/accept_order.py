"""
A worker claims the next step of an order for one of their roles.

printing / frame_cutting claim the print or cut job (or a rework of it),
packing claims an order that is ready to pack and dispatch_accounting claims
a packed order for shipping. The claim is recorded as an `OrderAssignment`.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction

from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.aggregation import has_framing_items
from apps.orders.domain.errors import InvalidTransitionError, OrderForbiddenError, OrderValidationError
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.state_machine import OrderStateMachine
from apps.orders.domain.statuses import FrameCuttingStatus, OrderStatus, PrintingStatus
from apps.orders.models import Order

P = PrintingStatus
F = FrameCuttingStatus
S = OrderStatus

ACCEPTING_ROLES = frozenset({Role.PRINTING, Role.FRAME_CUTTING, Role.PACKING, Role.DISPATCH_ACCOUNTING})


@dataclass(frozen=True)
class AcceptOrderCommand:
    actor: Actor
    order_id: int
    role: str
    expected_version: int | None = None


class AcceptOrderUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: AcceptOrderCommand) -> Order:
        actor = cmd.actor
        role = _accepting_role(cmd.role)
        if role not in actor.roles:
            raise OrderForbiddenError("You cannot accept orders for this role.")

        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        order = aggregate.order
        name = actor.name

        match role:
            case Role.PRINTING:
                self._claim_job(
                    aggregate,
                    current=order.printing_status,
                    start=(P.NOT_PRINTED, P.QUEUED),
                    started=P.PRINTING,
                    rework=P.REPRINT_REQUESTED,
                    awaiting_rework=P.AWAITING_REPRINT,
                    done=P.PRINTED,
                    setter=aggregate.set_printing_status,
                    notes=(f"{name} took the order for printing", f"{name} took the reprint request", f"{name} reprinted"),
                    done_message="Printing has already been handled for this order.",
                )
            case Role.FRAME_CUTTING:
                self._claim_job(
                    aggregate,
                    current=order.frame_cutting_status,
                    start=(F.NOT_CUT, F.QUEUED),
                    started=F.CUTTING,
                    rework=F.RECUT_REQUESTED,
                    awaiting_rework=F.AWAITING_RECUT,
                    done=F.CUT,
                    setter=aggregate.set_frame_cutting_status,
                    notes=(f"{name} took the order for frame cutting", f"{name} took the recut request", f"{name} recut the frame"),
                    done_message="Frame cutting has already been handled for this order.",
                )
            case Role.PACKING:
                if has_framing_items(aggregate.paintings()):
                    if order.status != S.FRAMED:
                        raise InvalidTransitionError("Orders with framed paintings can be packed once framed.")
                elif not (order.status == S.PROCESSING and order.printing_status == P.PRINTED):
                    raise InvalidTransitionError("Only printed orders in processing can be taken for packing.")
                aggregate.transition(S.AWAITING_PACKING, f"{name} took the order for packing")
            case Role.DISPATCH_ACCOUNTING:
                if order.status not in (S.PACKED, S.RESENT_TO_CUSTOMER):
                    raise InvalidTransitionError("Only packed or resent orders can be taken for dispatch.")
                resend = " (resending to customer)" if order.status == S.RESENT_TO_CUSTOMER else ""
                aggregate.transition(S.AWAITING_DISPATCH, f"{name} took the order for dispatch{resend}")
            case _:
                raise OrderValidationError(f"Role {role} cannot accept orders.", field="role")

        if role in (Role.PRINTING, Role.FRAME_CUTTING):
            if order.status != S.PROCESSING and OrderStateMachine.can_transition(order.status, S.PROCESSING):
                aggregate.transition(S.PROCESSING, f"{name} - the order is being printed or cut")

        aggregate.assign(role.value)
        aggregate.save()

        for status in aggregate.entered:
            self.notifier.status_entered(order, actor, status)
        self.notifier.order_event(order, "accepted", role=role.value)
        return order

    @staticmethod
    def _claim_job(aggregate, *, current, start, started, rework, awaiting_rework, done, setter, notes, done_message):
        order = aggregate.order
        if current in start:
            setter(started.value, notes[0])
        elif current == rework:
            setter(awaiting_rework.value, notes[1])
            if order.status != S.FIX_REQUESTED and OrderStateMachine.can_transition(order.status, S.FIX_REQUESTED):
                aggregate.transition(S.FIX_REQUESTED, "Back to fix requested for the rework")
        elif current == awaiting_rework:
            setter(done.value, notes[2])
        else:
            raise InvalidTransitionError(done_message)


def _accepting_role(value: str) -> Role:
    try:
        role = Role(value)
    except ValueError as exc:
        raise OrderValidationError(f"Unknown role: {value}", field="role") from exc
    if role not in ACCEPTING_ROLES:
        raise OrderValidationError(
            "Role must be one of printing, frame_cutting, packing or dispatch_accounting.",
            field="role",
        )
    return role
