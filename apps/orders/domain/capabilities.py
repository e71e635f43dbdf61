"""
Capability resolver.

Given an order snapshot and the caller's role set, list what the caller can do
right now. Pure and cheap; callers recompute it on every read.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from apps.accounts.domain.roles import PRODUCTION_FLOOR_ROLES, Role

from .aggregation import has_cutting_items, has_framing_items
from .state_machine import OrderStateMachine
from .statuses import FrameCuttingStatus, OrderStatus, PrintingStatus, ReceiveType, ReworkType, ShippingMethod

S = OrderStatus
P = PrintingStatus
F = FrameCuttingStatus

_DESK_AND_ACCOUNTING = frozenset({Role.ADMIN, Role.SALE, Role.DISPATCH_ACCOUNTING, Role.FINANCE_ACCOUNTING})


@dataclass(frozen=True)
class CapabilitySnapshot:
    status: str
    printing_status: str
    frame_cutting_status: str
    painting_types: tuple[str, ...] = ()
    history_statuses: tuple[str, ...] = ()
    shipping_method: str | None = None
    # Stored column, before the not_applicable override. Counter pickup checks it.
    stored_frame_cutting_status: str | None = None

    @property
    def frame_stock_status(self) -> str:
        return self.stored_frame_cutting_status or self.frame_cutting_status


@dataclass(frozen=True)
class StepGrant:
    role: str
    label: str = ""


@dataclass(frozen=True)
class Capabilities:
    can_accept: StepGrant | None = None
    can_complete: StepGrant | None = None
    can_receive: str | None = None
    can_frame: bool = False
    hide_money_fields: bool = False
    can_cancel: bool = False
    can_mark_return_or_fix: bool = False
    can_mark_received_back: bool = False
    can_mark_packing_received_back: bool = False
    is_returned_order: bool = False
    can_send_back_to_customer: bool = False
    can_send_back_to_production: bool = False
    can_store_to_warehouse: bool = False
    can_production_receive_again: bool = False
    can_request_production_rework: frozenset[str] = field(default_factory=frozenset)
    can_request_rework: frozenset[str] = field(default_factory=frozenset)
    can_request_packing_rework: bool = False
    can_approve_draft: bool = False
    next_statuses: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        data = asdict(self)
        data["can_request_production_rework"] = sorted(self.can_request_production_rework)
        data["can_request_rework"] = sorted(self.can_request_rework)
        data["next_statuses"] = list(self.next_statuses)
        return data


def hides_money(roles: frozenset[Role]) -> bool:
    """Shop-floor callers without a desk or accounting role never see prices."""
    return bool(roles & PRODUCTION_FLOOR_ROLES) and not (roles & _DESK_AND_ACCOUNTING)


def _accept_grant(snapshot: CapabilitySnapshot, roles: frozenset[Role]) -> StepGrant | None:
    framing = has_framing_items(snapshot.painting_types)
    cutting = has_cutting_items(snapshot.painting_types)
    for role in sorted(roles):
        match role:
            case Role.PRINTING:
                if snapshot.printing_status in (P.NOT_PRINTED, P.QUEUED, P.REPRINT_REQUESTED, P.AWAITING_REPRINT):
                    return StepGrant(role=role.value, label="Start printing")
            case Role.FRAME_CUTTING:
                if cutting and snapshot.frame_cutting_status in (F.NOT_CUT, F.QUEUED, F.RECUT_REQUESTED, F.AWAITING_RECUT):
                    return StepGrant(role=role.value, label="Start cutting")
            case Role.PACKING:
                if not framing and snapshot.printing_status == P.PRINTED and snapshot.status == S.PROCESSING:
                    return StepGrant(role=role.value, label="Take for packing")
                if framing and snapshot.status == S.FRAMED:
                    return StepGrant(role=role.value, label="Take for packing")
            case Role.DISPATCH_ACCOUNTING:
                if snapshot.status in (S.PACKED, S.RESENT_TO_CUSTOMER):
                    return StepGrant(role=role.value, label="Take for dispatch")
            case Role.ADMIN | Role.SALE | Role.PRODUCTION | Role.FINANCE_ACCOUNTING | Role.DESIGN | Role.MARKETING:
                continue
    return None


def _complete_grant(snapshot: CapabilitySnapshot, roles: frozenset[Role]) -> StepGrant | None:
    cutting = has_cutting_items(snapshot.painting_types)
    for role in sorted(roles):
        match role:
            case Role.PRINTING:
                if snapshot.printing_status in (P.NOT_PRINTED, P.QUEUED, P.PRINTING, P.AWAITING_REPRINT):
                    return StepGrant(role=role.value, label="Printed")
            case Role.FRAME_CUTTING:
                if cutting and snapshot.frame_cutting_status in (F.NOT_CUT, F.QUEUED, F.CUTTING, F.AWAITING_RECUT):
                    return StepGrant(role=role.value, label="Frame cut")
            case Role.PACKING:
                if snapshot.status == S.AWAITING_PACKING:
                    return StepGrant(role=role.value, label="Packed")
            case Role.DISPATCH_ACCOUNTING:
                if snapshot.status == S.AWAITING_DISPATCH:
                    return StepGrant(role=role.value, label="Sent")
            case Role.FINANCE_ACCOUNTING:
                if snapshot.status == S.SENT:
                    return StepGrant(role=role.value, label="Fully paid")
            case Role.SALE:
                if (
                    snapshot.printing_status == P.IN_STOCK
                    and snapshot.frame_stock_status == F.IN_STOCK
                    and snapshot.shipping_method == ShippingMethod.CUSTOMER_PICKUP
                    and snapshot.status not in (S.COMPLETED, S.CANCELLED)
                ):
                    return StepGrant(role=role.value, label="Picked up and paid")
            case Role.ADMIN | Role.PRODUCTION | Role.DESIGN | Role.MARKETING:
                continue
    return None


def _receive_type(snapshot: CapabilitySnapshot, roles: frozenset[Role]) -> str | None:
    if Role.PACKING in roles and snapshot.status == S.AWAITING_PACKING and snapshot.printing_status == P.PRINTED:
        return ReceiveType.ARTWORK.value
    if Role.PRODUCTION in roles:
        if snapshot.status != S.AWAITING_PACKING and snapshot.printing_status == P.PRINTED:
            return ReceiveType.ARTWORK.value
        if snapshot.frame_cutting_status == F.CUT:
            return ReceiveType.FRAME.value
    return None


def _production_rework(snapshot: CapabilitySnapshot, roles: frozenset[Role]) -> frozenset[str]:
    if Role.PRODUCTION not in roles or snapshot.status == S.AWAITING_PACKING:
        return frozenset()
    kinds = set()
    if snapshot.printing_status == P.PRINTED:
        kinds.add(ReworkType.REPRINT.value)
    if snapshot.frame_cutting_status == F.CUT:
        kinds.add(ReworkType.RECUT.value)
    return frozenset(kinds)


def _desk_rework(snapshot: CapabilitySnapshot, desk: bool) -> frozenset[str]:
    if not desk or snapshot.status not in (S.SENT, S.FIX_REQUESTED):
        return frozenset()
    kinds = set()
    if snapshot.printing_status != P.AWAITING_REPRINT:
        kinds.add(ReworkType.REPRINT.value)
    if has_cutting_items(snapshot.painting_types) and snapshot.frame_cutting_status != F.AWAITING_RECUT:
        kinds.add(ReworkType.RECUT.value)
    return frozenset(kinds)


def resolve_capabilities(snapshot: CapabilitySnapshot, roles: frozenset[Role]) -> Capabilities:
    desk = Role.ADMIN in roles or Role.SALE in roles
    status = snapshot.status
    returned = S.CUSTOMER_RETURNED.value in snapshot.history_statuses
    packing = Role.PACKING in roles

    return Capabilities(
        can_accept=_accept_grant(snapshot, roles),
        can_complete=_complete_grant(snapshot, roles),
        can_receive=_receive_type(snapshot, roles),
        can_frame=(
            Role.PRODUCTION in roles
            and snapshot.printing_status == P.RECEIVED_BY_PRODUCTION
            and OrderStateMachine.can_transition(status, S.FRAMED)
        ),
        hide_money_fields=hides_money(roles),
        can_cancel=desk and status not in (S.CANCELLED, S.COMPLETED, S.SENT),
        can_mark_return_or_fix=desk and status == S.SENT,
        can_mark_received_back=Role.DISPATCH_ACCOUNTING in roles and status == S.CUSTOMER_RETURNED,
        can_mark_packing_received_back=packing and status == S.RECEIVED_BACK,
        is_returned_order=returned,
        can_send_back_to_customer=desk and status == S.SENT,
        can_send_back_to_production=packing and status == S.PACKING_RECEIVED_BACK and not returned,
        can_store_to_warehouse=packing and status == S.PACKING_RECEIVED_BACK and returned,
        can_production_receive_again=Role.PRODUCTION in roles and status == S.RESENT_TO_PRODUCTION,
        can_request_production_rework=_production_rework(snapshot, roles),
        can_request_rework=_desk_rework(snapshot, desk),
        can_request_packing_rework=(
            packing
            and status == S.AWAITING_PACKING
            and snapshot.printing_status in (P.PRINTED, P.RECEIVED_BY_PACKING)
        ),
        can_approve_draft=Role.ADMIN in roles,
        next_statuses=tuple(s.value for s in OrderStateMachine.next_statuses(status)),
    )
