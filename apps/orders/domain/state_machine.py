from __future__ import annotations

from apps.accounts.domain.roles import WORKER_ROLES, Role

from .errors import InvalidTransitionError
from .statuses import STATUS_LABELS, OrderStatus

S = OrderStatus

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    S.NEW: frozenset({S.PROCESSING, S.CANCELLED}),
    S.PROCESSING: frozenset({S.AWAITING_PRODUCTION, S.FRAMED, S.AWAITING_PACKING, S.CANCELLED}),
    S.AWAITING_PRODUCTION: frozenset({S.FRAMED, S.AWAITING_REPRODUCTION}),
    S.FRAMED: frozenset({S.AWAITING_PACKING, S.FIX_REQUESTED}),
    S.AWAITING_PACKING: frozenset({S.PACKED, S.FIX_REQUESTED}),
    S.PACKED: frozenset({S.AWAITING_DISPATCH, S.RECEIVED_BACK, S.RESENT_TO_CUSTOMER, S.FIX_REQUESTED}),
    S.AWAITING_DISPATCH: frozenset({S.SENT, S.FIX_REQUESTED}),
    S.SENT: frozenset({S.COMPLETED, S.CUSTOMER_RETURNED, S.FIX_REQUESTED, S.RESENT_TO_CUSTOMER}),
    S.COMPLETED: frozenset({S.FIX_REQUESTED}),
    S.CUSTOMER_RETURNED: frozenset({S.PROCESSING, S.FIX_REQUESTED, S.RECEIVED_BACK}),
    S.FIX_REQUESTED: frozenset({S.RECEIVED_BACK}),
    S.RECEIVED_BACK: frozenset({S.PACKING_RECEIVED_BACK, S.RESENT_TO_PRODUCTION}),
    S.PACKING_RECEIVED_BACK: frozenset({S.RESENT_TO_PRODUCTION, S.STORED, S.RESENT_TO_CUSTOMER}),
    S.RESENT_TO_PRODUCTION: frozenset({S.AWAITING_REPRODUCTION, S.FRAMED}),
    S.AWAITING_REPRODUCTION: frozenset({S.FRAMED, S.PROCESSING}),
    S.RESENT_TO_CUSTOMER: frozenset({S.AWAITING_DISPATCH}),
    S.STORED: frozenset(),
    S.CANCELLED: frozenset(),
}

STATUS_AUDIENCE: dict[OrderStatus, frozenset[Role]] = {
    S.NEW: frozenset({Role.SALE, Role.ADMIN}),
    S.PROCESSING: frozenset({Role.PRINTING, Role.FRAME_CUTTING}),
    S.AWAITING_PRODUCTION: frozenset({Role.PRODUCTION}),
    S.FRAMED: frozenset({Role.PRODUCTION}),
    S.AWAITING_PACKING: frozenset({Role.PACKING}),
    S.PACKED: frozenset({Role.PACKING}),
    S.AWAITING_DISPATCH: frozenset({Role.DISPATCH_ACCOUNTING}),
    S.SENT: frozenset({Role.FINANCE_ACCOUNTING}),
    S.COMPLETED: frozenset({Role.FINANCE_ACCOUNTING, Role.SALE, Role.ADMIN}),
    S.CUSTOMER_RETURNED: frozenset({Role.SALE, Role.ADMIN}),
    S.FIX_REQUESTED: frozenset({Role.PRINTING, Role.FRAME_CUTTING, Role.PRODUCTION}),
    S.RECEIVED_BACK: frozenset({Role.SALE, Role.ADMIN}),
    S.PACKING_RECEIVED_BACK: frozenset({Role.PACKING}),
    S.RESENT_TO_PRODUCTION: frozenset({Role.PRODUCTION}),
    S.AWAITING_REPRODUCTION: frozenset({Role.PRODUCTION}),
    S.STORED: frozenset({Role.SALE, Role.ADMIN}),
    S.RESENT_TO_CUSTOMER: frozenset({Role.DISPATCH_ACCOUNTING}),
    S.CANCELLED: WORKER_ROLES,
}

# Direct status changes into these states do not broadcast a notification.
SILENT_STATUSES: frozenset[OrderStatus] = frozenset({S.AWAITING_DISPATCH, S.STORED})


class OrderStateMachine:
    """
    Order lifecycle whitelist.

    Only the edges listed in `TRANSITIONS` are legal. `cancelled` and `stored`
    are terminal.
    """

    @staticmethod
    def can_transition(current: str, requested: str) -> bool:
        try:
            return OrderStatus(requested) in TRANSITIONS[OrderStatus(current)]
        except ValueError:
            return False

    @staticmethod
    def ensure_transition(current: str, requested: str) -> OrderStatus:
        try:
            target = OrderStatus(requested)
        except ValueError as exc:
            raise InvalidTransitionError(f"Unknown status: {requested}", current=current, requested=requested) from exc
        if not OrderStateMachine.can_transition(current, target):
            raise InvalidTransitionError(
                f"Cannot move order from '{current}' to '{target}'.",
                current=current,
                requested=target.value,
            )
        return target

    @staticmethod
    def next_statuses(current: str) -> list[OrderStatus]:
        try:
            return sorted(TRANSITIONS[OrderStatus(current)])
        except ValueError:
            return []

    @staticmethod
    def is_terminal(current: str) -> bool:
        return not OrderStateMachine.next_statuses(current)

    @staticmethod
    def audience(status: str, *, sender_roles: frozenset[Role] = frozenset(), edit: bool = False) -> frozenset[Role]:
        try:
            roles = set(STATUS_AUDIENCE[OrderStatus(status)])
        except ValueError:
            return frozenset()
        if edit:
            if Role.ADMIN in sender_roles:
                roles.discard(Role.SALE)
            if Role.SALE in sender_roles:
                roles.discard(Role.ADMIN)
        return frozenset(roles)

    @staticmethod
    def label(status: str) -> str:
        try:
            return STATUS_LABELS[OrderStatus(status)]
        except ValueError:
            return status
