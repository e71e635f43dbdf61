from __future__ import annotations

import hmac
import re
from datetime import date

from apps.accounts.domain.roles import Role

from .errors import OrderForbiddenError, OrderValidationError, SecretMismatchError
from .statuses import OrderStatus

S = OrderStatus

_CODE_SUFFIX_RE = re.compile(r"^[A-Za-z0-9_-]{1,32}$")

# Who may push an order into a status through the direct status endpoint.
# Admin may always do it.
TRANSITION_ROLES: dict[OrderStatus, frozenset[Role]] = {
    S.PROCESSING: frozenset({Role.SALE, Role.PRINTING, Role.FRAME_CUTTING}),
    S.AWAITING_PRODUCTION: frozenset({Role.PRODUCTION, Role.PRINTING, Role.FRAME_CUTTING}),
    S.FRAMED: frozenset({Role.PRODUCTION}),
    S.AWAITING_PACKING: frozenset({Role.PACKING, Role.PRODUCTION}),
    S.PACKED: frozenset({Role.PACKING}),
    S.AWAITING_DISPATCH: frozenset({Role.DISPATCH_ACCOUNTING, Role.PACKING}),
    S.SENT: frozenset({Role.DISPATCH_ACCOUNTING}),
    S.COMPLETED: frozenset({Role.FINANCE_ACCOUNTING, Role.SALE}),
    S.CUSTOMER_RETURNED: frozenset({Role.SALE}),
    S.FIX_REQUESTED: frozenset({Role.SALE, Role.PRODUCTION, Role.PACKING}),
    S.RECEIVED_BACK: frozenset({Role.DISPATCH_ACCOUNTING, Role.SALE}),
    S.PACKING_RECEIVED_BACK: frozenset({Role.PACKING}),
    S.RESENT_TO_PRODUCTION: frozenset({Role.PACKING, Role.SALE}),
    S.AWAITING_REPRODUCTION: frozenset({Role.PRODUCTION}),
    S.STORED: frozenset({Role.PACKING}),
    S.RESENT_TO_CUSTOMER: frozenset({Role.SALE, Role.DISPATCH_ACCOUNTING}),
    S.CANCELLED: frozenset({Role.SALE}),
}


def generate_order_code(custom: str, today: date) -> str:
    suffix = (custom or "").strip()
    if not _CODE_SUFFIX_RE.match(suffix):
        raise OrderValidationError(
            "Order code may only contain letters, digits, '-' and '_' (max 32).",
            field="code",
        )
    return f"D{suffix}-{today:%d%m}".upper()


def ensure_can_set_status(roles: frozenset[Role], target: OrderStatus) -> None:
    if Role.ADMIN in roles:
        return
    if not roles & TRANSITION_ROLES.get(target, frozenset()):
        raise OrderForbiddenError(f"Your roles cannot move an order to '{target}'.")


def ensure_order_desk(roles: frozenset[Role], action: str = "edit orders") -> None:
    if Role.ADMIN not in roles and Role.SALE not in roles:
        raise OrderForbiddenError(f"Only admin or sale can {action}.")


def ensure_admin(roles: frozenset[Role], action: str = "do this") -> None:
    if Role.ADMIN not in roles:
        raise OrderForbiddenError(f"Only admin can {action}.")


def ensure_secret(supplied: str | None, expected: str | None) -> None:
    expected = (expected or "").strip()
    supplied = (supplied or "").strip()
    if not supplied:
        raise OrderValidationError("Secret code is required.", field="secret_code")
    if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise SecretMismatchError("Secret code does not match.")
