from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class Role(StrEnum):
    ADMIN = "admin"
    SALE = "sale"
    FRAME_CUTTING = "frame_cutting"
    PRODUCTION = "production"
    PACKING = "packing"
    DISPATCH_ACCOUNTING = "dispatch_accounting"
    FINANCE_ACCOUNTING = "finance_accounting"
    PRINTING = "printing"
    DESIGN = "design"
    MARKETING = "marketing"


ROLE_LABELS: dict[Role, str] = {
    Role.ADMIN: "Admin",
    Role.SALE: "Sale",
    Role.FRAME_CUTTING: "Frame cutting",
    Role.PRODUCTION: "Production",
    Role.PACKING: "Packing",
    Role.DISPATCH_ACCOUNTING: "Dispatch accounting",
    Role.FINANCE_ACCOUNTING: "Finance accounting",
    Role.PRINTING: "Printing",
    Role.DESIGN: "Design",
    Role.MARKETING: "Marketing",
}

# Roles that take part in the production pipeline and hear about cancellations.
WORKER_ROLES: frozenset[Role] = frozenset(
    {
        Role.ADMIN,
        Role.SALE,
        Role.PRINTING,
        Role.FRAME_CUTTING,
        Role.PRODUCTION,
        Role.PACKING,
        Role.DISPATCH_ACCOUNTING,
        Role.FINANCE_ACCOUNTING,
    }
)

# Shop-floor roles that never see money columns.
PRODUCTION_FLOOR_ROLES: frozenset[Role] = frozenset(
    {Role.PRINTING, Role.FRAME_CUTTING, Role.PRODUCTION, Role.PACKING}
)


def parse_roles(raw: Iterable[str] | None) -> frozenset[Role]:
    """Keep known role tags, drop anything else."""
    roles: set[Role] = set()
    for value in raw or ():
        try:
            roles.add(Role((value or "").strip()))
        except ValueError:
            continue
    return frozenset(roles)


def is_admin(roles: frozenset[Role]) -> bool:
    return Role.ADMIN in roles


def is_restricted_financial_editor(roles: frozenset[Role]) -> bool:
    return Role.SALE in roles and Role.ADMIN not in roles


def is_order_desk(roles: frozenset[Role]) -> bool:
    return Role.ADMIN in roles or Role.SALE in roles
