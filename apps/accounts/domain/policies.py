from __future__ import annotations

from collections.abc import Iterable

from .errors import AccountForbiddenError, FullNameInvalidError, RoleInvalidError
from .roles import Role


def validate_full_name(raw: str) -> str:
    name = (raw or "").strip()
    if not name:
        raise FullNameInvalidError("Full name is required.", field="full_name")
    if len(name) > 200:
        raise FullNameInvalidError("Full name must be 200 characters or fewer.", field="full_name")
    return name


def validate_roles(raw: Iterable[str] | None) -> list[str]:
    values: list[str] = []
    for value in raw or ():
        cleaned = (value or "").strip()
        try:
            role = Role(cleaned)
        except ValueError as exc:
            raise RoleInvalidError(f"Unknown role: {cleaned}", field="roles") from exc
        if role.value not in values:
            values.append(role.value)
    if not values:
        raise RoleInvalidError("At least one role is required.", field="roles")
    return sorted(values)


def ensure_staff_admin(roles: frozenset[Role]) -> None:
    if Role.ADMIN not in roles:
        raise AccountForbiddenError("Only admins can manage staff accounts.")
