from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from apps.accounts.domain.errors import AccountNotFoundError, AccountValidationError
from apps.accounts.domain.policies import ensure_staff_admin, validate_roles
from apps.accounts.domain.types import Actor
from apps.accounts.models import StaffProfile

logger = logging.getLogger("framehouse.request")


@dataclass(frozen=True)
class UpdateStaffRolesCommand:
    actor: Actor
    user_id: int
    roles: tuple[str, ...]


@dataclass(frozen=True)
class SetStaffActiveCommand:
    actor: Actor
    user_id: int
    is_active: bool


def _profile(user_id: int) -> StaffProfile:
    profile = StaffProfile.objects.select_for_update().select_related("user").filter(user_id=user_id).first()
    if not profile:
        raise AccountNotFoundError("Staff account not found.")
    return profile


class UpdateStaffRolesUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: UpdateStaffRolesCommand) -> StaffProfile:
        ensure_staff_admin(cmd.actor.roles)
        roles = validate_roles(cmd.roles)
        profile = _profile(cmd.user_id)
        if profile.user_id == cmd.actor.user_id and "admin" not in roles:
            raise AccountValidationError("You cannot remove your own admin role.", field="roles")

        profile.roles = roles
        profile.save(update_fields=["roles", "updated_at"])
        logger.info("staff_roles_updated", extra={"user_id": profile.user_id, "roles": roles, "actor_id": cmd.actor.user_id})
        return profile


class SetStaffActiveUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: SetStaffActiveCommand) -> StaffProfile:
        ensure_staff_admin(cmd.actor.roles)
        profile = _profile(cmd.user_id)
        if profile.user_id == cmd.actor.user_id and not cmd.is_active:
            raise AccountValidationError("You cannot deactivate your own account.", field="is_active")

        profile.is_active = bool(cmd.is_active)
        profile.save(update_fields=["is_active", "updated_at"])
        logger.info(
            "staff_active_changed",
            extra={"user_id": profile.user_id, "is_active": profile.is_active, "actor_id": cmd.actor.user_id},
        )
        return profile
