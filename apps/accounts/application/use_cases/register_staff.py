from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction

from apps.accounts.domain.errors import AccountAlreadyExistsError, AccountValidationError
from apps.accounts.domain.policies import ensure_staff_admin, validate_full_name, validate_roles
from apps.accounts.domain.types import Actor
from apps.accounts.models import StaffProfile

logger = logging.getLogger("framehouse.request")


@dataclass(frozen=True)
class RegisterStaffCommand:
    actor: Actor
    username: str
    email: str
    password: str
    full_name: str
    roles: tuple[str, ...] = field(default_factory=tuple)


class RegisterStaffUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: RegisterStaffCommand) -> StaffProfile:
        ensure_staff_admin(cmd.actor.roles)
        full_name = validate_full_name(cmd.full_name)
        roles = validate_roles(cmd.roles)

        username = (cmd.username or "").strip()
        email = (cmd.email or "").strip().lower()
        if not username:
            raise AccountValidationError("Username is required.", field="username")

        UserModel = get_user_model()
        if UserModel.objects.filter(username__iexact=username).exists():
            raise AccountAlreadyExistsError("An account with this username already exists.", field="username")
        if email and UserModel.objects.filter(email__iexact=email).exists():
            raise AccountAlreadyExistsError("An account with this email already exists.", field="email")

        try:
            validate_password(cmd.password)
        except ValidationError as exc:
            raise AccountValidationError("; ".join(exc.messages), field="password") from exc

        user = UserModel.objects.create_user(username=username, email=email, password=cmd.password)
        profile = StaffProfile.objects.create(user=user, full_name=full_name, roles=roles)

        logger.info("staff_registered", extra={"user_id": user.id, "roles": roles, "actor_id": cmd.actor.user_id})
        return profile
