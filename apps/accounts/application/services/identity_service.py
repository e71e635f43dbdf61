from __future__ import annotations

from collections.abc import Iterable

from django.contrib.auth import get_user_model

from apps.accounts.domain.errors import StaffProfileMissingError
from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.accounts.models import StaffProfile


class StaffDirectory:
    @staticmethod
    def actor_for(user) -> Actor:
        profile = StaffProfile.objects.select_related("user").filter(user_id=getattr(user, "id", None)).first()
        if not profile:
            if getattr(user, "is_superuser", False):
                return Actor(user_id=user.id, name=user.get_username(), roles=frozenset({Role.ADMIN}))
            raise StaffProfileMissingError("User has no staff profile.")
        return Actor(user_id=profile.user_id, name=profile.display_name, roles=profile.role_set)

    @staticmethod
    def user_ids_with_roles(roles: Iterable[Role], *, exclude_user_id: int | None = None) -> list[int]:
        wanted = {Role(role).value for role in roles}
        if not wanted:
            return []
        # JSON containment lookups are not portable to SQLite, so filter in Python.
        ids: list[int] = []
        for user_id, profile_roles in StaffProfile.objects.filter(is_active=True).values_list("user_id", "roles"):
            if user_id == exclude_user_id:
                continue
            if wanted.intersection(profile_roles or []):
                ids.append(user_id)
        return ids

    @staticmethod
    def active_user_ids(user_ids: Iterable[int]) -> list[int]:
        ids = {int(value) for value in user_ids if str(value).isdigit()}
        if not ids:
            return []
        return list(
            StaffProfile.objects.filter(is_active=True, user_id__in=ids).order_by("user_id").values_list("user_id", flat=True)
        )

    @staticmethod
    def display_names(user_ids: Iterable[int]) -> dict[int, str]:
        ids = set(user_ids)
        if not ids:
            return {}
        names: dict[int, str] = {}
        for profile in StaffProfile.objects.select_related("user").filter(user_id__in=ids):
            names[profile.user_id] = profile.display_name
        UserModel = get_user_model()
        for user in UserModel.objects.filter(id__in=ids - set(names)):
            names[user.id] = user.get_username()
        return names

    @staticmethod
    def mentionable() -> list[StaffProfile]:
        return list(StaffProfile.objects.select_related("user").filter(is_active=True).order_by("full_name"))

    @staticmethod
    def sales() -> list[StaffProfile]:
        return [
            profile
            for profile in StaffDirectory.mentionable()
            if profile.role_set & {Role.SALE, Role.ADMIN}
        ]
