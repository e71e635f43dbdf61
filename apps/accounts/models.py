from __future__ import annotations

from django.conf import settings
from django.db import models

from apps.accounts.domain.roles import Role, parse_roles


class StaffProfile(models.Model):
    ROLE_CHOICES = [(role.value, role.value.replace("_", " ").title()) for role in Role]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_profile",
    )
    full_name = models.CharField(max_length=200, blank=True, default="")
    roles = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["is_active", "full_name"], name="staff_active_name_idx"),
        ]

    def __str__(self) -> str:
        return f"StaffProfile(user_id={self.user_id}, roles={self.roles})"

    @property
    def role_set(self) -> frozenset[Role]:
        return parse_roles(self.roles)

    @property
    def display_name(self) -> str:
        return self.full_name or self.user.get_full_name() or self.user.get_username()
