from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q


class UsernameOrEmailBackend(ModelBackend):
    """
    Staff log in with their username or e-mail, case-insensitively.

    A deactivated staff profile blocks login even when the Django user is
    still active, so admins can lock people out without touching auth data.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        UserModel = get_user_model()
        identifier = str(username if username is not None else kwargs.get(UserModel.USERNAME_FIELD) or "").strip()
        if not identifier or password is None:
            return None

        user = (
            UserModel._default_manager.select_related("staff_profile")
            .filter(Q(**{f"{UserModel.USERNAME_FIELD}__iexact": identifier}) | Q(email__iexact=identifier))
            .order_by("id")
            .first()
        )
        if user is None:
            # Hash anyway so unknown identifiers take as long as wrong passwords.
            UserModel().set_password(password)
            return None
        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None

    def user_can_authenticate(self, user) -> bool:
        if not super().user_can_authenticate(user):
            return False
        profile = getattr(user, "staff_profile", None)
        return profile is None or profile.is_active
