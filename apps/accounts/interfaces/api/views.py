from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.application.services.identity_service import StaffDirectory
from apps.accounts.application.use_cases.manage_staff import (
    SetStaffActiveCommand,
    SetStaffActiveUseCase,
    UpdateStaffRolesCommand,
    UpdateStaffRolesUseCase,
)
from apps.accounts.application.use_cases.register_staff import RegisterStaffCommand, RegisterStaffUseCase
from apps.accounts.domain.errors import (
    AccountForbiddenError,
    AccountNotFoundError,
    AccountValidationError,
    StaffProfileMissingError,
)
from apps.accounts.domain.policies import ensure_staff_admin
from apps.accounts.interfaces.api.serializers import (
    StaffActiveSerializer,
    StaffProfileSerializer,
    StaffRegisterSerializer,
    StaffRolesSerializer,
)
from apps.accounts.models import StaffProfile


def _success(*, data, http_status: int = status.HTTP_200_OK) -> Response:
    return Response({"success": True, "data": data}, status=http_status)


def _error(*, message: str, field: str | None = None, http_status: int = status.HTTP_400_BAD_REQUEST) -> Response:
    payload: dict = {"success": False, "message": message}
    if field:
        payload["field"] = field
    return Response(payload, status=http_status)


class CurrentStaffAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = StaffProfile.objects.select_related("user").filter(user=request.user).first()
        if not profile:
            return _error(message="User has no staff profile.", http_status=status.HTTP_404_NOT_FOUND)
        return _success(data=StaffProfileSerializer(profile).data)


class MentionableStaffAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return _success(data=StaffProfileSerializer(StaffDirectory.mentionable(), many=True).data)


class SalesStaffAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return _success(data=StaffProfileSerializer(StaffDirectory.sales(), many=True).data)


class StaffAdminAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, (AccountForbiddenError, StaffProfileMissingError)):
            return _error(message=str(exc), http_status=status.HTTP_403_FORBIDDEN)
        if isinstance(exc, AccountNotFoundError):
            return _error(message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, AccountValidationError):
            return _error(message=str(exc), field=exc.field)
        return super().handle_exception(exc)


class StaffListCreateAPI(StaffAdminAPIView):
    def get(self, request):
        ensure_staff_admin(StaffDirectory.actor_for(request.user).roles)
        profiles = StaffProfile.objects.select_related("user").order_by("full_name", "id")
        return _success(data=StaffProfileSerializer(profiles, many=True).data)

    def post(self, request):
        actor = StaffDirectory.actor_for(request.user)
        serializer = StaffRegisterSerializer(data=request.data)
        if not serializer.is_valid():
            field = next(iter(serializer.errors), None)
            return _error(message="Invalid input.", field=field)
        data = serializer.validated_data
        profile = RegisterStaffUseCase.execute(
            RegisterStaffCommand(
                actor=actor,
                username=data["username"],
                email=data.get("email", ""),
                password=data["password"],
                full_name=data["full_name"],
                roles=tuple(data["roles"]),
            )
        )
        return _success(data=StaffProfileSerializer(profile).data, http_status=status.HTTP_201_CREATED)


class StaffRolesAPI(StaffAdminAPIView):
    def patch(self, request, user_id: int):
        actor = StaffDirectory.actor_for(request.user)
        serializer = StaffRolesSerializer(data=request.data)
        if not serializer.is_valid():
            return _error(message="Invalid input.", field="roles")
        profile = UpdateStaffRolesUseCase.execute(
            UpdateStaffRolesCommand(actor=actor, user_id=user_id, roles=tuple(serializer.validated_data["roles"]))
        )
        return _success(data=StaffProfileSerializer(profile).data)


class StaffActiveAPI(StaffAdminAPIView):
    def patch(self, request, user_id: int):
        actor = StaffDirectory.actor_for(request.user)
        serializer = StaffActiveSerializer(data=request.data)
        if not serializer.is_valid():
            return _error(message="Invalid input.", field="is_active")
        profile = SetStaffActiveUseCase.execute(
            SetStaffActiveCommand(actor=actor, user_id=user_id, is_active=serializer.validated_data["is_active"])
        )
        return _success(data=StaffProfileSerializer(profile).data)
