from __future__ import annotations

from rest_framework import serializers

from apps.accounts.models import StaffProfile


class StaffProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    full_name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = StaffProfile
        fields = ["id", "full_name", "email", "roles", "is_active"]


class StaffRegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    password = serializers.CharField(write_only=True)
    full_name = serializers.CharField(max_length=200)
    roles = serializers.ListField(child=serializers.CharField(), allow_empty=False)


class StaffRolesSerializer(serializers.Serializer):
    roles = serializers.ListField(child=serializers.CharField(), allow_empty=False)


class StaffActiveSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()
