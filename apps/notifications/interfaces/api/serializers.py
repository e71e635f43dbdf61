from __future__ import annotations

from rest_framework import serializers

from apps.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "message",
            "type",
            "link",
            "order_id",
            "sender_id",
            "sender_name",
            "metadata",
            "is_read",
            "created_at",
        ]

    def get_sender_name(self, obj: Notification) -> str:
        if not obj.sender_id:
            return ""
        return obj.sender.get_full_name() or obj.sender.get_username()
