from __future__ import annotations

from django.conf import settings
from django.db import models


class Notification(models.Model):
    TYPE_CHOICES = [
        ("status_change", "Status change"),
        ("create", "Create"),
        ("edit", "Edit"),
        ("mention", "Mention"),
        ("cancel", "Cancel"),
        ("rework", "Rework"),
        ("draft", "Draft pending"),
        ("draft_approved", "Draft approved"),
        ("draft_rejected", "Draft rejected"),
    ]

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    type = models.CharField(max_length=32, choices=TYPE_CHOICES, default="edit")
    link = models.CharField(max_length=255, blank=True, default="")
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    metadata = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
            models.Index(fields=["recipient", "created_at"], name="notif_recipient_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Notification(recipient_id={self.recipient_id}, type={self.type})"
