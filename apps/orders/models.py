from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from apps.orders.domain.statuses import (
    DraftStatus,
    FrameCuttingStatus,
    OrderStatus,
    OrderType,
    PaintingType,
    PrintingStatus,
    ShippingMethod,
    choices,
)


class Order(models.Model):
    STATUS_CHOICES = choices(OrderStatus)
    PRINTING_STATUS_CHOICES = choices(PrintingStatus)
    FRAME_CUTTING_STATUS_CHOICES = choices(FrameCuttingStatus)
    ORDER_TYPE_CHOICES = choices(OrderType)
    SHIPPING_METHOD_CHOICES = choices(ShippingMethod)

    code = models.CharField(max_length=64, unique=True)
    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=32)
    customer_address = models.CharField(max_length=500, blank=True, default="")
    order_type = models.CharField(max_length=16, choices=ORDER_TYPE_CHOICES, default=OrderType.NORMAL.value)

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=OrderStatus.NEW.value)
    printing_status = models.CharField(
        max_length=32, choices=PRINTING_STATUS_CHOICES, default=PrintingStatus.NOT_PRINTED.value
    )
    frame_cutting_status = models.CharField(
        max_length=32, choices=FRAME_CUTTING_STATUS_CHOICES, default=FrameCuttingStatus.NOT_CUT.value
    )

    note = models.TextField(blank=True, default="")
    mention_ids = models.JSONField(default=list, blank=True)

    painting_price = models.BigIntegerField(default=0)
    construction_price = models.BigIntegerField(default=0)
    design_fee = models.BigIntegerField(default=0)
    shipping_installation_price = models.BigIntegerField(default=0)
    customer_pays_shipping = models.BooleanField(default=True)
    extra_fee_name = models.CharField(max_length=200, blank=True, default="")
    extra_fee_amount = models.BigIntegerField(default=0)
    include_vat = models.BooleanField(default=True)
    vat = models.BigIntegerField(default=0)
    deposit_amount = models.BigIntegerField(default=0)
    total_amount = models.BigIntegerField(default=0)
    cod = models.BigIntegerField(default=0)
    actual_received_amount = models.BigIntegerField(default=0)

    shipping_method = models.CharField(max_length=32, choices=SHIPPING_METHOD_CHOICES, null=True, blank=True)
    shipping_tracking_code = models.CharField(max_length=100, blank=True, default="")
    shipping_external_info = models.CharField(max_length=500, blank=True, default="")
    shipping_external_cost = models.BigIntegerField(default=0)

    deposit_images = models.JSONField(default=list, blank=True)
    payment_bill_images = models.JSONField(default=list, blank=True)

    expected_completion_date = models.DateField(null=True, blank=True)
    actual_completion_date = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_orders",
    )
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
            models.Index(fields=["order_type", "created_at"], name="order_type_created_idx"),
            models.Index(fields=["created_by", "created_at"], name="order_creator_created_idx"),
            models.Index(fields=["actual_completion_date"], name="order_completed_idx"),
        ]

    def __str__(self) -> str:
        return f"Order(id={self.id}, code={self.code}, status={self.status})"


class Painting(models.Model):
    TYPE_CHOICES = choices(PaintingType)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="paintings")
    painting_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=PaintingType.FRAMED.value)
    width = models.FloatField()
    height = models.FloatField()
    frame_type = models.CharField(max_length=120)
    quantity = models.PositiveIntegerField(default=1)
    note = models.TextField(blank=True, default="")
    mention_ids = models.JSONField(default=list, blank=True)
    images = models.JSONField(default=list, blank=True)
    files = models.JSONField(default=list, blank=True)
    position = models.PositiveIntegerField(default=0)

    is_printed = models.BooleanField(default=False)
    printed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    printed_at = models.DateTimeField(null=True, blank=True)

    received_by_production = models.BooleanField(default=False)
    production_received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    production_received_at = models.DateTimeField(null=True, blank=True)

    received_by_packing = models.BooleanField(default=False)
    packing_received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    packing_received_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self) -> str:
        return f"Painting(id={self.id}, order_id={self.order_id}, type={self.painting_type})"


class OrderStatusHistory(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_history")
    status = models.CharField(max_length=32, choices=Order.STATUS_CHOICES)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    note = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"OrderStatusHistory(order_id={self.order_id}, status={self.status})"


class ProfitShare(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="profit_shares")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profit_shares")
    percentage = models.FloatField(default=0)
    amount = models.BigIntegerField(default=0)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"ProfitShare(order_id={self.order_id}, user_id={self.user_id}, pct={self.percentage})"


class OrderAssignment(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="assignments")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="order_assignments")
    role = models.CharField(max_length=32)
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["order", "user", "role"], name="order_assignment_unique"),
        ]

    def __str__(self) -> str:
        return f"OrderAssignment(order_id={self.order_id}, user_id={self.user_id}, role={self.role})"


class OrderDraft(models.Model):
    STATUS_CHOICES = choices(DraftStatus)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="drafts")
    proposed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="proposed_order_drafts"
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=DraftStatus.PENDING.value)
    original = models.JSONField(default=dict)
    proposed = models.JSONField(default=dict)
    changed_fields = models.JSONField(default=list, blank=True)
    review_note = models.TextField(blank=True, default="")
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=Q(status="pending"),
                name="order_single_pending_draft",
            ),
        ]

    def __str__(self) -> str:
        return f"OrderDraft(id={self.id}, order_id={self.order_id}, status={self.status})"
