from __future__ import annotations

from rest_framework import serializers

from apps.orders.domain.aggregation import effective_frame_cutting_status
from apps.orders.domain.statuses import OrderStatus, ReceiveType, ReworkType
from apps.orders.models import Order, OrderAssignment, OrderDraft, OrderStatusHistory, Painting, ProfitShare

# Keys of an edit payload that are not order fields.
CONTROL_KEYS = ("expected_version", "code", "printing_status", "frame_cutting_status")

MONEY_OUTPUT_FIELDS = (
    "painting_price",
    "construction_price",
    "design_fee",
    "shipping_installation_price",
    "extra_fee_name",
    "extra_fee_amount",
    "vat",
    "deposit_amount",
    "total_amount",
    "cod",
    "actual_received_amount",
    "shipping_external_cost",
    "profit_shares",
    "deposit_images",
    "payment_bill_images",
)


def order_fields(data) -> dict:
    return {key: value for key, value in data.items() if key not in CONTROL_KEYS}


class VersionedSerializer(serializers.Serializer):
    expected_version = serializers.IntegerField(required=False, min_value=1)


class PaintingInputSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False, allow_null=True)
    painting_type = serializers.CharField(required=False)
    type = serializers.CharField(required=False)
    width = serializers.FloatField(required=False, allow_null=True)
    height = serializers.FloatField(required=False, allow_null=True)
    diameter = serializers.FloatField(required=False, allow_null=True)
    frame_type = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.IntegerField(required=False, min_value=1)
    note = serializers.CharField(required=False, allow_blank=True)
    mention_ids = serializers.ListField(required=False)
    images = serializers.ListField(child=serializers.CharField(), required=False)
    files = serializers.ListField(child=serializers.CharField(), required=False)


class OrderCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    customer_name = serializers.CharField(max_length=200)
    customer_phone = serializers.CharField(max_length=32)
    paintings = PaintingInputSerializer(many=True, allow_empty=False)
    printing_status = serializers.CharField(required=False, allow_blank=True)
    frame_cutting_status = serializers.CharField(required=False, allow_blank=True)


class OrderUpdateSerializer(VersionedSerializer):
    customer_name = serializers.CharField(max_length=200, required=False)
    customer_phone = serializers.CharField(max_length=32, required=False)
    paintings = PaintingInputSerializer(many=True, required=False, allow_empty=False)


class StatusUpdateSerializer(VersionedSerializer):
    status = serializers.ChoiceField(choices=[status.value for status in OrderStatus])
    note = serializers.CharField(required=False, allow_blank=True, default="")


class StepRoleSerializer(VersionedSerializer):
    role = serializers.CharField()


class CompleteOrderSerializer(StepRoleSerializer):
    shipping_method = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    shipping_tracking_code = serializers.CharField(required=False, allow_blank=True, default="")
    shipping_external_info = serializers.CharField(required=False, allow_blank=True, default="")
    shipping_external_cost = serializers.JSONField(required=False, allow_null=True)
    shipping_installation_price = serializers.JSONField(required=False, allow_null=True)
    customer_pays_shipping = serializers.JSONField(required=False, allow_null=True)
    payment_bill_images = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class ReceiveOrderSerializer(VersionedSerializer):
    type = serializers.ChoiceField(choices=[kind.value for kind in ReceiveType])


class ReworkSerializer(VersionedSerializer):
    type = serializers.ChoiceField(choices=[kind.value for kind in ReworkType])
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RejectDraftSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class DeleteOrderSerializer(serializers.Serializer):
    secret_code = serializers.CharField(allow_blank=True)


class PurgeOrdersSerializer(serializers.Serializer):
    months = serializers.IntegerField()
    secret_code = serializers.CharField(allow_blank=True)


class PaintingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Painting
        fields = [
            "id",
            "painting_type",
            "width",
            "height",
            "frame_type",
            "quantity",
            "note",
            "mention_ids",
            "images",
            "files",
            "is_printed",
            "printed_by",
            "printed_at",
            "received_by_production",
            "production_received_by",
            "production_received_at",
            "received_by_packing",
            "packing_received_by",
            "packing_received_at",
        ]


class StatusHistorySerializer(serializers.ModelSerializer):
    actor_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderStatusHistory
        fields = ["id", "status", "note", "actor", "actor_name", "created_at"]

    def get_actor_name(self, obj: OrderStatusHistory) -> str:
        names = self.context.get("names") or {}
        return names.get(obj.actor_id, "") if obj.actor_id else ""


class ProfitShareSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProfitShare
        fields = ["user", "percentage", "amount"]


class AssignmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderAssignment
        fields = ["user", "role", "assigned_at"]


class OrderDraftSerializer(serializers.ModelSerializer):
    proposed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderDraft
        fields = [
            "id",
            "status",
            "proposed_by",
            "proposed_by_name",
            "original",
            "proposed",
            "changed_fields",
            "review_note",
            "reviewed_at",
            "created_at",
        ]

    def get_proposed_by_name(self, obj: OrderDraft) -> str:
        if not obj.proposed_by_id:
            return ""
        return obj.proposed_by.get_full_name() or obj.proposed_by.get_username()


class _MoneyAwareSerializer(serializers.ModelSerializer):
    """Drops the price columns when the context says the caller may not see them."""

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if self.context.get("hide_money"):
            for key in MONEY_OUTPUT_FIELDS:
                data.pop(key, None)
        return data


class OrderListSerializer(_MoneyAwareSerializer):
    paintings = PaintingSerializer(many=True, read_only=True)
    has_pending_draft = serializers.SerializerMethodField()
    frame_cutting_status = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "code",
            "customer_name",
            "customer_phone",
            "customer_address",
            "order_type",
            "status",
            "printing_status",
            "frame_cutting_status",
            "painting_price",
            "total_amount",
            "deposit_amount",
            "cod",
            "shipping_method",
            "expected_completion_date",
            "actual_completion_date",
            "created_by",
            "created_at",
            "version",
            "paintings",
            "has_pending_draft",
        ]

    def get_has_pending_draft(self, obj: Order) -> bool:
        return obj.id in (self.context.get("pending_draft_ids") or ())

    def get_frame_cutting_status(self, obj: Order) -> str:
        return effective_frame_cutting_status(obj.frame_cutting_status, list(obj.paintings.all()))


class OrderDetailSerializer(_MoneyAwareSerializer):
    paintings = PaintingSerializer(many=True, read_only=True)
    status_history = serializers.SerializerMethodField()
    profit_shares = ProfitShareSerializer(many=True, read_only=True)
    assignments = AssignmentSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "code",
            "customer_name",
            "customer_phone",
            "customer_address",
            "order_type",
            "status",
            "printing_status",
            "frame_cutting_status",
            "note",
            "mention_ids",
            "painting_price",
            "construction_price",
            "design_fee",
            "shipping_installation_price",
            "customer_pays_shipping",
            "extra_fee_name",
            "extra_fee_amount",
            "include_vat",
            "vat",
            "deposit_amount",
            "total_amount",
            "cod",
            "actual_received_amount",
            "shipping_method",
            "shipping_tracking_code",
            "shipping_external_info",
            "shipping_external_cost",
            "deposit_images",
            "payment_bill_images",
            "expected_completion_date",
            "actual_completion_date",
            "created_by",
            "created_at",
            "updated_at",
            "version",
            "paintings",
            "status_history",
            "profit_shares",
            "assignments",
        ]

    def get_status_history(self, obj: Order) -> list:
        return StatusHistorySerializer(obj.status_history.all(), many=True, context=self.context).data
