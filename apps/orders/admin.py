from django.contrib import admin

from .models import Order, OrderAssignment, OrderDraft, OrderStatusHistory, Painting, ProfitShare


class PaintingInline(admin.TabularInline):
    model = Painting
    extra = 0
    fields = ("painting_type", "width", "height", "frame_type", "quantity", "is_printed", "received_by_production", "received_by_packing")


class StatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ("status", "actor", "note", "created_at")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "code", "customer_name", "order_type", "status", "printing_status", "frame_cutting_status", "total_amount", "created_at")
    search_fields = ("code", "customer_name", "customer_phone")
    list_filter = ("status", "order_type", "printing_status", "frame_cutting_status")
    readonly_fields = ("version", "created_at", "updated_at")
    inlines = [PaintingInline, StatusHistoryInline]


@admin.register(OrderDraft)
class OrderDraftAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "status", "proposed_by", "reviewed_by", "created_at")
    list_filter = ("status",)
    list_select_related = ("order", "proposed_by", "reviewed_by")


admin.site.register(ProfitShare)
admin.site.register(OrderAssignment)
