from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "recipient", "type", "title", "order", "is_read", "created_at")
    search_fields = ("title", "message", "recipient__username")
    list_filter = ("type", "is_read")
    list_select_related = ("recipient", "order")
