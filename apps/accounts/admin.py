from django.contrib import admin

from .models import StaffProfile


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "full_name", "roles", "is_active", "created_at")
    search_fields = ("full_name", "user__username", "user__email")
    list_filter = ("is_active",)
    list_select_related = ("user",)
