from django.urls import path

from .views import CurrentStaffAPI, MentionableStaffAPI, SalesStaffAPI, StaffActiveAPI, StaffListCreateAPI, StaffRolesAPI

urlpatterns = [
    path("users/me/", CurrentStaffAPI.as_view(), name="api_users_me"),
    path("users/mentionable/", MentionableStaffAPI.as_view(), name="api_users_mentionable"),
    path("users/sales/", SalesStaffAPI.as_view(), name="api_users_sales"),
    path("admin/users/", StaffListCreateAPI.as_view(), name="api_admin_users"),
    path("admin/users/<int:user_id>/roles/", StaffRolesAPI.as_view(), name="api_admin_user_roles"),
    path("admin/users/<int:user_id>/active/", StaffActiveAPI.as_view(), name="api_admin_user_active"),
]
