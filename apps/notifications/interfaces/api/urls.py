from django.urls import path

from .views import NotificationListAPI, NotificationReadAllAPI, NotificationReadAPI

urlpatterns = [
    path("notifications/", NotificationListAPI.as_view(), name="api_notifications"),
    path("notifications/read-all/", NotificationReadAllAPI.as_view(), name="api_notifications_read_all"),
    path("notifications/<int:notification_id>/read/", NotificationReadAPI.as_view(), name="api_notification_read"),
]
