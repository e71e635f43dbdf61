from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.notifications"
    verbose_name = "Notifications"

    def ready(self) -> None:
        from apps.notifications.infrastructure.event_bus import InProcessEventBus
        from apps.notifications.infrastructure.router import OrderMessageRouter
        from apps.notifications.infrastructure.stream import order_stream

        self.bus = InProcessEventBus()
        self.bus.subscribe(OrderMessageRouter(stream=order_stream).route)
