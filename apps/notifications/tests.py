from __future__ import annotations

import json
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import Client, SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from apps.accounts.models import StaffProfile
from apps.notifications.application.use_cases.deliver_notifications import (
    DeliverNotificationsUseCase,
    request_from_payload,
)
from apps.notifications.infrastructure.event_bus import InProcessEventBus, get_event_bus
from apps.notifications.infrastructure.router import OrderMessageRouter
from apps.notifications.infrastructure.stream import MAX_PENDING_EVENTS, OrderStreamBroker, order_stream
from apps.notifications.models import Notification
from apps.orders.domain.ports import NotificationRequest, OrderEvent


def make_staff(username: str, roles: list[str], *, is_active: bool = True):
    user = get_user_model().objects.create_user(username=username, password="StrongPass12345!")
    StaffProfile.objects.create(user=user, full_name=username.title(), roles=roles, is_active=is_active)
    return user


class EventBusTests(SimpleTestCase):
    def test_failing_handler_does_not_stop_the_others(self):
        bus = InProcessEventBus()
        received = []

        def broken(message):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)
        event = OrderEvent(order_id=1, action="created")

        with self.assertLogs("framehouse.notifications", level="ERROR") as logs:
            bus.publish(event)

        self.assertEqual(received, [event])
        self.assertIn("notification_handler_failed", logs.output[0])

    def test_unsubscribe(self):
        bus = InProcessEventBus()
        received = []
        bus.subscribe(received.append)
        bus.unsubscribe(received.append)
        bus.unsubscribe(received.append)
        bus.publish(OrderEvent(order_id=1, action="created"))
        self.assertEqual(received, [])

    def test_app_bus_routes_to_stream(self):
        subscription = order_stream.connect(user_id=1, roles=["admin"])
        self.addCleanup(order_stream.disconnect, subscription)

        get_event_bus().publish(OrderEvent(order_id=7, action="status_changed", target_roles=frozenset({"admin"})))
        self.assertEqual(subscription.get(timeout=0.1).order_id, 7)

    def test_router_rejects_unknown_messages(self):
        router = OrderMessageRouter(stream=OrderStreamBroker())
        with self.assertRaises(TypeError):
            router.route({"order_id": 1})


class OrderStreamBrokerTests(SimpleTestCase):
    def test_role_filtering(self):
        broker = OrderStreamBroker()
        printer = broker.connect(user_id=1, roles=["printing"])
        packer = broker.connect(user_id=2, roles=["packing"])

        delivered = broker.broadcast(OrderEvent(order_id=3, action="accepted", target_roles=frozenset({"printing", "sale"})))
        self.assertEqual(delivered, 1)
        self.assertEqual(printer.get(timeout=0.01).action, "accepted")
        self.assertIsNone(packer.get(timeout=0.01))

    def test_untargeted_events_reach_everyone(self):
        broker = OrderStreamBroker()
        subscriptions = [broker.connect(user_id=uid, roles=[]) for uid in (1, 2)]
        self.assertEqual(broker.broadcast(OrderEvent(order_id=3, action="deleted")), 2)
        for subscription in subscriptions:
            self.assertEqual(subscription.get(timeout=0.01).action, "deleted")

    def test_lagging_client_drops_events(self):
        broker = OrderStreamBroker()
        subscription = broker.connect(user_id=1, roles=["admin"])
        for index in range(MAX_PENDING_EVENTS):
            broker.broadcast(OrderEvent(order_id=index, action="created"))

        with self.assertLogs("framehouse.notifications", level="WARNING") as logs:
            self.assertEqual(broker.broadcast(OrderEvent(order_id=999, action="created")), 0)
        self.assertIn("stream_client_lagging", logs.output[0])
        self.assertEqual(subscription.queue.qsize(), MAX_PENDING_EVENTS)

    def test_disconnect(self):
        broker = OrderStreamBroker()
        subscription = broker.connect(user_id=1, roles=["admin"])
        self.assertEqual(broker.client_count, 1)
        broker.disconnect(subscription)
        self.assertEqual(broker.client_count, 0)
        self.assertEqual(broker.broadcast(OrderEvent(order_id=1, action="created")), 0)


class DeliverNotificationsTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sale = make_staff("sale", ["sale"])
        self.admin = make_staff("admin", ["admin"])
        self.printer = make_staff("printer", ["printing"])
        self.retired = make_staff("retired", ["admin"], is_active=False)

    def test_role_audience_excludes_sender_and_inactive(self):
        count = DeliverNotificationsUseCase.execute(
            NotificationRequest(
                title="New order",
                message="Sale created order DABC-0101",
                order_id=None,
                sender_id=self.sale.id,
                recipient_roles=frozenset({"sale", "admin"}),
                action_type="create",
            )
        )
        self.assertEqual(count, 1)
        notification = Notification.objects.get()
        self.assertEqual(notification.recipient, self.admin)
        self.assertEqual(notification.sender, self.sale)
        self.assertEqual(notification.link, "")

    def test_explicit_recipients_merge_with_roles(self):
        DeliverNotificationsUseCase.execute(
            NotificationRequest(
                title="You were mentioned",
                message="hi",
                sender_id=self.sale.id,
                recipient_roles=frozenset({"printing"}),
                recipient_ids=(self.printer.id, self.admin.id, self.sale.id, self.retired.id),
                action_type="mention",
            )
        )
        recipients = set(Notification.objects.values_list("recipient_id", flat=True))
        self.assertEqual(recipients, {self.printer.id, self.admin.id})

    def test_payload_round_trip_for_celery(self):
        request = request_from_payload(
            {"title": "t", "message": "m", "sender_id": self.admin.id, "recipient_roles": ["printing"], "recipient_ids": []}
        )
        self.assertEqual(request.recipient_roles, frozenset({"printing"}))
        self.assertEqual(request.action_type, "edit")
        self.assertEqual(DeliverNotificationsUseCase.recipients(request), [self.printer.id])

    @override_settings(NOTIFICATIONS_ASYNC=True)
    def test_async_delivery_enqueues_task(self):
        request = NotificationRequest(
            title="t", message="m", sender_id=self.sale.id, recipient_roles=frozenset({"admin", "printing"})
        )
        with mock.patch("apps.notifications.tasks.deliver_notifications_task.delay") as delay:
            OrderMessageRouter.deliver(request)

        delay.assert_called_once()
        payload = delay.call_args.kwargs["payload"]
        self.assertEqual(payload["recipient_roles"], ["admin", "printing"])
        self.assertEqual(payload["sender_id"], self.sale.id)
        self.assertFalse(Notification.objects.exists())

    def test_task_body_delivers(self):
        from apps.notifications.tasks import deliver_notifications_task

        count = deliver_notifications_task.run(
            payload={"title": "t", "message": "m", "sender_id": self.sale.id, "recipient_roles": ["admin"]}
        )
        self.assertEqual(count, 1)


class InboxApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = APIClient()
        self.user = make_staff("printer", ["printing"])
        self.other = make_staff("packer", ["packing"])
        for index in range(3):
            Notification.objects.create(recipient=self.user, title=f"n{index}", message="m", type="status_change")
        self.foreign = Notification.objects.create(recipient=self.other, title="x", message="m", type="edit")
        self.client.force_authenticate(user=self.user)

    def test_list_newest_first_with_unread_count(self):
        payload = self.client.get("/api/notifications/").json()
        self.assertTrue(payload["success"])
        self.assertEqual([row["title"] for row in payload["data"]], ["n2", "n1", "n0"])
        self.assertEqual(payload["unread_count"], 3)

    def test_mark_one_read(self):
        target = Notification.objects.filter(recipient=self.user).first()
        response = self.client.patch(f"/api/notifications/{target.id}/read/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["data"]["is_read"])

        unread = self.client.get("/api/notifications/", {"unread": "true"}).json()
        self.assertEqual(len(unread["data"]), 2)
        self.assertEqual(unread["unread_count"], 2)

    def test_cannot_read_someone_elses_notification(self):
        response = self.client.patch(f"/api/notifications/{self.foreign.id}/read/")
        self.assertEqual(response.status_code, 404)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_mark_all_read(self):
        response = self.client.patch("/api/notifications/read-all/")
        self.assertEqual(response.json()["data"], {"updated": 3})
        self.assertFalse(Notification.objects.filter(recipient=self.user, is_read=False).exists())
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)


class OrderStreamEndpointTests(TestCase):
    def test_requires_authentication(self):
        response = Client().get("/api/orders/stream/")
        self.assertEqual(response.status_code, 401)

    def test_bad_query_token_is_rejected(self):
        response = Client().get("/api/orders/stream/", {"token": "not-a-jwt"})
        self.assertEqual(response.status_code, 401)

    def test_streams_events_for_the_callers_roles(self):
        user = make_staff("printer", ["printing"])
        client = Client()
        client.force_login(user)

        response = client.get("/api/orders/stream/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/event-stream")
        chunks = iter(response.streaming_content)
        self.assertEqual(next(chunks), b"retry: 3000\n\n")
        self.assertIn(b"event: connected", next(chunks))

        order_stream.broadcast(OrderEvent(order_id=5, action="accepted", target_roles=frozenset({"printing"})))
        frame = next(chunks).decode()
        self.assertTrue(frame.startswith("event: order\n"))
        data = json.loads(frame.split("data: ", 1)[1])
        self.assertEqual(data["order_id"], 5)
        self.assertEqual(data["target_roles"], ["printing"])

        clients = order_stream.client_count
        response.close()
        self.assertEqual(order_stream.client_count, clients - 1)
