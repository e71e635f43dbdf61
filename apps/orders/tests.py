from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.accounts.domain.roles import Role
from apps.accounts.models import StaffProfile
from apps.notifications.infrastructure.event_bus import get_event_bus
from apps.notifications.models import Notification
from apps.orders.application.use_cases.painting_progress import _PaintingStep
from apps.orders.domain.ports import NotificationRequest, OrderEvent
from apps.orders.models import Order, OrderAssignment, OrderDraft, OrderStatusHistory, Painting


def make_staff(username: str, *roles: Role, full_name: str = ""):
    user = get_user_model().objects.create_user(username=username, password="Framehouse-pass-123")
    StaffProfile.objects.create(user=user, full_name=full_name or username.title(), roles=[role.value for role in roles])
    return user


FRAMED = {"painting_type": "framed", "width": 40, "height": 60, "frame_type": "oak"}
FLAT = {"painting_type": "flat", "width": 30, "height": 30, "frame_type": "none"}


class RecordingSubscriber:
    def __init__(self):
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)

    def events(self, action: str | None = None) -> list[OrderEvent]:
        return [m for m in self.messages if isinstance(m, OrderEvent) and (action is None or m.action == action)]

    def requests(self) -> list[NotificationRequest]:
        return [m for m in self.messages if isinstance(m, NotificationRequest)]


class OrderApiTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = APIClient()
        self.admin = make_staff("admin", Role.ADMIN, full_name="Admin")
        self.sale = make_staff("sale", Role.SALE, full_name="Sale Lan")
        self.printer = make_staff("printer", Role.PRINTING)
        self.cutter = make_staff("cutter", Role.FRAME_CUTTING)
        self.production = make_staff("production", Role.PRODUCTION)
        self.packer = make_staff("packer", Role.PACKING)
        self.dispatch = make_staff("dispatch", Role.DISPATCH_ACCOUNTING)
        self.finance = make_staff("finance", Role.FINANCE_ACCOUNTING)

        self.recorder = RecordingSubscriber()
        get_event_bus().subscribe(self.recorder)
        self.addCleanup(get_event_bus().unsubscribe, self.recorder)

    def as_user(self, user) -> APIClient:
        self.client.force_authenticate(user=user)
        return self.client

    def create_order(self, *, code: str = "abc", paintings=None, **fields) -> dict:
        payload = {
            "code": code,
            "customer_name": "Nguyen An",
            "customer_phone": "0901000000",
            "paintings": paintings or [FRAMED],
            "painting_price": 1_000_000,
        }
        payload.update(fields)
        response = self.as_user(self.sale).post("/api/orders/", data=payload, format="json")
        self.assertEqual(response.status_code, 201, response.content)
        return response.json()["data"]


class OrderCreateTests(OrderApiTestCase):
    def test_create_computes_money_and_notifies_desk(self):
        with self.captureOnCommitCallbacks(execute=True):
            data = self.create_order(
                shipping_installation_price=50_000,
                customer_pays_shipping=False,
                include_vat=True,
                deposit_amount=200_000,
            )

        self.assertEqual(data["code"], f"DABC-{timezone.localdate():%d%m}")
        self.assertEqual(data["status"], "new")
        self.assertEqual(data["total_amount"], 1_080_000)
        self.assertEqual(data["cod"], 880_000)
        self.assertEqual(data["frame_cutting_status"], "not_cut")
        self.assertEqual(len(data["paintings"]), 1)
        self.assertEqual(data["status_history"][0]["actor_name"], "Sale Lan")

        self.assertEqual(len(self.recorder.events("created")), 1)
        self.assertTrue(Notification.objects.filter(recipient=self.admin, type="create").exists())
        self.assertFalse(Notification.objects.filter(recipient=self.sale).exists())

    def test_duplicate_code_is_rejected(self):
        self.create_order(code="dup")
        response = self.as_user(self.sale).post(
            "/api/orders/",
            data={"code": "dup", "customer_name": "B", "customer_phone": "1", "paintings": [FLAT]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "code")

    def test_order_needs_a_painting(self):
        response = self.as_user(self.sale).post(
            "/api/orders/",
            data={"code": "empty", "customer_name": "B", "customer_phone": "1", "paintings": []},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_shop_floor_cannot_create(self):
        response = self.as_user(self.printer).post(
            "/api/orders/",
            data={"code": "x1", "customer_name": "B", "customer_phone": "1", "paintings": [FLAT]},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_user_without_staff_profile_is_forbidden(self):
        stranger = get_user_model().objects.create_user(username="stranger", password="Framehouse-pass-123")
        response = self.as_user(stranger).get("/api/orders/")
        self.assertEqual(response.status_code, 403)


class OrderReadTests(OrderApiTestCase):
    def test_frame_status_reported_not_applicable_without_cutting_items(self):
        data = self.create_order(paintings=[FLAT])
        Order.objects.filter(id=data["id"]).update(frame_cutting_status="not_cut")

        response = self.as_user(self.sale).get(f"/api/orders/{data['id']}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["frame_cutting_status"], "not_applicable")

    def test_money_fields_hidden_from_shop_floor(self):
        data = self.create_order()

        detail = self.as_user(self.printer).get(f"/api/orders/{data['id']}/").json()["data"]
        self.assertNotIn("total_amount", detail)
        self.assertTrue(detail["capabilities"]["hide_money_fields"])
        self.assertEqual(detail["capabilities"]["can_accept"]["role"], "printing")

        listing = self.as_user(self.printer).get("/api/orders/").json()
        self.assertNotIn("total_amount", listing["data"][0])
        self.assertIn("total_amount", self.as_user(self.sale).get("/api/orders/").json()["data"][0])

    def test_list_filters_and_pagination(self):
        self.create_order(code="one")
        self.create_order(code="two", order_type="urgent")
        self.create_order(code="three", paintings=[FLAT])

        payload = self.as_user(self.admin).get("/api/orders/", {"limit": 2}).json()
        self.assertEqual(payload["pagination"], {"page": 1, "limit": 2, "total": 3, "pages": 2})
        # New urgent orders lead the queue.
        self.assertTrue(payload["data"][0]["code"].startswith("DTWO-"))

        by_type = self.as_user(self.admin).get("/api/orders/", {"order_type": "urgent"}).json()
        self.assertEqual(len(by_type["data"]), 1)

        by_search = self.as_user(self.admin).get("/api/orders/", {"search": "30x30"}).json()
        self.assertEqual([row["code"][:6] for row in by_search["data"]], ["DTHREE"])

        past_end = self.as_user(self.admin).get("/api/orders/", {"page": 5, "limit": 2}).json()
        self.assertEqual(past_end["data"], [])

    def test_in_stock_frame_status_reported_not_applicable_without_cutting_items(self):
        data = self.create_order(paintings=[FLAT])
        Order.objects.filter(id=data["id"]).update(frame_cutting_status="in_stock")

        detail = self.as_user(self.sale).get(f"/api/orders/{data['id']}/").json()["data"]
        self.assertEqual(detail["frame_cutting_status"], "not_applicable")
        row = self.as_user(self.sale).get("/api/orders/").json()["data"][0]
        self.assertEqual(row["frame_cutting_status"], "not_applicable")

    def test_frame_status_filter_matches_reported_value(self):
        framed = self.create_order(code="framed")
        flat = self.create_order(code="flat", paintings=[FLAT])
        Order.objects.filter(id=flat["id"]).update(frame_cutting_status="not_cut")

        not_applicable = self.as_user(self.admin).get("/api/orders/", {"frame_cutting_status": "not_applicable"}).json()
        self.assertEqual([row["id"] for row in not_applicable["data"]], [flat["id"]])

        not_cut = self.as_user(self.admin).get("/api/orders/", {"frame_cutting_status": "not_cut"}).json()
        self.assertEqual([row["id"] for row in not_cut["data"]], [framed["id"]])

    def test_page_size_is_capped(self):
        self.create_order()
        payload = self.as_user(self.admin).get("/api/orders/", {"limit": 500}).json()
        self.assertEqual(payload["pagination"]["limit"], 100)
        self.assertEqual(len(payload["data"]), 1)


class DraftApprovalTests(OrderApiTestCase):
    def test_restricted_edits_replace_the_pending_draft(self):
        data = self.create_order()
        order_id = data["id"]

        first = self.as_user(self.sale).patch(f"/api/orders/{order_id}/", data={"painting_price": 1_500_000}, format="json")
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.json()["pending_approval"])
        second = self.as_user(self.sale).patch(f"/api/orders/{order_id}/", data={"deposit_amount": 300_000}, format="json")
        self.assertEqual(second.status_code, 200)

        drafts = OrderDraft.objects.filter(order_id=order_id, status="pending")
        self.assertEqual(drafts.count(), 1)
        proposed = drafts.get().proposed
        self.assertEqual(proposed["painting_price"], 1_500_000)
        self.assertEqual(proposed["deposit_amount"], 300_000)

        order = Order.objects.get(id=order_id)
        self.assertEqual(order.painting_price, 1_000_000)
        self.assertEqual(order.deposit_amount, 0)

    def test_non_money_edit_by_sale_applies_directly(self):
        data = self.create_order()
        response = self.as_user(self.sale).patch(
            f"/api/orders/{data['id']}/", data={"customer_address": "12 Hang Bong"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("pending_approval", response.json())
        self.assertEqual(Order.objects.get(id=data["id"]).customer_address, "12 Hang Bong")
        self.assertFalse(OrderDraft.objects.filter(order_id=data["id"]).exists())

    def test_reject_leaves_order_untouched(self):
        data = self.create_order()
        order_id = data["id"]
        before = self.as_user(self.admin).get(f"/api/orders/{order_id}/").json()["data"]

        self.as_user(self.sale).patch(f"/api/orders/{order_id}/", data={"painting_price": 2_000_000}, format="json")
        with self.captureOnCommitCallbacks(execute=True):
            response = self.as_user(self.admin).patch(
                f"/api/orders/{order_id}/draft/reject/", data={"reason": "too high"}, format="json"
            )
        self.assertEqual(response.status_code, 200)

        order = Order.objects.get(id=order_id)
        for key in ("painting_price", "vat", "total_amount", "cod", "deposit_amount"):
            self.assertEqual(getattr(order, key), before[key])
        self.assertFalse(OrderDraft.objects.filter(order_id=order_id, status="pending").exists())
        self.assertTrue(OrderDraft.objects.filter(order_id=order_id, status="rejected").exists())
        self.assertTrue(Notification.objects.filter(recipient=self.sale, type="draft_rejected").exists())

    def test_approve_applies_the_proposal(self):
        data = self.create_order(include_vat=False)
        order_id = data["id"]
        self.as_user(self.sale).patch(
            f"/api/orders/{order_id}/", data={"painting_price": 1_200_000, "deposit_amount": 200_000}, format="json"
        )

        draft = self.as_user(self.admin).get(f"/api/orders/{order_id}/draft/").json()["data"]
        self.assertEqual(draft["proposed"]["painting_price"], 1_200_000)

        response = self.as_user(self.admin).patch(f"/api/orders/{order_id}/draft/approve/", format="json")
        self.assertEqual(response.status_code, 200)
        order = Order.objects.get(id=order_id)
        self.assertEqual(order.painting_price, 1_200_000)
        self.assertEqual(order.total_amount, 1_200_000)
        self.assertEqual(order.cod, 1_000_000)
        self.assertFalse(OrderDraft.objects.filter(order_id=order_id).exists())

        empty = self.as_user(self.admin).get(f"/api/orders/{order_id}/draft/").json()
        self.assertIsNone(empty["data"])

    def test_only_admin_reviews_drafts(self):
        data = self.create_order()
        self.as_user(self.sale).patch(f"/api/orders/{data['id']}/", data={"painting_price": 5}, format="json")
        response = self.as_user(self.sale).patch(f"/api/orders/{data['id']}/draft/approve/", format="json")
        self.assertEqual(response.status_code, 403)

    def test_list_flags_pending_drafts(self):
        data = self.create_order()
        self.as_user(self.sale).patch(f"/api/orders/{data['id']}/", data={"painting_price": 5}, format="json")
        rows = self.as_user(self.admin).get("/api/orders/").json()["data"]
        self.assertTrue(rows[0]["has_pending_draft"])

    def test_any_edit_by_sale_joins_the_pending_draft(self):
        data = self.create_order()
        order_id = data["id"]
        self.as_user(self.sale).patch(f"/api/orders/{order_id}/", data={"painting_price": 1_500_000}, format="json")

        response = self.as_user(self.sale).patch(
            f"/api/orders/{order_id}/", data={"customer_address": "12 Hang Bong"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["pending_approval"])
        self.assertNotEqual(Order.objects.get(id=order_id).customer_address, "12 Hang Bong")

        proposed = OrderDraft.objects.get(order_id=order_id, status="pending").proposed
        self.assertEqual(proposed["customer_address"], "12 Hang Bong")
        self.assertEqual(proposed["painting_price"], 1_500_000)

    def test_edit_with_painting_of_another_order_is_not_found(self):
        first = self.create_order(code="first")
        second = self.create_order(code="second")
        foreign = {"id": second["paintings"][0]["id"], **FLAT}
        before = Painting.objects.count()

        direct = self.as_user(self.admin).patch(f"/api/orders/{first['id']}/", data={"paintings": [foreign]}, format="json")
        self.assertEqual(direct.status_code, 404)

        deferred = self.as_user(self.sale).patch(
            f"/api/orders/{first['id']}/", data={"painting_price": 2_000_000, "paintings": [foreign]}, format="json"
        )
        self.assertEqual(deferred.status_code, 404)

        self.assertEqual(Painting.objects.count(), before)
        self.assertEqual(Painting.objects.get(id=foreign["id"]).order_id, second["id"])
        self.assertEqual(Painting.objects.get(id=first["paintings"][0]["id"]).painting_type, "framed")
        self.assertFalse(OrderDraft.objects.filter(order_id=first["id"]).exists())

    def test_edit_with_unknown_painting_id_is_not_found(self):
        data = self.create_order()
        response = self.as_user(self.admin).patch(
            f"/api/orders/{data['id']}/", data={"paintings": [{"id": 999_999, **FLAT}]}, format="json"
        )
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Painting.objects.filter(id=999_999).exists())


class PaintingProgressTests(OrderApiTestCase):
    def test_printing_every_painting_advances_new_order(self):
        data = self.create_order(paintings=[FRAMED, FLAT])
        order_id = data["id"]
        ids = [p["id"] for p in data["paintings"]]

        self.as_user(self.printer).patch(f"/api/orders/{order_id}/paintings/{ids[0]}/printed/", format="json")
        order = Order.objects.get(id=order_id)
        self.assertEqual(order.status, "processing")
        self.assertEqual(order.printing_status, "printing")

        response = self.as_user(self.printer).patch(f"/api/orders/{order_id}/paintings/{ids[1]}/printed/", format="json")
        self.assertEqual(response.status_code, 200)
        order.refresh_from_db()
        self.assertEqual(order.printing_status, "printed")
        self.assertTrue(OrderStatusHistory.objects.filter(order=order, status="processing").exists())

    def test_receive_before_printed_is_rejected(self):
        data = self.create_order()
        painting_id = data["paintings"][0]["id"]

        response = self.as_user(self.production).patch(
            f"/api/orders/{data['id']}/paintings/{painting_id}/production-receipt/", format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Painting.objects.get(id=painting_id).received_by_production)

        order_level = self.as_user(self.production).patch(
            f"/api/orders/{data['id']}/receive/", data={"type": "artwork"}, format="json"
        )
        self.assertEqual(order_level.status_code, 400)

    def test_painting_from_another_order_is_not_found(self):
        first = self.create_order(code="first")
        second = self.create_order(code="second")
        response = self.as_user(self.printer).patch(
            f"/api/orders/{first['id']}/paintings/{second['paintings'][0]['id']}/printed/", format="json"
        )
        self.assertEqual(response.status_code, 404)

    def test_production_receipt_moves_to_awaiting_production(self):
        data = self.create_order()
        order_id, painting_id = data["id"], data["paintings"][0]["id"]
        self.as_user(self.printer).patch(f"/api/orders/{order_id}/paintings/{painting_id}/printed/", format="json")

        response = self.as_user(self.production).patch(
            f"/api/orders/{order_id}/paintings/{painting_id}/production-receipt/", format="json"
        )
        self.assertEqual(response.status_code, 200)
        order = Order.objects.get(id=order_id)
        self.assertEqual(order.printing_status, "received_by_production")
        self.assertEqual(order.status, "awaiting_production")
        self.assertTrue(response.json()["data"]["capabilities"]["can_frame"])

    def test_order_level_artwork_receipt_moves_to_awaiting_production(self):
        data = self.create_order()
        order_id, painting_id = data["id"], data["paintings"][0]["id"]
        self.as_user(self.printer).patch(f"/api/orders/{order_id}/paintings/{painting_id}/printed/", format="json")
        self.assertEqual(Order.objects.get(id=order_id).status, "processing")

        with self.captureOnCommitCallbacks(execute=True):
            response = self.as_user(self.production).patch(
                f"/api/orders/{order_id}/receive/", data={"type": "artwork"}, format="json"
            )
        self.assertEqual(response.status_code, 200, response.content)
        order = Order.objects.get(id=order_id)
        self.assertEqual(order.status, "awaiting_production")
        self.assertEqual(order.printing_status, "received_by_production")
        self.assertTrue(Painting.objects.get(id=painting_id).received_by_production)
        self.assertTrue(OrderStatusHistory.objects.filter(order=order, status="awaiting_production").exists())
        self.assertTrue(
            any(request.metadata.get("status") == "awaiting_production" for request in self.recorder.requests())
        )
        self.assertEqual(len(self.recorder.events("received")), 1)

    def test_order_level_artwork_receipt_by_packing(self):
        data = self.create_order(paintings=[FLAT])
        order_id, painting_id = data["id"], data["paintings"][0]["id"]
        self.as_user(self.printer).patch(f"/api/orders/{order_id}/paintings/{painting_id}/printed/", format="json")
        accepted = self.as_user(self.packer).patch(f"/api/orders/{order_id}/accept/", data={"role": "packing"}, format="json")
        self.assertEqual(accepted.status_code, 200, accepted.content)

        response = self.as_user(self.packer).patch(f"/api/orders/{order_id}/receive/", data={"type": "artwork"}, format="json")
        self.assertEqual(response.status_code, 200, response.content)
        order = Order.objects.get(id=order_id)
        self.assertEqual(order.status, "awaiting_packing")
        self.assertEqual(order.printing_status, "received_by_packing")
        self.assertTrue(Painting.objects.get(id=painting_id).received_by_packing)
        self.assertTrue(OrderAssignment.objects.filter(order=order, user=self.packer, role="packing").exists())

    def test_frames_received_once_cut(self):
        data = self.create_order()
        order_id = data["id"]

        early = self.as_user(self.production).patch(f"/api/orders/{order_id}/receive/", data={"type": "frame"}, format="json")
        self.assertEqual(early.status_code, 400)

        cut = self.as_user(self.cutter).patch(f"/api/orders/{order_id}/complete/", data={"role": "frame_cutting"}, format="json")
        self.assertEqual(cut.status_code, 200, cut.content)
        self.assertEqual(Order.objects.get(id=order_id).frame_cutting_status, "cut")

        response = self.as_user(self.production).patch(f"/api/orders/{order_id}/receive/", data={"type": "frame"}, format="json")
        self.assertEqual(response.status_code, 200, response.content)
        self.assertTrue(OrderAssignment.objects.filter(order_id=order_id, user=self.production, role="production").exists())
        self.assertTrue(
            OrderStatusHistory.objects.filter(order_id=order_id, note__contains="received the frames").exists()
        )

    def test_painting_step_base_cannot_be_instantiated(self):
        with self.assertRaises(TypeError):
            _PaintingStep(events=get_event_bus())


class StatusAndStepTests(OrderApiTestCase):
    def test_transition_outside_table_leaves_status(self):
        data = self.create_order()
        response = self.as_user(self.admin).patch(f"/api/orders/{data['id']}/status/", data={"status": "sent"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Order.objects.get(id=data["id"]).status, "new")

    def test_stale_version_is_a_conflict(self):
        data = self.create_order()
        response = self.as_user(self.sale).patch(
            f"/api/orders/{data['id']}/status/",
            data={"status": "cancelled", "expected_version": data["version"] - 1},
            format="json",
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(Order.objects.get(id=data["id"]).status, "new")

    def test_cancel_notifies_workers(self):
        data = self.create_order()
        with self.captureOnCommitCallbacks(execute=True):
            response = self.as_user(self.sale).patch(
                f"/api/orders/{data['id']}/status/",
                data={"status": "cancelled", "note": "customer changed mind", "expected_version": data["version"]},
                format="json",
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Notification.objects.filter(type="cancel").exclude(recipient=self.sale).count(), 7)
        self.assertEqual(len(self.recorder.events("status_changed")), 1)

    def test_role_gate_on_direct_status(self):
        data = self.create_order()
        response = self.as_user(self.packer).patch(
            f"/api/orders/{data['id']}/status/", data={"status": "processing"}, format="json"
        )
        self.assertEqual(response.status_code, 403)

    def test_unframed_order_full_pipeline(self):
        data = self.create_order(paintings=[FLAT])
        order_id = data["id"]

        def step(user, path, **body):
            response = self.as_user(user).patch(f"/api/orders/{order_id}/{path}/", data=body, format="json")
            self.assertEqual(response.status_code, 200, response.content)
            return response.json()["data"]

        self.assertEqual(step(self.printer, "accept", role="printing")["status"], "processing")
        printed = step(self.printer, "complete", role="printing")
        self.assertEqual(printed["printing_status"], "printed")
        self.assertEqual(printed["status"], "awaiting_packing")
        self.assertEqual(step(self.packer, "complete", role="packing")["status"], "packed")
        self.assertEqual(step(self.dispatch, "accept", role="dispatch_accounting")["status"], "awaiting_dispatch")
        sent = step(
            self.dispatch,
            "complete",
            role="dispatch_accounting",
            shipping_method="Viettel Post",
            shipping_tracking_code="VT123",
            shipping_external_info="ignored",
        )
        self.assertEqual(sent["status"], "sent")
        self.assertEqual(sent["shipping_method"], "viettel")
        self.assertEqual(sent["shipping_external_info"], "")
        completed = step(self.finance, "complete", role="finance_accounting")
        self.assertEqual(completed["status"], "completed")
        self.assertIsNotNone(completed["actual_completion_date"])

    def test_accept_for_a_role_the_caller_lacks(self):
        data = self.create_order()
        response = self.as_user(self.printer).patch(f"/api/orders/{data['id']}/accept/", data={"role": "packing"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_rework_parks_order_in_fix_requested(self):
        data = self.create_order(paintings=[FLAT])
        order_id = data["id"]
        Order.objects.filter(id=order_id).update(status="sent", printing_status="printed")

        response = self.as_user(self.sale).patch(
            f"/api/orders/{order_id}/rework/", data={"type": "reprint", "reason": "colour off"}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.content)
        order = Order.objects.get(id=order_id)
        self.assertEqual(order.status, "fix_requested")
        self.assertEqual(order.printing_status, "awaiting_reprint")

    def test_counter_pickup_needs_bill_image(self):
        data = self.create_order(paintings=[FLAT], shipping_method="customer_pickup")
        Order.objects.filter(id=data["id"]).update(printing_status="in_stock", frame_cutting_status="in_stock")

        missing = self.as_user(self.sale).patch(f"/api/orders/{data['id']}/complete/", data={"role": "sale"}, format="json")
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json()["field"], "payment_bill_images")

        done = self.as_user(self.sale).patch(
            f"/api/orders/{data['id']}/complete/",
            data={"role": "sale", "payment_bill_images": ["https://cdn.example.com/bill.jpg"]},
            format="json",
        )
        self.assertEqual(done.status_code, 200)
        self.assertEqual(Order.objects.get(id=data["id"]).status, "completed")


@override_settings(ORDER_ADMIN_SECRET_CODE="s3cret")
class DeleteAndPurgeTests(OrderApiTestCase):
    def test_wrong_secret_is_forbidden(self):
        data = self.create_order()
        response = self.as_user(self.sale).delete(f"/api/orders/{data['id']}/", data={"secret_code": "nope"}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertTrue(Order.objects.filter(id=data["id"]).exists())

    def test_delete_removes_children(self):
        data = self.create_order()
        with self.captureOnCommitCallbacks(execute=True):
            response = self.as_user(self.sale).delete(
                f"/api/orders/{data['id']}/", data={"secret_code": "s3cret"}, format="json"
            )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Order.objects.filter(id=data["id"]).exists())
        self.assertFalse(Painting.objects.filter(order_id=data["id"]).exists())
        self.assertEqual(len(self.recorder.events("deleted")), 1)

    def test_purge_removes_old_orders(self):
        old = self.create_order(code="old")
        fresh = self.create_order(code="fresh")
        Order.objects.filter(id=old["id"]).update(created_at=timezone.now() - timedelta(days=120))

        response = self.as_user(self.admin).post("/api/orders/purge/", data={"months": 3, "secret_code": "s3cret"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["deleted_count"], 1)
        self.assertFalse(Order.objects.filter(id=old["id"]).exists())
        self.assertTrue(Order.objects.filter(id=fresh["id"]).exists())

    def test_purge_validation(self):
        zero = self.as_user(self.admin).post("/api/orders/purge/", data={"months": 0, "secret_code": "s3cret"}, format="json")
        self.assertEqual(zero.status_code, 400)
        sale = self.as_user(self.sale).post("/api/orders/purge/", data={"months": 3, "secret_code": "s3cret"}, format="json")
        self.assertEqual(sale.status_code, 403)
