from __future__ import annotations

from datetime import date

from django.test import SimpleTestCase

from apps.accounts.domain.roles import Role
from apps.orders.domain.aggregation import (
    ItemState,
    aggregate_framing_receipt,
    aggregate_packing_receipt,
    aggregate_printing,
    effective_frame_cutting_status,
    ensure_receivable_by_packing,
    ensure_receivable_by_production,
)
from apps.orders.domain.capabilities import CapabilitySnapshot, hides_money, resolve_capabilities
from apps.orders.domain.changes import describe_changes, financial_fields_touched
from apps.orders.domain.errors import InvalidTransitionError, OrderForbiddenError, OrderValidationError, SecretMismatchError
from apps.orders.domain.financials import (
    FinancialInputs,
    normalize_boolean_input,
    normalize_number_input,
    recalculate,
    sanitize_profit_sharing,
)
from apps.orders.domain.policies import ensure_can_set_status, ensure_secret, generate_order_code
from apps.orders.domain.shipping import ShippingDetails, apply_shipping_rules, normalize_shipping_method
from apps.orders.domain.snapshots import OrderFieldsSnapshot, build_proposal, replay
from apps.orders.domain.state_machine import OrderStateMachine
from apps.orders.domain.statuses import FrameCuttingStatus, OrderStatus, PrintingStatus

S = OrderStatus
P = PrintingStatus
F = FrameCuttingStatus

PAINTING = {"painting_type": "framed", "width": 40, "height": 60, "frame_type": "oak"}


class FinancialRecalculationTests(SimpleTestCase):
    def test_vat_on_price_with_shipping_not_paid_by_customer(self):
        result = recalculate(
            FinancialInputs(
                painting_price=1_000_000,
                shipping_installation_price=50_000,
                customer_pays_shipping=False,
                include_vat=True,
                deposit_amount=200_000,
            )
        )
        self.assertEqual(result.vat, 80_000)
        self.assertEqual(result.total_amount, 1_080_000)
        self.assertEqual(result.cod, 880_000)

    def test_shipping_paid_by_customer_is_taxed(self):
        result = recalculate(
            FinancialInputs(painting_price=1_000_000, shipping_installation_price=50_000, customer_pays_shipping=True)
        )
        self.assertEqual(result.subtotal, 1_050_000)
        self.assertEqual(result.total_amount, 1_134_000)

    def test_cod_never_negative(self):
        result = recalculate(FinancialInputs(painting_price=100_000, include_vat=False, deposit_amount=500_000))
        self.assertEqual(result.cod, 0)

    def test_marketplace_direct_total_is_kept(self):
        result = recalculate(FinancialInputs(order_type="shopee", total_amount=750_000, deposit_amount=50_000))
        self.assertTrue(result.direct_input)
        self.assertEqual(result.vat, 0)
        self.assertEqual(result.total_amount, 750_000)
        self.assertEqual(result.cod, 700_000)

    def test_profit_sharing_clamped_and_recomputed(self):
        lines = sanitize_profit_sharing(
            [{"user_id": 3, "percentage": 150, "amount": 1}, {"user_id": "x", "percentage": 10}, {"user": {"id": 4}, "percentage": 12.5}],
            1_000_000,
        )
        self.assertEqual([(line.user_id, line.percentage, line.amount) for line in lines], [(3, 100.0, 1_000_000), (4, 12.5, 125_000)])

    def test_loose_number_and_boolean_input(self):
        self.assertEqual(normalize_number_input("1.200.000 d"), 1_200_000)
        self.assertIsNone(normalize_number_input(""))
        self.assertIsNone(normalize_number_input(True))
        self.assertTrue(normalize_boolean_input("Yes"))
        self.assertFalse(normalize_boolean_input(0))
        self.assertIsNone(normalize_boolean_input("maybe"))


class OrderStateMachineTests(SimpleTestCase):
    def test_transition_outside_table_is_rejected(self):
        with self.assertRaises(InvalidTransitionError):
            OrderStateMachine.ensure_transition(S.NEW, S.SENT)
        with self.assertRaises(InvalidTransitionError):
            OrderStateMachine.ensure_transition(S.NEW, "teleported")

    def test_terminal_statuses(self):
        self.assertTrue(OrderStateMachine.is_terminal(S.CANCELLED))
        self.assertTrue(OrderStateMachine.is_terminal(S.STORED))
        self.assertFalse(OrderStateMachine.is_terminal(S.COMPLETED))

    def test_edit_audience_drops_the_sender_desk(self):
        roles = OrderStateMachine.audience(S.NEW, sender_roles=frozenset({Role.SALE}), edit=True)
        self.assertEqual(roles, frozenset({Role.SALE}))

    def test_role_gate_for_direct_status_changes(self):
        ensure_can_set_status(frozenset({Role.ADMIN}), S.STORED)
        ensure_can_set_status(frozenset({Role.PRODUCTION}), S.FRAMED)
        with self.assertRaises(OrderForbiddenError):
            ensure_can_set_status(frozenset({Role.PRINTING}), S.SENT)


class AggregationTests(SimpleTestCase):
    def test_all_printed_while_new_advances_to_processing(self):
        items = [ItemState("framed", is_printed=True), ItemState("flat", is_printed=True)]
        outcome = aggregate_printing(items, status=S.NEW, printing_status=P.NOT_PRINTED)
        self.assertEqual(outcome.printing_status, P.PRINTED)
        self.assertEqual([step.status for step in outcome.steps], [S.PROCESSING])

    def test_partial_printing_marks_printing(self):
        items = [ItemState("framed", is_printed=True), ItemState("flat")]
        outcome = aggregate_printing(items, status=S.PROCESSING, printing_status=P.NOT_PRINTED)
        self.assertEqual(outcome.printing_status, P.PRINTING)
        self.assertEqual(outcome.steps, ())

    def test_receive_requires_printed(self):
        with self.assertRaises(InvalidTransitionError):
            ensure_receivable_by_production(ItemState("framed"))
        with self.assertRaises(InvalidTransitionError):
            ensure_receivable_by_packing(ItemState("framed", is_printed=True))

    def test_framing_receipt_moves_to_awaiting_production(self):
        items = [ItemState("framed", is_printed=True, received_by_production=True), ItemState("flat", is_printed=True)]
        outcome = aggregate_framing_receipt(items, status=S.PROCESSING, printing_status=P.PRINTED)
        self.assertEqual(outcome.printing_status, P.RECEIVED_BY_PRODUCTION)
        self.assertEqual([step.status for step in outcome.steps], [S.AWAITING_PRODUCTION])

    def test_packing_receipt_of_loose_paintings(self):
        items = [ItemState("flat", is_printed=True, received_by_packing=True)]
        outcome = aggregate_packing_receipt(items, status=S.PROCESSING, printing_status=P.PRINTED)
        self.assertEqual([step.status for step in outcome.steps], [S.AWAITING_PACKING])

    def test_frame_status_reported_not_applicable_without_cutting_items(self):
        self.assertEqual(effective_frame_cutting_status(F.NOT_CUT, ["flat", "round"]), F.NOT_APPLICABLE)
        self.assertEqual(effective_frame_cutting_status(F.CUT, ["framed"]), F.CUT)
        self.assertEqual(effective_frame_cutting_status(F.IN_STOCK, ["flat"]), F.NOT_APPLICABLE)
        self.assertEqual(effective_frame_cutting_status(F.IN_STOCK, ["framed", "flat"]), F.IN_STOCK)


class CapabilityTests(SimpleTestCase):
    def snapshot(self, **overrides) -> CapabilitySnapshot:
        values = {
            "status": S.NEW.value,
            "printing_status": P.NOT_PRINTED.value,
            "frame_cutting_status": F.NOT_CUT.value,
            "painting_types": ("framed",),
        }
        values.update(overrides)
        return CapabilitySnapshot(**values)

    def test_printer_can_accept_new_order(self):
        caps = resolve_capabilities(self.snapshot(), frozenset({Role.PRINTING}))
        self.assertEqual(caps.can_accept.role, Role.PRINTING.value)
        self.assertTrue(caps.hide_money_fields)
        self.assertFalse(caps.can_approve_draft)

    def test_production_can_frame_after_receiving_prints(self):
        caps = resolve_capabilities(
            self.snapshot(status=S.AWAITING_PRODUCTION.value, printing_status=P.RECEIVED_BY_PRODUCTION.value),
            frozenset({Role.PRODUCTION}),
        )
        self.assertTrue(caps.can_frame)

    def test_desk_actions_on_sent_order(self):
        caps = resolve_capabilities(
            self.snapshot(status=S.SENT.value, printing_status=P.PRINTED.value, frame_cutting_status=F.CUT.value),
            frozenset({Role.SALE}),
        )
        self.assertTrue(caps.can_mark_return_or_fix)
        self.assertFalse(caps.can_cancel)
        self.assertEqual(caps.can_request_rework, frozenset({"reprint", "recut"}))
        self.assertFalse(caps.hide_money_fields)

    def test_counter_pickup_reads_stored_frame_status(self):
        snapshot = self.snapshot(
            printing_status=P.IN_STOCK.value,
            frame_cutting_status=F.NOT_APPLICABLE.value,
            stored_frame_cutting_status=F.IN_STOCK.value,
            painting_types=("flat",),
            shipping_method="customer_pickup",
        )
        caps = resolve_capabilities(snapshot, frozenset({Role.SALE}))
        self.assertEqual(caps.can_complete.role, Role.SALE.value)

        not_stocked = resolve_capabilities(
            self.snapshot(
                printing_status=P.IN_STOCK.value,
                frame_cutting_status=F.NOT_APPLICABLE.value,
                stored_frame_cutting_status=F.NOT_APPLICABLE.value,
                painting_types=("flat",),
                shipping_method="customer_pickup",
            ),
            frozenset({Role.SALE}),
        )
        self.assertIsNone(not_stocked.can_complete)

    def test_money_hidden_only_for_shop_floor(self):
        self.assertTrue(hides_money(frozenset({Role.PACKING})))
        self.assertFalse(hides_money(frozenset({Role.PACKING, Role.SALE})))
        self.assertFalse(hides_money(frozenset({Role.DESIGN})))


class DraftSnapshotTests(SimpleTestCase):
    def test_replay_is_idempotent(self):
        current = build_proposal(OrderFieldsSnapshot(), {"customer_name": "An", "painting_price": 500_000, "paintings": [PAINTING]})
        first = build_proposal(current, {"painting_price": 700_000})
        second = build_proposal(first, {"deposit_amount": 100_000})

        once = replay(current, second)
        twice = replay(once, second)
        self.assertEqual(once, twice)
        self.assertEqual(once.painting_price, 700_000)
        self.assertEqual(once.cod, once.total_amount - 100_000)

    def test_replay_keeps_paintings_when_proposal_has_none(self):
        current = build_proposal(OrderFieldsSnapshot(), {"paintings": [PAINTING]})
        merged = replay(current, OrderFieldsSnapshot(painting_price=10))
        self.assertEqual(merged.paintings, current.paintings)

    def test_snapshot_survives_json_storage(self):
        snapshot = build_proposal(
            OrderFieldsSnapshot(),
            {"painting_price": "1.000.000", "profit_sharing": [{"user_id": 2, "percentage": 10}], "paintings": [PAINTING]},
        )
        self.assertEqual(OrderFieldsSnapshot.from_dict(snapshot.as_dict()), snapshot)

    def test_financial_fields_touched(self):
        current = build_proposal(OrderFieldsSnapshot(), {"painting_price": 100, "customer_name": "An"})
        self.assertEqual(financial_fields_touched(current, {"painting_price": "100", "customer_name": "Binh"}), [])
        self.assertEqual(financial_fields_touched(current, {"painting_price": 200, "include_vat": "false"}), ["painting_price", "include_vat"])

    def test_describe_changes_uses_labels(self):
        before = OrderFieldsSnapshot(customer_name="An")
        after = OrderFieldsSnapshot(customer_name="Binh", note="rush")
        self.assertEqual(describe_changes(before, after), ["customer name", "note"])

    def test_round_painting_uses_diameter(self):
        snapshot = build_proposal(OrderFieldsSnapshot(), {"paintings": [{"type": "round", "diameter": 50, "frame_type": "gold"}]})
        self.assertEqual((snapshot.paintings[0].width, snapshot.paintings[0].height), (50.0, 50.0))

    def test_extra_fee_without_name_is_rejected(self):
        with self.assertRaises(OrderValidationError):
            build_proposal(OrderFieldsSnapshot(), {"extra_fee_amount": 20_000})


class ShippingAndPolicyTests(SimpleTestCase):
    def test_fuzzy_shipping_methods(self):
        self.assertEqual(normalize_shipping_method("Viettel Post"), "viettel")
        self.assertEqual(normalize_shipping_method("di treo cho khach"), "install_delivery")
        self.assertEqual(normalize_shipping_method("khach nhan"), "customer_pickup")
        self.assertEqual(normalize_shipping_method("???", "viettel"), "viettel")
        self.assertIsNone(normalize_shipping_method(""))

    def test_shipping_sub_fields_cleared(self):
        details = apply_shipping_rules(
            ShippingDetails(method="viettel", tracking_code=" VT1 ", external_info="x", external_cost=5)
        )
        self.assertEqual((details.tracking_code, details.external_info, details.external_cost), ("VT1", "", 0))

    def test_order_code_format(self):
        self.assertEqual(generate_order_code("ab12", date(2026, 3, 7)), "DAB12-0703")
        with self.assertRaises(OrderValidationError):
            generate_order_code("bad code!", date(2026, 3, 7))

    def test_secret_checks(self):
        ensure_secret("s3cret", "s3cret")
        with self.assertRaises(OrderValidationError):
            ensure_secret("  ", "s3cret")
        with self.assertRaises(SecretMismatchError):
            ensure_secret("nope", "s3cret")
        with self.assertRaises(SecretMismatchError):
            ensure_secret("anything", "")
