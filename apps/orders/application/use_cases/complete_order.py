"""
A worker marks their step of an order as done.

Per role:

- printing: the print job is printed; the order moves on to production (if it
  has paintings to frame) or straight to packing.
- frame_cutting: frames are cut; if printing is also done, the order waits for
  production.
- packing: awaiting_packing -> packed.
- dispatch_accounting: awaiting_dispatch -> sent, recording how it left and
  re-pricing the shipping line.
- finance_accounting: sent -> completed.
- sale: an in-stock order picked up and paid at the counter is completed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from django.db import transaction

from apps.accounts.domain.roles import Role
from apps.accounts.domain.types import Actor
from apps.orders.application.services.config import vat_rate_percent
from apps.orders.application.services.notifier import OrderNotifier
from apps.orders.application.services.order_aggregate import OrderAggregate
from apps.orders.domain.aggregation import has_framing_items, has_round_items
from apps.orders.domain.errors import InvalidTransitionError, OrderForbiddenError, OrderValidationError
from apps.orders.domain.financials import normalize_boolean_input, normalize_number_input
from apps.orders.domain.ports import OrderEventPublisher
from apps.orders.domain.shipping import normalize_shipping_method, shipping_method_label
from apps.orders.domain.snapshots import settle
from apps.orders.domain.state_machine import OrderStateMachine
from apps.orders.domain.statuses import FrameCuttingStatus, OrderStatus, PrintingStatus, ShippingMethod
from apps.orders.models import Order

P = PrintingStatus
F = FrameCuttingStatus
S = OrderStatus

COMPLETING_ROLES = frozenset(
    {
        Role.PRINTING,
        Role.FRAME_CUTTING,
        Role.PACKING,
        Role.DISPATCH_ACCOUNTING,
        Role.FINANCE_ACCOUNTING,
        Role.SALE,
    }
)


@dataclass(frozen=True)
class CompleteOrderCommand:
    actor: Actor
    order_id: int
    role: str
    shipping_method: str | None = None
    shipping_tracking_code: str = ""
    shipping_external_info: str = ""
    shipping_external_cost: object = None
    shipping_installation_price: object = None
    customer_pays_shipping: object = None
    payment_bill_images: tuple[str, ...] = field(default_factory=tuple)
    expected_version: int | None = None


class CompleteOrderUseCase:
    def __init__(self, *, events: OrderEventPublisher):
        self.notifier = OrderNotifier(events)

    @transaction.atomic
    def execute(self, cmd: CompleteOrderCommand) -> Order:
        actor = cmd.actor
        role = _completing_role(cmd.role)
        if role not in actor.roles:
            raise OrderForbiddenError("You cannot complete orders for this role.")

        aggregate = OrderAggregate.load(cmd.order_id, actor, expected_version=cmd.expected_version)
        order = aggregate.order

        match role:
            case Role.PRINTING:
                self._printed(aggregate)
            case Role.FRAME_CUTTING:
                self._cut(aggregate)
            case Role.PACKING:
                _require_status(order, S.AWAITING_PACKING, "Only orders awaiting packing can be marked packed.")
                aggregate.transition(S.PACKED, f"{actor.name} finished packing")
            case Role.DISPATCH_ACCOUNTING:
                _require_status(order, S.AWAITING_DISPATCH, "Only orders awaiting dispatch can be sent.")
                self._sent(aggregate, cmd)
            case Role.FINANCE_ACCOUNTING:
                _require_status(order, S.SENT, "Only sent orders can be completed.")
                aggregate.transition(S.COMPLETED, f"{actor.name} completed the order")
            case Role.SALE:
                self._picked_up(aggregate, cmd)
            case _:
                raise OrderValidationError(f"Role {role} cannot complete orders.", field="role")

        aggregate.save()

        for status in aggregate.entered:
            self.notifier.status_entered(order, actor, status)
        self.notifier.order_event(order, "status_changed", role=role.value)
        return order

    @staticmethod
    def _printed(aggregate: OrderAggregate) -> None:
        order = aggregate.order
        if order.printing_status not in (P.NOT_PRINTED, P.QUEUED, P.PRINTING, P.AWAITING_REPRINT):
            raise InvalidTransitionError(f"Cannot mark printed while printing is '{order.printing_status}'.")
        aggregate.set_printing_status(P.PRINTED.value, f"{aggregate.actor.name} printed the order")
        _advance_to_processing(aggregate, "Printing done, the order is being processed")
        if order.status != S.PROCESSING:
            return

        paintings = aggregate.paintings()
        framing = has_framing_items(paintings)
        if not framing:
            _try(aggregate, S.AWAITING_PACKING, "Printing done, awaiting packing")
        elif order.frame_cutting_status == F.NOT_APPLICABLE:
            if has_round_items(paintings):
                _try(aggregate, S.AWAITING_PRODUCTION, "Printing done, round paintings await framing")
            else:
                _try(aggregate, S.AWAITING_PACKING, "Printing done, no frame to cut, awaiting packing")
        else:
            _try(aggregate, S.AWAITING_PRODUCTION, "Printing done, awaiting production")

    @staticmethod
    def _cut(aggregate: OrderAggregate) -> None:
        order = aggregate.order
        if order.frame_cutting_status not in (F.NOT_CUT, F.QUEUED, F.CUTTING, F.AWAITING_RECUT):
            raise InvalidTransitionError(f"Cannot mark cut while frame cutting is '{order.frame_cutting_status}'.")
        aggregate.set_frame_cutting_status(F.CUT.value, f"{aggregate.actor.name} cut the frames")
        _advance_to_processing(aggregate, "Frames cut, the order is being processed")
        if order.printing_status == P.PRINTED and order.status == S.PROCESSING:
            _try(aggregate, S.AWAITING_PRODUCTION, "Printed and cut, awaiting production")

    @staticmethod
    def _sent(aggregate: OrderAggregate, cmd: CompleteOrderCommand) -> None:
        if not (cmd.shipping_method or "").strip():
            raise OrderValidationError("Shipping method is required.", field="shipping_method")
        method = normalize_shipping_method(cmd.shipping_method)
        if not method:
            raise OrderValidationError("Unknown shipping method.", field="shipping_method")

        installation = normalize_number_input(cmd.shipping_installation_price)
        pays = normalize_boolean_input(cmd.customer_pays_shipping)
        external_cost = normalize_number_input(cmd.shipping_external_cost)
        settled = settle(
            replace(
                aggregate.snapshot(),
                shipping_method=method,
                shipping_tracking_code=cmd.shipping_tracking_code or "",
                shipping_external_info=cmd.shipping_external_info or "",
                shipping_external_cost=max(external_cost or 0, 0),
                shipping_installation_price=max(installation or 0, 0),
                customer_pays_shipping=True if pays is None else pays,
            ),
            vat_rate_percent=vat_rate_percent(),
        )
        aggregate.apply_fields(settled)

        details = ""
        if settled.shipping_tracking_code:
            details += f" - tracking code: {settled.shipping_tracking_code}"
        if settled.shipping_external_info:
            details += f" - courier note: {settled.shipping_external_info}"
        if settled.shipping_external_cost > 0:
            details += f" - courier cost: {settled.shipping_external_cost:,}"
        if settled.shipping_installation_price > 0:
            details += f" - shipping and installation: {settled.shipping_installation_price:,}"
        aggregate.transition(
            S.SENT,
            f"{aggregate.actor.name} sent the order via {shipping_method_label(method)}{details}",
        )

    @staticmethod
    def _picked_up(aggregate: OrderAggregate, cmd: CompleteOrderCommand) -> None:
        order = aggregate.order
        if (
            order.printing_status != P.IN_STOCK
            or order.frame_cutting_status != F.IN_STOCK
            or order.shipping_method != ShippingMethod.CUSTOMER_PICKUP
        ):
            raise InvalidTransitionError(
                "Only in-stock orders collected by the customer can be completed at the counter."
            )
        bills = [str(image).strip() for image in cmd.payment_bill_images or () if str(image or "").strip()]
        if not bills:
            raise OrderValidationError("Upload at least one payment bill image.", field="payment_bill_images")
        order.payment_bill_images = bills
        aggregate.close_as_picked_up(f"{aggregate.actor.name} confirmed counter pickup and payment")


def _require_status(order: Order, status: OrderStatus, message: str) -> None:
    if order.status != status:
        raise InvalidTransitionError(message, current=order.status)


def _advance_to_processing(aggregate: OrderAggregate, reason: str) -> None:
    status = aggregate.order.status
    if status != S.PROCESSING and OrderStateMachine.can_transition(status, S.PROCESSING):
        aggregate.transition(S.PROCESSING, reason)


def _try(aggregate: OrderAggregate, status: OrderStatus, reason: str) -> None:
    if OrderStateMachine.can_transition(aggregate.order.status, status):
        aggregate.transition(status, reason)


def _completing_role(value: str) -> Role:
    try:
        role = Role(value)
    except ValueError as exc:
        raise OrderValidationError(f"Unknown role: {value}", field="role") from exc
    if role not in COMPLETING_ROLES:
        raise OrderValidationError(
            "Role must be one of printing, frame_cutting, packing, dispatch_accounting, "
            "finance_accounting or sale.",
            field="role",
        )
    return role
