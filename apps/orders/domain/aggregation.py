from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .errors import InvalidTransitionError
from .state_machine import OrderStateMachine
from .statuses import FrameCuttingStatus, OrderStatus, PaintingType, PrintingStatus

FRAMING_TYPES = frozenset({PaintingType.FRAMED.value, PaintingType.ROUND.value})
CUTTING_TYPES = frozenset({PaintingType.FRAMED.value})

_PRINTABLE = frozenset(
    {
        PrintingStatus.NOT_PRINTED,
        PrintingStatus.QUEUED,
        PrintingStatus.PRINTING,
        PrintingStatus.AWAITING_REPRINT,
    }
)


@dataclass(frozen=True)
class ItemState:
    painting_type: str
    is_printed: bool = False
    received_by_production: bool = False
    received_by_packing: bool = False


@dataclass(frozen=True)
class StatusStep:
    status: OrderStatus
    reason: str


@dataclass(frozen=True)
class AggregateOutcome:
    printing_status: PrintingStatus | None = None
    printing_reason: str = ""
    steps: tuple[StatusStep, ...] = ()

    @property
    def changed(self) -> bool:
        return self.printing_status is not None or bool(self.steps)


def _type_of(item) -> str:
    if isinstance(item, str):
        return item
    return getattr(item, "painting_type", "") or ""


def requires_framing(item) -> bool:
    return _type_of(item) in FRAMING_TYPES


def requires_cutting(item) -> bool:
    return _type_of(item) in CUTTING_TYPES


def has_framing_items(items: Sequence) -> bool:
    return any(requires_framing(item) for item in items)


def has_cutting_items(items: Sequence) -> bool:
    return any(requires_cutting(item) for item in items)


def has_round_items(items: Sequence) -> bool:
    return any(_type_of(item) == PaintingType.ROUND.value for item in items)


def effective_frame_cutting_status(stored: str, items: Sequence) -> str:
    """Reported frame status: orders without cutting items never show their stored value."""
    if not has_cutting_items(items):
        return FrameCuttingStatus.NOT_APPLICABLE.value
    return stored or FrameCuttingStatus.NOT_CUT.value


def initial_frame_cutting_status(items: Sequence, requested: str | None = None) -> str:
    if requested:
        return requested
    if has_cutting_items(items):
        return FrameCuttingStatus.NOT_CUT.value
    return FrameCuttingStatus.NOT_APPLICABLE.value


def ensure_receivable_by_production(item: ItemState) -> None:
    if not item.is_printed:
        raise InvalidTransitionError("Painting has not been printed yet.")
    if item.received_by_production:
        raise InvalidTransitionError("Painting was already received by production.")


def ensure_receivable_by_packing(item: ItemState) -> None:
    if not item.is_printed:
        raise InvalidTransitionError("Painting has not been printed yet.")
    if requires_framing(item):
        raise InvalidTransitionError("Paintings that need framing are received by production.")
    if item.received_by_packing:
        raise InvalidTransitionError("Painting was already received by packing.")


def aggregate_printing(items: Sequence[ItemState], *, status: str, printing_status: str) -> AggregateOutcome:
    total = len(items)
    printed = sum(1 for item in items if item.is_printed)
    steps: list[StatusStep] = []

    if printed > 0 and status == OrderStatus.NEW and OrderStateMachine.can_transition(status, OrderStatus.PROCESSING):
        steps.append(StatusStep(OrderStatus.PROCESSING, "started printing"))

    current = printing_status or PrintingStatus.NOT_PRINTED
    if total and printed == total:
        if current in _PRINTABLE:
            return AggregateOutcome(
                printing_status=PrintingStatus.PRINTED,
                printing_reason="finished printing every painting",
                steps=tuple(steps),
            )
    elif printed > 0 and current in (PrintingStatus.NOT_PRINTED, PrintingStatus.QUEUED):
        return AggregateOutcome(printing_status=PrintingStatus.PRINTING, steps=tuple(steps))

    return AggregateOutcome(steps=tuple(steps))


def aggregate_framing_receipt(items: Sequence[ItemState], *, status: str, printing_status: str) -> AggregateOutcome:
    framing = [item for item in items if requires_framing(item)]
    current_status = OrderStatus(status)
    current_printing = printing_status
    new_printing: PrintingStatus | None = None
    steps: list[StatusStep] = []

    if framing and all(item.received_by_production for item in framing):
        if current_printing == PrintingStatus.PRINTED:
            new_printing = PrintingStatus.RECEIVED_BY_PRODUCTION
            current_printing = new_printing
        if (
            current_printing == PrintingStatus.RECEIVED_BY_PRODUCTION
            and current_status != OrderStatus.AWAITING_PRODUCTION
            and OrderStateMachine.can_transition(current_status, OrderStatus.AWAITING_PRODUCTION)
        ):
            steps.append(
                StatusStep(OrderStatus.AWAITING_PRODUCTION, "received every painting that needs framing")
            )
            current_status = OrderStatus.AWAITING_PRODUCTION

    all_received = bool(items) and all(item.received_by_production for item in items)
    if (
        all_received
        and not framing
        and current_printing in (PrintingStatus.PRINTED, PrintingStatus.RECEIVED_BY_PRODUCTION)
        and OrderStateMachine.can_transition(current_status, OrderStatus.AWAITING_PACKING)
    ):
        steps.append(StatusStep(OrderStatus.AWAITING_PACKING, "received every painting, awaiting packing"))

    return AggregateOutcome(printing_status=new_printing, steps=tuple(steps))


def aggregate_packing_receipt(items: Sequence[ItemState], *, status: str, printing_status: str) -> AggregateOutcome:
    loose = [item for item in items if not requires_framing(item)]
    if not loose or not all(item.received_by_packing for item in loose):
        return AggregateOutcome()
    if has_framing_items(items):
        return AggregateOutcome()
    if printing_status != PrintingStatus.PRINTED or status != OrderStatus.PROCESSING:
        return AggregateOutcome()
    if not OrderStateMachine.can_transition(status, OrderStatus.AWAITING_PACKING):
        return AggregateOutcome()
    return AggregateOutcome(
        steps=(StatusStep(OrderStatus.AWAITING_PACKING, "received every painting, awaiting packing"),)
    )
