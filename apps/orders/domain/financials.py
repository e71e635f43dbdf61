from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import OrderValidationError
from .statuses import OrderType

DEFAULT_VAT_RATE_PERCENT = 8

_NON_NUMERIC_RE = re.compile(r"[^\d-]")
_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


@dataclass(frozen=True)
class ProfitShareLine:
    user_id: int
    percentage: float
    amount: int = 0

    def as_dict(self) -> dict:
        return {"user_id": self.user_id, "percentage": self.percentage, "amount": self.amount}


@dataclass(frozen=True)
class FinancialInputs:
    order_type: str = OrderType.NORMAL.value
    painting_price: int = 0
    construction_price: int = 0
    design_fee: int = 0
    extra_fee_amount: int = 0
    shipping_installation_price: int = 0
    include_vat: bool = True
    customer_pays_shipping: bool = True
    deposit_amount: int = 0
    total_amount: int = 0
    profit_sharing: tuple[ProfitShareLine, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FinancialResult:
    subtotal: int
    vat: int
    total_amount: int
    cod: int
    direct_input: bool
    profit_sharing: tuple[ProfitShareLine, ...]


def round_half_up(value: Decimal | int | float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp_percentage(value) -> float:
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return 0.0
    if pct != pct:  # NaN
        return 0.0
    return max(0.0, min(100.0, pct))


def share_amount(painting_price: int, percentage: float) -> int:
    return round_half_up(Decimal(painting_price) * Decimal(str(percentage)) / Decimal(100))


def sanitize_profit_sharing(entries: Iterable, painting_price: int) -> tuple[ProfitShareLine, ...]:
    """
    Normalize raw profit-sharing entries.

    Entries without a usable participant id are dropped; percentages are clamped
    to [0, 100] and amounts are always recomputed from the painting price.
    """
    lines: list[ProfitShareLine] = []
    for entry in entries or ():
        if isinstance(entry, ProfitShareLine):
            user_id, raw_pct = entry.user_id, entry.percentage
        elif isinstance(entry, Mapping):
            user_id = _coerce_user_id(entry.get("user_id", entry.get("user")))
            raw_pct = entry.get("percentage")
        else:
            continue
        if user_id is None:
            continue
        pct = clamp_percentage(raw_pct)
        lines.append(ProfitShareLine(user_id=user_id, percentage=pct, amount=share_amount(painting_price, pct)))
    return tuple(lines)


def _coerce_user_id(value) -> int | None:
    if isinstance(value, Mapping):
        value = value.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def is_direct_total_input(inputs: FinancialInputs) -> bool:
    # Marketplace orders may carry only a total; itemized fees must all be zero.
    return (
        inputs.order_type == OrderType.SHOPEE.value
        and inputs.total_amount > 0
        and inputs.painting_price == 0
        and inputs.construction_price == 0
        and inputs.design_fee == 0
        and inputs.extra_fee_amount == 0
        and inputs.shipping_installation_price == 0
    )


def recalculate(inputs: FinancialInputs, *, vat_rate_percent: int | float = DEFAULT_VAT_RATE_PERCENT) -> FinancialResult:
    if is_direct_total_input(inputs):
        subtotal = inputs.total_amount
        vat = 0
        total = inputs.total_amount
        direct = True
    else:
        subtotal = (
            inputs.painting_price
            + inputs.construction_price
            + inputs.design_fee
            + inputs.extra_fee_amount
            + (inputs.shipping_installation_price if inputs.customer_pays_shipping else 0)
        )
        vat = round_half_up(Decimal(subtotal) * Decimal(str(vat_rate_percent)) / Decimal(100)) if inputs.include_vat else 0
        total = subtotal + vat
        direct = False

    return FinancialResult(
        subtotal=subtotal,
        vat=vat,
        total_amount=total,
        cod=max(total - inputs.deposit_amount, 0),
        direct_input=direct,
        profit_sharing=sanitize_profit_sharing(inputs.profit_sharing, inputs.painting_price),
    )


def normalize_extra_fee(name: str | None, amount: int) -> tuple[str, int]:
    label = (name or "").strip()
    if amount > 0 and not label:
        raise OrderValidationError("Extra fee needs a name.", field="extra_fee_name")
    if amount <= 0:
        return "", 0
    return label, amount


def normalize_number_input(value) -> int | None:
    """Parse loosely formatted money input ("1.200.000 d" -> 1200000); blank means absent."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, str):
        cleaned = _NON_NUMERIC_RE.sub("", value.strip())
        if cleaned in ("", "-"):
            return None
        try:
            return int(cleaned)
        except ValueError:
            return None
    try:
        return round_half_up(value)
    except (InvalidOperation, ValueError, TypeError):
        return None


def normalize_boolean_input(value) -> bool | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        return None
    if isinstance(value, (int, float)):
        return value != 0
    return None
