"""
Typed order snapshots used by the draft approval flow.

A draft stores two `OrderFieldsSnapshot` records: the order as it was when the
edit arrived (`original`) and the order as the editor wants it (`proposed`).
`build_proposal` derives the proposed record from an edit payload and
`replay` folds a proposed record onto the live fields. Both are pure.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, replace

from .errors import OrderValidationError
from .financials import (
    DEFAULT_VAT_RATE_PERCENT,
    FinancialInputs,
    ProfitShareLine,
    normalize_boolean_input,
    normalize_extra_fee,
    normalize_number_input,
    recalculate,
    sanitize_profit_sharing,
)
from .shipping import ShippingDetails, apply_shipping_rules, normalize_shipping_method
from .statuses import OrderType, PaintingType

MONEY_FIELDS = (
    "painting_price",
    "construction_price",
    "design_fee",
    "shipping_installation_price",
    "extra_fee_amount",
    "deposit_amount",
    "total_amount",
    "vat",
    "shipping_external_cost",
)
TEXT_FIELDS = (
    "customer_name",
    "customer_phone",
    "customer_address",
    "note",
    "extra_fee_name",
    "shipping_tracking_code",
    "shipping_external_info",
)


@dataclass(frozen=True)
class PaintingDraft:
    id: int | None
    painting_type: str
    width: float
    height: float
    frame_type: str
    quantity: int = 1
    note: str = ""
    mention_ids: tuple[int, ...] = ()
    images: tuple[str, ...] = ()
    files: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        data = asdict(self)
        data["mention_ids"] = list(self.mention_ids)
        data["images"] = list(self.images)
        data["files"] = list(self.files)
        return data

    @classmethod
    def from_payload(cls, payload: Mapping) -> PaintingDraft:
        painting_type = (payload.get("painting_type") or payload.get("type") or PaintingType.FRAMED.value).strip()
        try:
            PaintingType(painting_type)
        except ValueError as exc:
            raise OrderValidationError(f"Unknown painting type: {painting_type}", field="paintings") from exc

        if painting_type == PaintingType.ROUND.value:
            diameter = _positive(payload.get("diameter") or payload.get("width") or payload.get("height"))
            width = height = diameter
        else:
            width = _positive(payload.get("width"))
            height = _positive(payload.get("height"))
        if not width or not height:
            raise OrderValidationError("Painting needs a positive width and height.", field="paintings")

        frame_type = str(payload.get("frame_type") or "").strip()
        if not frame_type:
            raise OrderValidationError("Painting needs a frame type.", field="paintings")

        raw_id = payload.get("id")
        try:
            quantity = max(1, int(payload.get("quantity") or 1))
        except (TypeError, ValueError):
            quantity = 1
        return cls(
            id=int(raw_id) if raw_id not in (None, "") else None,
            painting_type=painting_type,
            width=width,
            height=height,
            frame_type=frame_type,
            quantity=quantity,
            note=str(payload.get("note") or "").strip(),
            mention_ids=_ids(payload.get("mention_ids")),
            images=_media(payload.get("images")),
            files=_media(payload.get("files")),
        )


@dataclass(frozen=True)
class OrderFieldsSnapshot:
    customer_name: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    order_type: str = OrderType.NORMAL.value
    note: str = ""
    mention_ids: tuple[int, ...] = ()
    expected_completion_date: str | None = None
    painting_price: int = 0
    construction_price: int = 0
    design_fee: int = 0
    shipping_installation_price: int = 0
    customer_pays_shipping: bool = True
    include_vat: bool = True
    vat: int = 0
    deposit_amount: int = 0
    total_amount: int = 0
    cod: int = 0
    extra_fee_name: str = ""
    extra_fee_amount: int = 0
    shipping_method: str | None = None
    shipping_tracking_code: str = ""
    shipping_external_info: str = ""
    shipping_external_cost: int = 0
    deposit_images: tuple[str, ...] = ()
    payment_bill_images: tuple[str, ...] = ()
    profit_sharing: tuple[ProfitShareLine, ...] = ()
    paintings: tuple[PaintingDraft, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        data = asdict(self)
        for key in ("mention_ids", "deposit_images", "payment_bill_images"):
            data[key] = list(getattr(self, key))
        data["profit_sharing"] = [line.as_dict() for line in self.profit_sharing]
        data["paintings"] = [painting.as_dict() for painting in self.paintings]
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> OrderFieldsSnapshot:
        paintings = tuple(PaintingDraft.from_payload(item) for item in data.get("paintings") or ())
        known = {name for name in cls.__dataclass_fields__}
        values = {key: value for key, value in data.items() if key in known}
        values["mention_ids"] = _ids(data.get("mention_ids"))
        values["deposit_images"] = _media(data.get("deposit_images"))
        values["payment_bill_images"] = _media(data.get("payment_bill_images"))
        values["profit_sharing"] = tuple(
            ProfitShareLine(
                user_id=int(line["user_id"]),
                percentage=float(line.get("percentage") or 0),
                amount=int(line.get("amount") or 0),
            )
            for line in data.get("profit_sharing") or ()
        )
        values["paintings"] = paintings
        return cls(**values)

    def financial_inputs(self) -> FinancialInputs:
        return FinancialInputs(
            order_type=self.order_type,
            painting_price=self.painting_price,
            construction_price=self.construction_price,
            design_fee=self.design_fee,
            extra_fee_amount=self.extra_fee_amount,
            shipping_installation_price=self.shipping_installation_price,
            include_vat=self.include_vat,
            customer_pays_shipping=self.customer_pays_shipping,
            deposit_amount=self.deposit_amount,
            total_amount=self.total_amount,
            profit_sharing=self.profit_sharing,
        )


def _positive(value) -> float | None:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def _ids(value) -> tuple[int, ...]:
    seen: list[int] = []
    for raw in value or ():
        if isinstance(raw, Mapping):
            raw = raw.get("id") or raw.get("user_id")
        if str(raw).strip().isdigit() and int(raw) not in seen:
            seen.append(int(raw))
    return tuple(seen)


def _media(value) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = [value]
    return tuple(str(item).strip() for item in value if item and str(item).strip())


def _money(value, current: int) -> int:
    parsed = normalize_number_input(value)
    return max(parsed, 0) if parsed is not None else current


def settle(snapshot: OrderFieldsSnapshot, *, vat_rate_percent: int | float = DEFAULT_VAT_RATE_PERCENT) -> OrderFieldsSnapshot:
    """Apply the shipping, extra-fee and recalculation rules to a snapshot."""
    name, amount = normalize_extra_fee(snapshot.extra_fee_name, snapshot.extra_fee_amount)
    shipping = apply_shipping_rules(
        ShippingDetails(
            method=snapshot.shipping_method,
            tracking_code=snapshot.shipping_tracking_code,
            external_info=snapshot.shipping_external_info,
            external_cost=snapshot.shipping_external_cost,
        )
    )
    settled = replace(
        snapshot,
        extra_fee_name=name,
        extra_fee_amount=amount,
        shipping_method=shipping.method,
        shipping_tracking_code=shipping.tracking_code,
        shipping_external_info=shipping.external_info,
        shipping_external_cost=shipping.external_cost,
    )
    result = recalculate(settled.financial_inputs(), vat_rate_percent=vat_rate_percent)
    return replace(
        settled,
        vat=result.vat,
        total_amount=result.total_amount,
        cod=result.cod,
        profit_sharing=result.profit_sharing,
    )


def build_proposal(
    base: OrderFieldsSnapshot,
    payload: Mapping,
    *,
    vat_rate_percent: int | float = DEFAULT_VAT_RATE_PERCENT,
) -> OrderFieldsSnapshot:
    """Overlay the supplied payload keys on `base` and settle the result."""
    updates: dict = {}
    for key in TEXT_FIELDS:
        if key in payload:
            updates[key] = str(payload.get(key) or "").strip()
    for key in MONEY_FIELDS:
        if key in payload:
            updates[key] = _money(payload.get(key), getattr(base, key))
    for key in ("include_vat", "customer_pays_shipping"):
        if key in payload:
            parsed = normalize_boolean_input(payload.get(key))
            updates[key] = parsed if parsed is not None else getattr(base, key)
    if "order_type" in payload:
        order_type = payload.get("order_type") or base.order_type
        try:
            updates["order_type"] = OrderType(order_type).value
        except ValueError as exc:
            raise OrderValidationError(f"Unknown order type: {order_type}", field="order_type") from exc
    if "expected_completion_date" in payload:
        value = payload.get("expected_completion_date")
        updates["expected_completion_date"] = value.isoformat() if hasattr(value, "isoformat") else (value or None)
    if "shipping_method" in payload:
        updates["shipping_method"] = normalize_shipping_method(payload.get("shipping_method"), base.shipping_method)
    if "mention_ids" in payload:
        updates["mention_ids"] = _ids(payload.get("mention_ids"))
    for key in ("deposit_images", "payment_bill_images"):
        if key in payload:
            updates[key] = _media(payload.get(key))
    if "profit_sharing" in payload:
        painting_price = updates.get("painting_price", base.painting_price)
        updates["profit_sharing"] = sanitize_profit_sharing(payload.get("profit_sharing") or (), painting_price)
    if "paintings" in payload:
        updates["paintings"] = tuple(PaintingDraft.from_payload(item) for item in payload.get("paintings") or ())

    return settle(replace(base, **updates), vat_rate_percent=vat_rate_percent)


def replay(
    current: OrderFieldsSnapshot,
    proposed: OrderFieldsSnapshot,
    *,
    vat_rate_percent: int | float = DEFAULT_VAT_RATE_PERCENT,
) -> OrderFieldsSnapshot:
    """
    Fold an approved proposal onto the live order fields.

    Every field of the proposal wins; the painting list is only replaced when
    the proposal carries one, so an approval never wipes the items of an order
    whose draft did not touch them.
    """
    paintings = proposed.paintings if proposed.paintings else current.paintings
    return settle(replace(proposed, paintings=paintings), vat_rate_percent=vat_rate_percent)
