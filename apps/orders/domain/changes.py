from __future__ import annotations

from collections.abc import Mapping

from .financials import clamp_percentage, normalize_boolean_input, normalize_number_input, sanitize_profit_sharing
from .snapshots import OrderFieldsSnapshot

FINANCIAL_NUMBER_FIELDS = (
    "painting_price",
    "construction_price",
    "design_fee",
    "shipping_installation_price",
    "deposit_amount",
    "total_amount",
    "vat",
    "extra_fee_amount",
    "shipping_external_cost",
)
FINANCIAL_FLAG_FIELDS = ("include_vat", "customer_pays_shipping")

FIELD_LABELS = {
    "customer_name": "customer name",
    "customer_phone": "customer phone",
    "customer_address": "customer address",
    "order_type": "order type",
    "note": "note",
    "mention_ids": "mentions",
    "expected_completion_date": "expected completion date",
    "painting_price": "painting price",
    "construction_price": "construction fee",
    "design_fee": "design fee",
    "shipping_installation_price": "shipping and installation fee",
    "customer_pays_shipping": "customer pays shipping",
    "include_vat": "VAT",
    "deposit_amount": "deposit",
    "total_amount": "total",
    "extra_fee_name": "extra fee name",
    "extra_fee_amount": "extra fee",
    "shipping_method": "shipping method",
    "shipping_tracking_code": "tracking code",
    "shipping_external_info": "courier info",
    "shipping_external_cost": "courier cost",
    "deposit_images": "deposit images",
    "payment_bill_images": "payment bill images",
    "profit_sharing": "profit sharing",
    "paintings": "paintings",
}

# Derived columns are reported through their inputs.
_DERIVED = {"vat", "cod"}


def _profit_key(entries, painting_price: int) -> list[tuple[int, float]]:
    return sorted(
        (line.user_id, clamp_percentage(line.percentage)) for line in sanitize_profit_sharing(entries, painting_price)
    )


def financial_fields_touched(current: OrderFieldsSnapshot, payload: Mapping) -> list[str]:
    """Names of money-related fields whose supplied value differs from the live order."""
    touched: list[str] = []
    for key in FINANCIAL_NUMBER_FIELDS:
        if key not in payload:
            continue
        value = normalize_number_input(payload.get(key))
        if value is not None and value != getattr(current, key):
            touched.append(key)
    for key in FINANCIAL_FLAG_FIELDS:
        if key not in payload:
            continue
        value = normalize_boolean_input(payload.get(key))
        if value is not None and value != getattr(current, key):
            touched.append(key)
    if "profit_sharing" in payload and payload.get("profit_sharing") is not None:
        if _profit_key(payload.get("profit_sharing"), current.painting_price) != _profit_key(
            current.profit_sharing, current.painting_price
        ):
            touched.append("profit_sharing")
    return touched


def describe_changes(before: OrderFieldsSnapshot, after: OrderFieldsSnapshot) -> list[str]:
    changed: list[str] = []
    for key, label in FIELD_LABELS.items():
        if key in _DERIVED:
            continue
        if getattr(before, key) != getattr(after, key):
            changed.append(label)
    return changed
