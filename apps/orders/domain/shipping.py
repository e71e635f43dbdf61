from __future__ import annotations

import re
from dataclasses import dataclass

from .statuses import SHIPPING_METHOD_LABELS, ShippingMethod

_WS_RE = re.compile(r"\s+")

# Fuzzy aliases, including the labels the shop floor used before the enum existed.
_ALIASES: tuple[tuple[tuple[str, ...], ShippingMethod], ...] = (
    (("viettel",), ShippingMethod.VIETTEL),
    (("external", "courier", "ngoai"), ShippingMethod.EXTERNAL_COURIER),
    (("pickup", "pick_up", "khach", "nhan"), ShippingMethod.CUSTOMER_PICKUP),
    (("install", "treo"), ShippingMethod.INSTALL_DELIVERY),
)


@dataclass(frozen=True)
class ShippingDetails:
    method: str | None
    tracking_code: str = ""
    external_info: str = ""
    external_cost: int = 0


def normalize_shipping_method(value, fallback: str | None = None) -> str | None:
    safe_fallback = fallback if fallback in {m.value for m in ShippingMethod} else None
    if value is None or value == "":
        return None
    cleaned = _WS_RE.sub("_", str(value).strip().lower())
    try:
        return ShippingMethod(cleaned).value
    except ValueError:
        pass
    # Install check runs before pickup so "di_treo_cho_khach" is not read as pickup.
    for needles, method in (_ALIASES[0], _ALIASES[1], _ALIASES[3], _ALIASES[2]):
        if any(needle in cleaned for needle in needles):
            return method.value
    return safe_fallback


def apply_shipping_rules(details: ShippingDetails) -> ShippingDetails:
    """Clear the sub-fields that do not belong to the chosen method."""
    tracking = (details.tracking_code or "").strip() if details.method == ShippingMethod.VIETTEL else ""
    if details.method == ShippingMethod.EXTERNAL_COURIER:
        info = (details.external_info or "").strip()
        cost = max(int(details.external_cost or 0), 0)
    else:
        info, cost = "", 0
    return ShippingDetails(method=details.method, tracking_code=tracking, external_info=info, external_cost=cost)


def shipping_method_label(method: str | None) -> str:
    if not method:
        return "Not selected"
    try:
        return SHIPPING_METHOD_LABELS[ShippingMethod(method)]
    except ValueError:
        return method
