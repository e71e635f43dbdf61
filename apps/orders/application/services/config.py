from __future__ import annotations

from django.conf import settings

from apps.orders.domain.financials import DEFAULT_VAT_RATE_PERCENT


def vat_rate_percent() -> float:
    return float(getattr(settings, "ORDER_VAT_RATE_PERCENT", DEFAULT_VAT_RATE_PERCENT))


def admin_secret_code() -> str:
    return getattr(settings, "ORDER_ADMIN_SECRET_CODE", "") or ""


def page_size() -> int:
    return max(1, int(getattr(settings, "ORDERS_PAGE_SIZE", 20)))
