from __future__ import annotations

from enum import StrEnum


class OrderStatus(StrEnum):
    NEW = "new"
    PROCESSING = "processing"
    AWAITING_PRODUCTION = "awaiting_production"
    FRAMED = "framed"
    AWAITING_PACKING = "awaiting_packing"
    PACKED = "packed"
    AWAITING_DISPATCH = "awaiting_dispatch"
    SENT = "sent"
    COMPLETED = "completed"
    CUSTOMER_RETURNED = "customer_returned"
    FIX_REQUESTED = "fix_requested"
    RECEIVED_BACK = "received_back"
    PACKING_RECEIVED_BACK = "packing_received_back"
    RESENT_TO_PRODUCTION = "resent_to_production"
    AWAITING_REPRODUCTION = "awaiting_reproduction"
    STORED = "stored"
    RESENT_TO_CUSTOMER = "resent_to_customer"
    CANCELLED = "cancelled"


class PrintingStatus(StrEnum):
    NOT_PRINTED = "not_printed"
    QUEUED = "queued"
    PRINTING = "printing"
    PRINTED = "printed"
    RECEIVED_BY_PRODUCTION = "received_by_production"
    RECEIVED_BY_PACKING = "received_by_packing"
    REPRINT_REQUESTED = "reprint_requested"
    AWAITING_REPRINT = "awaiting_reprint"
    IN_STOCK = "in_stock"


class FrameCuttingStatus(StrEnum):
    NOT_CUT = "not_cut"
    QUEUED = "queued"
    CUTTING = "cutting"
    CUT = "cut"
    RECUT_REQUESTED = "recut_requested"
    AWAITING_RECUT = "awaiting_recut"
    NOT_APPLICABLE = "not_applicable"
    IN_STOCK = "in_stock"


class OrderType(StrEnum):
    NORMAL = "normal"
    URGENT = "urgent"
    SHOPEE = "shopee"
    TIKTOK = "tiktok"


class PaintingType(StrEnum):
    FLAT = "flat"
    GLASS_MOUNTED = "glass_mounted"
    FRAMED = "framed"
    ROUND = "round"
    PRINT_ONLY = "print_only"
    MIRROR = "mirror"
    RELIEF_PRINT = "relief_print"
    OIL = "oil"


class ShippingMethod(StrEnum):
    VIETTEL = "viettel"
    EXTERNAL_COURIER = "external_courier"
    CUSTOMER_PICKUP = "customer_pickup"
    INSTALL_DELIVERY = "install_delivery"


class DraftStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReworkType(StrEnum):
    REPRINT = "reprint"
    RECUT = "recut"


class ReceiveType(StrEnum):
    ARTWORK = "artwork"
    FRAME = "frame"


STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.NEW: "New",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.AWAITING_PRODUCTION: "Awaiting production",
    OrderStatus.FRAMED: "Framed",
    OrderStatus.AWAITING_PACKING: "Awaiting packing",
    OrderStatus.PACKED: "Packed",
    OrderStatus.AWAITING_DISPATCH: "Awaiting dispatch",
    OrderStatus.SENT: "Sent",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CUSTOMER_RETURNED: "Returned by customer",
    OrderStatus.FIX_REQUESTED: "Fix requested",
    OrderStatus.RECEIVED_BACK: "Received back",
    OrderStatus.PACKING_RECEIVED_BACK: "Received back by packing",
    OrderStatus.RESENT_TO_PRODUCTION: "Resent to production",
    OrderStatus.AWAITING_REPRODUCTION: "Awaiting reproduction",
    OrderStatus.STORED: "Stored in warehouse",
    OrderStatus.RESENT_TO_CUSTOMER: "Resent to customer",
    OrderStatus.CANCELLED: "Cancelled",
}

SHIPPING_METHOD_LABELS: dict[ShippingMethod, str] = {
    ShippingMethod.VIETTEL: "Viettel Post",
    ShippingMethod.EXTERNAL_COURIER: "External courier",
    ShippingMethod.CUSTOMER_PICKUP: "Customer pickup",
    ShippingMethod.INSTALL_DELIVERY: "Delivery and installation",
}


def choices(enum_cls) -> list[tuple[str, str]]:
    return [(member.value, member.value.replace("_", " ").capitalize()) for member in enum_cls]
