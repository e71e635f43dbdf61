from django.urls import path

from .stream import order_stream_view
from .views import (
    OrderAcceptAPI,
    OrderCompleteAPI,
    OrderDetailAPI,
    OrderDraftAPI,
    OrderDraftApproveAPI,
    OrderDraftRejectAPI,
    OrderListCreateAPI,
    OrderProductionRequestAPI,
    OrderPurgeAPI,
    OrderReceiveAPI,
    OrderReworkAPI,
    OrderStatusAPI,
    PaintingPackingReceiptAPI,
    PaintingProductionReceiptAPI,
    PaintingStepAPI,
)

urlpatterns = [
    path("orders/", OrderListCreateAPI.as_view(), name="api_orders"),
    path("orders/stream/", order_stream_view, name="api_orders_stream"),
    path("orders/purge/", OrderPurgeAPI.as_view(), name="api_orders_purge"),
    path("orders/<int:order_id>/", OrderDetailAPI.as_view(), name="api_order_detail"),
    path("orders/<int:order_id>/status/", OrderStatusAPI.as_view(), name="api_order_status"),
    path("orders/<int:order_id>/accept/", OrderAcceptAPI.as_view(), name="api_order_accept"),
    path("orders/<int:order_id>/complete/", OrderCompleteAPI.as_view(), name="api_order_complete"),
    path("orders/<int:order_id>/receive/", OrderReceiveAPI.as_view(), name="api_order_receive"),
    path("orders/<int:order_id>/rework/", OrderReworkAPI.as_view(), name="api_order_rework"),
    path(
        "orders/<int:order_id>/production-request/",
        OrderProductionRequestAPI.as_view(),
        name="api_order_production_request",
    ),
    path("orders/<int:order_id>/draft/", OrderDraftAPI.as_view(), name="api_order_draft"),
    path("orders/<int:order_id>/draft/approve/", OrderDraftApproveAPI.as_view(), name="api_order_draft_approve"),
    path("orders/<int:order_id>/draft/reject/", OrderDraftRejectAPI.as_view(), name="api_order_draft_reject"),
    path(
        "orders/<int:order_id>/paintings/<int:painting_id>/printed/",
        PaintingStepAPI.as_view(),
        name="api_painting_printed",
    ),
    path(
        "orders/<int:order_id>/paintings/<int:painting_id>/production-receipt/",
        PaintingProductionReceiptAPI.as_view(),
        name="api_painting_production_receipt",
    ),
    path(
        "orders/<int:order_id>/paintings/<int:painting_id>/packing-receipt/",
        PaintingPackingReceiptAPI.as_view(),
        name="api_painting_packing_receipt",
    ),
]
