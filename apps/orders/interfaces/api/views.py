from __future__ import annotations

import logging
from datetime import date

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.application.services.identity_service import StaffDirectory
from apps.accounts.domain.errors import StaffProfileMissingError
from apps.accounts.domain.types import Actor
from apps.notifications.infrastructure.event_bus import get_event_bus
from apps.orders.application.use_cases.accept_order import AcceptOrderCommand, AcceptOrderUseCase
from apps.orders.application.use_cases.complete_order import CompleteOrderCommand, CompleteOrderUseCase
from apps.orders.application.use_cases.create_order import CreateOrderCommand, CreateOrderUseCase
from apps.orders.application.use_cases.delete_order import (
    DeleteOrderCommand,
    DeleteOrderUseCase,
    PurgeOrdersCommand,
    PurgeOrdersUseCase,
)
from apps.orders.application.use_cases.get_order import GetOrderUseCase, GetPendingDraftUseCase
from apps.orders.application.use_cases.list_orders import ListOrdersQuery, ListOrdersUseCase, split_csv
from apps.orders.application.use_cases.painting_progress import (
    MarkPaintingPrintedUseCase,
    PaintingStepCommand,
    ReceivePaintingByPackingUseCase,
    ReceivePaintingByProductionUseCase,
)
from apps.orders.application.use_cases.receive_order import ReceiveOrderCommand, ReceiveOrderUseCase
from apps.orders.application.use_cases.request_rework import (
    ProductionRequestUseCase,
    RequestReworkUseCase,
    ReworkCommand,
)
from apps.orders.application.use_cases.review_draft import (
    ApproveDraftUseCase,
    RejectDraftUseCase,
    ReviewDraftCommand,
)
from apps.orders.application.use_cases.update_order import UpdateOrderCommand, UpdateOrderUseCase
from apps.orders.application.use_cases.update_status import UpdateStatusCommand, UpdateStatusUseCase
from apps.orders.domain.capabilities import hides_money
from apps.orders.domain.errors import OrderDomainError, OrderValidationError
from apps.orders.interfaces.api.serializers import (
    CompleteOrderSerializer,
    DeleteOrderSerializer,
    OrderCreateSerializer,
    OrderDetailSerializer,
    OrderDraftSerializer,
    OrderListSerializer,
    OrderUpdateSerializer,
    PurgeOrdersSerializer,
    ReceiveOrderSerializer,
    RejectDraftSerializer,
    ReworkSerializer,
    StatusUpdateSerializer,
    StepRoleSerializer,
    VersionedSerializer,
    order_fields,
)
logger = logging.getLogger("framehouse.request")


def _success(*, data=None, message: str = "", http_status: int = status.HTTP_200_OK, **extra) -> Response:
    payload: dict = {"success": True}
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return Response(payload, status=http_status)


def _error(*, message: str, field: str | None = None, http_status: int = status.HTTP_400_BAD_REQUEST) -> Response:
    payload: dict = {"success": False, "message": message}
    if field:
        payload["field"] = field
    return Response(payload, status=http_status)


def _first_error(errors) -> tuple[str, str | None]:
    """Flatten DRF serializer errors into (message, field)."""
    if isinstance(errors, dict):
        for key, value in errors.items():
            message, _ = _first_error(value)
            return message, key
    if isinstance(errors, list) and errors:
        return _first_error(errors[0])
    return str(errors), None


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def _version(validated: dict) -> int | None:
    return validated.get("expected_version")


class OrderAPIView(APIView):
    """Base for the order endpoints: resolves the caller and maps domain errors."""

    permission_classes = [IsAuthenticated]

    def actor(self, request) -> Actor:
        return StaffDirectory.actor_for(request.user)

    @staticmethod
    def events():
        return get_event_bus()

    def validated(self, serializer_class, request) -> dict:
        serializer = serializer_class(data=request.data)
        if not serializer.is_valid():
            message, field = _first_error(serializer.errors)
            raise OrderValidationError(f"{field}: {message}" if field else message, field=field)
        return serializer.validated_data

    def handle_exception(self, exc):
        if isinstance(exc, StaffProfileMissingError):
            return _error(message=str(exc), http_status=status.HTTP_403_FORBIDDEN)
        if isinstance(exc, OrderDomainError):
            if exc.http_status == status.HTTP_409_CONFLICT:
                logger.warning("order_version_conflict", extra={"path": self.request.path})
            return _error(message=str(exc), field=getattr(exc, "field", None), http_status=exc.http_status)
        return super().handle_exception(exc)

    def detail_response(self, request, actor: Actor, order_id: int, *, message: str = "", **extra) -> Response:
        detail = GetOrderUseCase.execute(actor=actor, order_id=order_id)
        context = {
            "hide_money": detail.capabilities.hide_money_fields,
            "names": StaffDirectory.display_names(h.actor_id for h in detail.order.status_history.all() if h.actor_id),
        }
        data = OrderDetailSerializer(detail.order, context=context).data
        data["frame_cutting_status"] = detail.frame_cutting_status
        data["capabilities"] = detail.capabilities.as_dict()
        data["has_pending_draft"] = detail.has_pending_draft
        data["pending_draft"] = OrderDraftSerializer(detail.pending_draft).data if detail.pending_draft else None
        return _success(data=data, message=message, **extra)


class OrderListCreateAPI(OrderAPIView):
    def get(self, request):
        actor = self.actor(request)
        params = request.query_params
        try:
            query = ListOrdersQuery(
                status=params.get("status") or None,
                order_type=params.get("order_type") or None,
                printing_status=split_csv(params.get("printing_status")),
                frame_cutting_status=split_csv(params.get("frame_cutting_status")),
                created_by=int(params["created_by"]) if params.get("created_by") else None,
                start_date=_parse_date(params.get("start_date")),
                end_date=_parse_date(params.get("end_date")),
                search=params.get("search") or "",
                page=int(params.get("page") or 1),
                limit=int(params["limit"]) if params.get("limit") else None,
            )
        except ValueError as exc:
            raise OrderValidationError("Invalid list filter.", field="query") from exc

        page = ListOrdersUseCase.execute(query)
        context = {"hide_money": hides_money(actor.roles), "pending_draft_ids": page.pending_draft_ids}
        return _success(
            data=OrderListSerializer(page.orders, many=True, context=context).data,
            pagination=page.pagination(),
        )

    def post(self, request):
        actor = self.actor(request)
        data = self.validated(OrderCreateSerializer, request)
        order = CreateOrderUseCase(events=self.events()).execute(
            CreateOrderCommand(
                actor=actor,
                code=data["code"],
                fields=order_fields(request.data),
                printing_status=data.get("printing_status") or None,
                frame_cutting_status=data.get("frame_cutting_status") or None,
            )
        )
        response = self.detail_response(request, actor, order.id, message="Order created.")
        response.status_code = status.HTTP_201_CREATED
        return response


class OrderDetailAPI(OrderAPIView):
    def get(self, request, order_id: int):
        return self.detail_response(request, self.actor(request), order_id)

    def patch(self, request, order_id: int):
        actor = self.actor(request)
        data = self.validated(OrderUpdateSerializer, request)
        result = UpdateOrderUseCase(events=self.events()).execute(
            UpdateOrderCommand(
                actor=actor,
                order_id=order_id,
                fields=order_fields(request.data),
                expected_version=_version(data),
            )
        )
        if result.pending_approval:
            return self.detail_response(
                request,
                actor,
                order_id,
                message="Changes were sent to an admin for approval.",
                pending_approval=True,
            )
        return self.detail_response(request, actor, order_id, message="Order updated.")

    def delete(self, request, order_id: int):
        data = self.validated(DeleteOrderSerializer, request)
        DeleteOrderUseCase(events=self.events()).execute(
            DeleteOrderCommand(actor=self.actor(request), order_id=order_id, secret_code=data["secret_code"])
        )
        return _success(message="Order deleted.")


class OrderStatusAPI(OrderAPIView):
    def patch(self, request, order_id: int):
        actor = self.actor(request)
        data = self.validated(StatusUpdateSerializer, request)
        UpdateStatusUseCase(events=self.events()).execute(
            UpdateStatusCommand(
                actor=actor,
                order_id=order_id,
                status=data["status"],
                note=data.get("note", ""),
                expected_version=_version(data),
            )
        )
        return self.detail_response(request, actor, order_id, message="Status updated.")


class OrderAcceptAPI(OrderAPIView):
    def patch(self, request, order_id: int):
        actor = self.actor(request)
        data = self.validated(StepRoleSerializer, request)
        AcceptOrderUseCase(events=self.events()).execute(
            AcceptOrderCommand(actor=actor, order_id=order_id, role=data["role"], expected_version=_version(data))
        )
        return self.detail_response(request, actor, order_id, message="Order accepted.")


class OrderCompleteAPI(OrderAPIView):
    def patch(self, request, order_id: int):
        actor = self.actor(request)
        data = self.validated(CompleteOrderSerializer, request)
        CompleteOrderUseCase(events=self.events()).execute(
            CompleteOrderCommand(
                actor=actor,
                order_id=order_id,
                role=data["role"],
                shipping_method=data.get("shipping_method") or None,
                shipping_tracking_code=data.get("shipping_tracking_code", ""),
                shipping_external_info=data.get("shipping_external_info", ""),
                shipping_external_cost=data.get("shipping_external_cost"),
                shipping_installation_price=data.get("shipping_installation_price"),
                customer_pays_shipping=data.get("customer_pays_shipping"),
                payment_bill_images=tuple(data.get("payment_bill_images") or ()),
                expected_version=_version(data),
            )
        )
        return self.detail_response(request, actor, order_id, message="Step completed.")


class OrderReceiveAPI(OrderAPIView):
    def patch(self, request, order_id: int):
        actor = self.actor(request)
        data = self.validated(ReceiveOrderSerializer, request)
        ReceiveOrderUseCase(events=self.events()).execute(
            ReceiveOrderCommand(actor=actor, order_id=order_id, type=data["type"], expected_version=_version(data))
        )
        return self.detail_response(request, actor, order_id, message="Received.")


class OrderReworkAPI(OrderAPIView):
    use_case = RequestReworkUseCase
    done_message = "Rework requested."

    def patch(self, request, order_id: int):
        actor = self.actor(request)
        data = self.validated(ReworkSerializer, request)
        self.use_case(events=self.events()).execute(
            ReworkCommand(
                actor=actor,
                order_id=order_id,
                type=data["type"],
                reason=data.get("reason", ""),
                expected_version=_version(data),
            )
        )
        return self.detail_response(request, actor, order_id, message=self.done_message)


class OrderProductionRequestAPI(OrderReworkAPI):
    use_case = ProductionRequestUseCase
    done_message = "Request sent."


class OrderDraftAPI(OrderAPIView):
    def get(self, request, order_id: int):
        draft = GetPendingDraftUseCase.execute(actor=self.actor(request), order_id=order_id)
        return Response(
            {"success": True, "data": OrderDraftSerializer(draft).data if draft else None},
            status=status.HTTP_200_OK,
        )


class OrderDraftApproveAPI(OrderAPIView):
    def patch(self, request, order_id: int):
        actor = self.actor(request)
        ApproveDraftUseCase(events=self.events()).execute(ReviewDraftCommand(actor=actor, order_id=order_id))
        return self.detail_response(request, actor, order_id, message="Changes approved.")


class OrderDraftRejectAPI(OrderAPIView):
    def patch(self, request, order_id: int):
        actor = self.actor(request)
        data = self.validated(RejectDraftSerializer, request)
        RejectDraftUseCase(events=self.events()).execute(
            ReviewDraftCommand(actor=actor, order_id=order_id, reason=data.get("reason", ""))
        )
        return self.detail_response(request, actor, order_id, message="Changes rejected.")


class OrderPurgeAPI(OrderAPIView):
    def post(self, request):
        data = self.validated(PurgeOrdersSerializer, request)
        result = PurgeOrdersUseCase.execute(
            PurgeOrdersCommand(actor=self.actor(request), months=data["months"], secret_code=data["secret_code"])
        )
        return _success(
            message=f"Deleted {result.deleted_count} orders created before {result.cutoff:%d/%m/%Y}.",
            data={"deleted_count": result.deleted_count, "cutoff": result.cutoff.isoformat()},
        )


class PaintingStepAPI(OrderAPIView):
    use_case = MarkPaintingPrintedUseCase
    done_message = "Painting marked printed."

    def patch(self, request, order_id: int, painting_id: int):
        actor = self.actor(request)
        data = self.validated(VersionedSerializer, request)
        self.use_case(events=self.events()).execute(
            PaintingStepCommand(actor=actor, order_id=order_id, painting_id=painting_id, expected_version=_version(data))
        )
        return self.detail_response(request, actor, order_id, message=self.done_message)


class PaintingProductionReceiptAPI(PaintingStepAPI):
    use_case = ReceivePaintingByProductionUseCase
    done_message = "Painting received by production."


class PaintingPackingReceiptAPI(PaintingStepAPI):
    use_case = ReceivePaintingByPackingUseCase
    done_message = "Painting received by packing."
