from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time

from django.core.paginator import EmptyPage, Paginator
from django.db.models import Case, Exists, IntegerField, OuterRef, Q, QuerySet, Value, When
from django.utils import timezone

from apps.orders.application.services.config import page_size
from apps.orders.domain.errors import OrderValidationError
from apps.orders.domain.statuses import DraftStatus, FrameCuttingStatus, OrderStatus, OrderType, PaintingType, PrintingStatus
from apps.orders.models import Order, OrderDraft, Painting

_SIZE_RE = re.compile(r"(\d+)\s*[xX*×]\s*(\d+)")
_NUMBER_RE = re.compile(r"\d+")

# Pipeline order used as the last tie breaker.
STATUS_PRIORITY = [
    OrderStatus.NEW,
    OrderStatus.PROCESSING,
    OrderStatus.AWAITING_PRODUCTION,
    OrderStatus.FRAMED,
    OrderStatus.AWAITING_PACKING,
    OrderStatus.PACKED,
    OrderStatus.AWAITING_DISPATCH,
    OrderStatus.SENT,
    OrderStatus.COMPLETED,
    OrderStatus.CUSTOMER_RETURNED,
    OrderStatus.FIX_REQUESTED,
    OrderStatus.RECEIVED_BACK,
    OrderStatus.PACKING_RECEIVED_BACK,
    OrderStatus.RESENT_TO_PRODUCTION,
    OrderStatus.AWAITING_REPRODUCTION,
    OrderStatus.CANCELLED,
]
ORDER_TYPE_PRIORITY = [OrderType.URGENT, OrderType.TIKTOK, OrderType.SHOPEE, OrderType.NORMAL]
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListOrdersQuery:
    status: str | None = None
    order_type: str | None = None
    printing_status: tuple[str, ...] = ()
    frame_cutting_status: tuple[str, ...] = ()
    created_by: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    search: str = ""
    page: int = 1
    limit: int | None = None


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order]
    page: int
    limit: int
    total: int
    pending_draft_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    def pagination(self) -> dict:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


def split_csv(value: str | None) -> tuple[str, ...]:
    return tuple(part.strip() for part in (value or "").split(",") if part.strip())


def _search(qs: QuerySet, term: str) -> QuerySet:
    term = term.strip()
    if not term:
        return qs
    painting_match = Q(note__icontains=term) | Q(frame_type__icontains=term)
    size = _SIZE_RE.search(term)
    if size:
        width, height = int(size.group(1)), int(size.group(2))
        painting_match |= Q(width=width, height=height) | Q(width=height, height=width)
    else:
        number = _NUMBER_RE.search(term)
        if number:
            painting_match |= Q(width=int(number.group())) | Q(height=int(number.group()))
    order_ids = Painting.objects.filter(painting_match).values("order_id")
    return qs.filter(
        Q(code__icontains=term)
        | Q(customer_phone__icontains=term)
        | Q(customer_address__icontains=term)
        | Q(note__icontains=term)
        | Q(id__in=order_ids)
    )


def _priority(field_name: str, values) -> Case:
    return Case(
        *[When(**{field_name: value.value}, then=Value(index)) for index, value in enumerate(values)],
        default=Value(99),
        output_field=IntegerField(),
    )


def pipeline_sorted(qs: QuerySet) -> QuerySet:
    """
    Work queue order: live urgent work first, dead orders last.

    cancelled last, customer returns just before them, new urgent orders
    first, then other new orders, then orders whose print/cut work is still
    open, then by order type, age and pipeline position.
    """
    has_cutting = Painting.objects.filter(order_id=OuterRef("pk"), painting_type=PaintingType.FRAMED.value)
    return qs.annotate(has_cutting=Exists(has_cutting)).annotate(
        _cancelled=Case(When(status=OrderStatus.CANCELLED.value, then=Value(1)), default=Value(0), output_field=IntegerField()),
        _returned=Case(
            When(status=OrderStatus.CUSTOMER_RETURNED.value, then=Value(1)), default=Value(0), output_field=IntegerField()
        ),
        _fresh=Case(
            When(status=OrderStatus.NEW.value, order_type=OrderType.URGENT.value, then=Value(0)),
            When(status=OrderStatus.NEW.value, then=Value(1)),
            default=Value(2),
            output_field=IntegerField(),
        ),
        _work_done=Case(
            When(
                Q(printing_status=PrintingStatus.PRINTED.value)
                & (Q(has_cutting=False) | Q(frame_cutting_status=FrameCuttingStatus.CUT.value)),
                then=Value(1),
            ),
            default=Value(0),
            output_field=IntegerField(),
        ),
        _type_rank=_priority("order_type", ORDER_TYPE_PRIORITY),
        _status_rank=_priority("status", STATUS_PRIORITY),
    ).order_by("_cancelled", "_returned", "_fresh", "_work_done", "_type_rank", "created_at", "_status_rank", "id")


def _filter_frame_cutting(qs: QuerySet, wanted) -> QuerySet:
    """Match the reported frame status: orders without cutting items count as not_applicable."""
    cutting = Painting.objects.filter(order_id=OuterRef("pk"), painting_type=PaintingType.FRAMED.value)
    cond = Q(_cuts_frames=True, frame_cutting_status__in=wanted)
    if FrameCuttingStatus.NOT_APPLICABLE.value in wanted:
        cond |= Q(_cuts_frames=False)
    return qs.alias(_cuts_frames=Exists(cutting)).filter(cond)


def _day_bound(value: date, end: bool) -> datetime:
    return timezone.make_aware(datetime.combine(value, time.max if end else time.min))


class ListOrdersUseCase:
    @staticmethod
    def execute(query: ListOrdersQuery) -> OrderPage:
        qs = Order.objects.select_related("created_by")
        if query.status:
            qs = qs.filter(status=query.status)
        if query.order_type:
            qs = qs.filter(order_type=query.order_type)
        if query.printing_status:
            qs = qs.filter(printing_status__in=query.printing_status)
        if query.frame_cutting_status:
            qs = _filter_frame_cutting(qs, query.frame_cutting_status)
        if query.created_by:
            qs = qs.filter(created_by_id=query.created_by)
        if query.start_date or query.end_date:
            qs = qs.filter(actual_completion_date__isnull=False)
            if query.start_date:
                qs = qs.filter(actual_completion_date__gte=_day_bound(query.start_date, end=False))
            if query.end_date:
                qs = qs.filter(actual_completion_date__lte=_day_bound(query.end_date, end=True))
        qs = _search(qs, query.search)
        qs = pipeline_sorted(qs).prefetch_related("paintings")

        limit = query.limit or page_size()
        if query.page < 1 or limit < 1:
            raise OrderValidationError("page and limit must be positive.", field="page")
        limit = min(limit, MAX_PAGE_SIZE)
        paginator = Paginator(qs, limit)
        try:
            orders = list(paginator.page(query.page).object_list)
        except EmptyPage:
            orders = []

        ids = [order.id for order in orders]
        pending = frozenset(
            OrderDraft.objects.filter(order_id__in=ids, status=DraftStatus.PENDING).values_list("order_id", flat=True)
        )
        return OrderPage(orders=orders, page=query.page, limit=limit, total=paginator.count, pending_draft_ids=pending)
