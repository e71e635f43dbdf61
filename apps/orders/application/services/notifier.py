from __future__ import annotations

from collections.abc import Iterable
from functools import partial

from django.db import transaction

from apps.accounts.domain.roles import WORKER_ROLES, Role
from apps.accounts.domain.types import Actor
from apps.orders.domain.ports import NotificationRequest, OrderEvent, OrderEventPublisher
from apps.orders.domain.state_machine import SILENT_STATUSES, OrderStateMachine
from apps.orders.domain.statuses import OrderStatus
from apps.orders.models import Order

DESK_ROLES = frozenset({Role.ADMIN, Role.SALE})


class OrderNotifier:
    """
    Outbound side of the order use cases.

    Everything is handed to the injected publisher after the surrounding
    transaction commits, so a rolled back mutation never leaks an event.
    """

    def __init__(self, events: OrderEventPublisher):
        self.events = events

    def _emit(self, message: OrderEvent | NotificationRequest) -> None:
        transaction.on_commit(partial(self.events.publish, message))

    def order_event(
        self,
        order: Order,
        action: str,
        *,
        target_roles: Iterable[Role] | None = None,
        **metadata,
    ) -> None:
        if target_roles is None:
            target_roles = OrderStateMachine.audience(order.status) | DESK_ROLES
        payload = {"code": order.code, "status": order.status}
        payload.update(metadata)
        self._emit(
            OrderEvent(
                order_id=order.id,
                action=action,
                target_roles=frozenset(Role(role).value for role in target_roles),
                metadata=payload,
            )
        )

    def status_roles(
        self,
        order: Order,
        actor: Actor,
        *,
        title: str,
        message: str,
        action_type: str = "status_change",
        edit: bool = False,
        metadata: dict | None = None,
    ) -> None:
        roles = OrderStateMachine.audience(order.status, sender_roles=actor.roles, edit=edit)
        if not roles:
            return
        self._emit(
            NotificationRequest(
                title=title,
                message=message,
                order_id=order.id,
                sender_id=actor.user_id,
                recipient_roles=frozenset(role.value for role in roles),
                action_type=action_type,
                metadata={"order_code": order.code, "status": order.status, **(metadata or {})},
            )
        )

    def roles(
        self,
        order: Order,
        actor: Actor,
        roles: Iterable[Role],
        *,
        title: str,
        message: str,
        action_type: str,
        metadata: dict | None = None,
    ) -> None:
        wanted = frozenset(Role(role).value for role in roles)
        if not wanted:
            return
        self._emit(
            NotificationRequest(
                title=title,
                message=message,
                order_id=order.id,
                sender_id=actor.user_id,
                recipient_roles=wanted,
                action_type=action_type,
                metadata={"order_code": order.code, **(metadata or {})},
            )
        )

    def users(
        self,
        order: Order | None,
        actor: Actor,
        user_ids: Iterable[int],
        *,
        title: str,
        message: str,
        action_type: str,
        metadata: dict | None = None,
    ) -> None:
        ids = tuple(sorted({int(uid) for uid in user_ids if uid and int(uid) != actor.user_id}))
        if not ids:
            return
        self._emit(
            NotificationRequest(
                title=title,
                message=message,
                order_id=order.id if order else None,
                sender_id=actor.user_id,
                recipient_ids=ids,
                action_type=action_type,
                metadata={"order_code": order.code if order else "", **(metadata or {})},
            )
        )

    def mentions(self, order: Order, actor: Actor, user_ids: Iterable[int], *, where: str = "the order note") -> None:
        self.users(
            order,
            actor,
            user_ids,
            title="You were mentioned",
            message=f"{actor.name} mentioned you in {where} of order {order.code}",
            action_type="mention",
        )

    def status_entered(self, order: Order, actor: Actor, status: OrderStatus, note: str = "") -> None:
        """Tell the audience of `status` that the order just entered it."""
        if status in SILENT_STATUSES:
            return
        suffix = f" - {note}" if note else ""
        if status == OrderStatus.CANCELLED:
            title = "Order cancelled"
            message = f"{actor.name} cancelled order {order.code}{suffix}"
            action_type = "cancel"
        elif status == OrderStatus.FIX_REQUESTED:
            title = "Fix requested"
            message = f"{actor.name} requested a fix on order {order.code}{f' Reason: {note}' if note else ''}"
            action_type = "status_change"
        else:
            title = "Order status changed"
            message = f'{actor.name} moved order {order.code} to "{OrderStateMachine.label(status)}"{suffix}'
            action_type = "status_change"
        roles = OrderStateMachine.audience(status)
        self.roles(order, actor, roles, title=title, message=message, action_type=action_type, metadata={"status": status.value})

    def deleted(self, order_id: int, code: str) -> None:
        self._emit(
            OrderEvent(
                order_id=order_id,
                action="deleted",
                target_roles=frozenset(role.value for role in WORKER_ROLES),
                metadata={"code": code},
            )
        )
