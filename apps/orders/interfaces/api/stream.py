from __future__ import annotations

import json
import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse, StreamingHttpResponse
from django.views.decorators.http import require_GET
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken

from apps.accounts.application.services.identity_service import StaffDirectory
from apps.accounts.domain.errors import StaffProfileMissingError
from apps.notifications.infrastructure.stream import StreamSubscription, order_stream

logger = logging.getLogger("framehouse.request")


def _authenticate(request: HttpRequest):
    """Bearer header first, then `?token=` since EventSource cannot send headers, then the session."""
    auth = JWTAuthentication()
    try:
        result = auth.authenticate(request)
        if result:
            return result[0]
        token = request.GET.get("token")
        if token:
            return auth.get_user(auth.get_validated_token(token))
    except (InvalidToken, AuthenticationFailed):
        logger.info("order_stream_auth_failed", extra={"path": request.path})
        return None
    user = getattr(request, "user", None)
    return user if user is not None and user.is_authenticated else None


def _frame(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, default=str)}\n\n"


def event_stream(subscription: StreamSubscription, *, keepalive: float):
    try:
        yield "retry: 3000\n\n"
        yield _frame("connected", {"user_id": subscription.user_id, "roles": sorted(subscription.roles)})
        while True:
            event = subscription.get(timeout=keepalive)
            if event is None:
                yield ": keepalive\n\n"
                continue
            yield _frame("order", event.as_payload())
    finally:
        order_stream.disconnect(subscription)


@require_GET
def order_stream_view(request: HttpRequest):
    user = _authenticate(request)
    if user is None:
        return JsonResponse({"success": False, "message": "Authentication required."}, status=401)
    try:
        actor = StaffDirectory.actor_for(user)
    except StaffProfileMissingError as exc:
        return JsonResponse({"success": False, "message": str(exc)}, status=403)

    keepalive = float(getattr(settings, "ORDER_STREAM_KEEPALIVE_SECONDS", 25))
    subscription = order_stream.connect(user_id=actor.user_id, roles=[role.value for role in actor.roles])
    response = StreamingHttpResponse(
        event_stream(subscription, keepalive=keepalive),
        content_type="text/event-stream",
    )
    response["Cache-Control"] = "no-cache"
    response["X-Accel-Buffering"] = "no"
    return response
