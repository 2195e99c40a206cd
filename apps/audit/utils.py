from __future__ import annotations

import json
import logging

from django.core.serializers.json import DjangoJSONEncoder

from apps.audit.models import AuditEvent

logger = logging.getLogger("crm.audit")


def _client_ip(request) -> str | None:
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        return xff.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def _request_actor(request):
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return user
    return None


def log_event(
    request,
    action: str,
    object_type: str = "",
    object_id=None,
    *,
    actor=None,
    **changes,
) -> AuditEvent:
    """
    Centralized audit insert so it stays consistent across the app.

    `request` may be None (signals fired outside a request); `actor` overrides
    request.user, which is still anonymous during a JWT login.
    """
    if actor is None and request is not None:
        actor = _request_actor(request)
    meta = getattr(request, "META", {}) if request is not None else {}
    event = AuditEvent.objects.create(
        actor=actor,
        action=action,
        object_type=object_type,
        object_id=str(object_id or ""),
        # round-trip through the Django encoder so UUIDs/datetimes are stored as strings
        changes=json.loads(json.dumps(changes, cls=DjangoJSONEncoder)),
        correlation_id=getattr(request, "correlation_id", "") or "",
        ip=_client_ip(request) if request is not None else None,
        user_agent=meta.get("HTTP_USER_AGENT", ""),
    )
    logger.info(
        action,
        extra={"object_type": object_type, "object_id": event.object_id, "correlation_id": event.correlation_id},
    )
    return event
