# apps/core/exceptions.py
"""
Domain errors shared by the services, plus the DRF handler that turns them
into HTTP responses.

Services raise these before touching any row; views never catch them. The
handler below is the single place where they become 404 / 403 / 400.
"""
from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions as drf_exceptions
from rest_framework.views import exception_handler

logger = logging.getLogger("crm.errors")


class CrmError(Exception):
    default_detail = "Request could not be processed."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(CrmError):
    default_detail = "Not found."


class Forbidden(CrmError):
    default_detail = "You do not have permission to perform this action."


class BadRequest(CrmError):
    default_detail = "Bad request."


class InvalidTransition(BadRequest):
    """An operation was attempted from a state that does not allow it."""


class BadRequestAPIException(drf_exceptions.APIException):
    # ValidationError would wrap the message in a list; keep {"detail": "..."}
    status_code = 400
    default_detail = "Bad request."
    default_code = "bad_request"


_HTTP_EQUIVALENT = {
    NotFound: drf_exceptions.NotFound,
    Forbidden: drf_exceptions.PermissionDenied,
    BadRequest: BadRequestAPIException,
}


def to_api_exception(exc: CrmError) -> drf_exceptions.APIException:
    for kind, api_cls in _HTTP_EQUIVALENT.items():
        if isinstance(exc, kind):
            return api_cls(detail=exc.detail)
    return drf_exceptions.APIException(detail=exc.detail)


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER: map CrmError subclasses, then defer to DRF."""
    if isinstance(exc, DjangoValidationError):
        # ORM lookups reject malformed values, e.g. a bad UUID
        exc = BadRequest("; ".join(exc.messages))
    if isinstance(exc, CrmError):
        request = context.get("request")
        logger.info(
            "domain_error",
            extra={
                "kind": type(exc).__name__,
                "detail": exc.detail,
                "path": getattr(request, "path", ""),
                "correlation_id": getattr(request, "correlation_id", ""),
            },
        )
        exc = to_api_exception(exc)
    return exception_handler(exc, context)
