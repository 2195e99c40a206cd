# apps/core/middleware.py
import logging
import time
import uuid

logger = logging.getLogger("crm.http")

HEADER = "X-Correlation-Id"


class CorrelationIdMiddleware:
    """
    I tag every request with a correlation id (reused from the incoming
    X-Correlation-Id header when present) and log one line per request.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        correlation_id = request.headers.get(HEADER) or str(uuid.uuid4())
        request.correlation_id = correlation_id
        started = time.monotonic()

        response = self.get_response(request)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        response[HEADER] = correlation_id
        user = getattr(request, "user", None)
        extra = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
            "user_id": str(user.pk) if user is not None and user.is_authenticated else "anonymous",
        }
        if response.status_code >= 500:
            logger.error("request_failed", extra=extra)
        elif elapsed_ms > 1000:
            logger.warning("slow_request", extra=extra)
        else:
            logger.info("request", extra=extra)
        return response
