import time
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

from modules.core.correlation import correlation_scope

logger = structlog.get_logger()


class CorrelationIdMiddleware:
    """Middleware that extracts or generates a correlation ID for each request.

    Reads X-Request-ID header from the incoming request. If absent,
    generates a new UUID4. The ID is bound into the structlog context for
    the duration of the request and returned to the client via the
    X-Request-ID response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        with correlation_scope(request.META.get("HTTP_X_REQUEST_ID")) as cid:
            start = time.monotonic()
            logger.info(
                "request_started",
                method=request.method,
                path=request.get_full_path(),
            )

            response = self.get_response(request)

            logger.info(
                "request_finished",
                method=request.method,
                path=request.get_full_path(),
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )

        response["X-Request-ID"] = cid
        return response
