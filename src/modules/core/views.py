import time
from typing import Any, Dict

import structlog
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.orders.cache import get_order_cache
from modules.orders.runtime import get_pipeline

logger = structlog.get_logger()


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    # Check database
    try:
        start = time.monotonic()
        conn = connections["default"]
        conn.ensure_connection()
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        services["database"] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }
    except Exception:
        services["database"] = {"status": "down"}
        overall_healthy = False
        logger.error("health_check_db_failure")

    # Check message source (only when this process runs the consumer)
    pipeline = get_pipeline()
    if pipeline is None:
        services["message_source"] = {"status": "disabled"}
    else:
        start = time.monotonic()
        if pipeline.source.ping() and pipeline.is_running:
            services["message_source"] = {
                "status": "up",
                "response_time_ms": round((time.monotonic() - start) * 1000, 2),
            }
        else:
            services["message_source"] = {"status": "down"}
            overall_healthy = False
            logger.error("health_check_source_failure")

    # Order cache (in-process)
    order_cache = get_order_cache()
    services["order_cache"] = {
        "status": "up",
        "size": len(order_cache),
        "capacity": order_cache.capacity,
    }

    status_code = 200 if overall_healthy else 503

    logger.info(
        "health_check_completed", status="healthy" if overall_healthy else "unhealthy"
    )

    return JsonResponse(
        {
            "status": "healthy" if overall_healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status_code,
    )
