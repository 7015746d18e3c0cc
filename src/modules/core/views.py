import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger(__name__)


def _timed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


def health_check(request: HttpRequest) -> JsonResponse:
    """Report database and cache reachability for load balancers."""
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    try:
        start = time.monotonic()
        conn = connections["default"]
        conn.ensure_connection()
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        services["database"] = {"status": "up", "response_time_ms": _timed_ms(start)}
    except DatabaseError:
        services["database"] = {"status": "down"}
        overall_healthy = False
        logger.error("health_check.database_down", exc_info=True)

    try:
        start = time.monotonic()
        cache.set("_health_check", "ok", 10)
        if cache.get("_health_check") != "ok":
            raise ConnectionError("Cache read-back mismatch")
        services["cache"] = {"status": "up", "response_time_ms": _timed_ms(start)}
    except Exception:  # noqa: BLE001 - any backend failure means "down"
        services["cache"] = {"status": "down"}
        overall_healthy = False
        logger.error("health_check.cache_down", exc_info=True)

    status_label = "healthy" if overall_healthy else "unhealthy"
    logger.info("health_check.completed", status=status_label)

    return JsonResponse(
        {
            "status": status_label,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if overall_healthy else 503,
    )
