"""
Infrastructure endpoints that sit outside the API versioning.

health_check backs container and load balancer probes. The database is
required; the cache (Redis in production) only degrades the report.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)

HEALTH_CACHE_KEY = "orbit:health"


def _database_ok() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as exc:
        logger.error(f"Health check: database unavailable: {exc}")
        return False
    return True


def _cache_ok() -> bool:
    # django-redis is configured to ignore connection errors, so a dead
    # Redis shows up as a failed round trip rather than an exception
    cache.set(HEALTH_CACHE_KEY, "ok", timeout=1)
    return cache.get(HEALTH_CACHE_KEY) == "ok"


def health_check(request):
    """
    Report database and cache connectivity.

    Returns 200 while the database answers, 503 otherwise:

        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    database = _database_ok()
    cache_connected = _cache_ok()
    if not cache_connected:
        logger.warning("Health check: cache round trip failed")

    body = {
        "status": "healthy" if database else "unhealthy",
        "database": "connected" if database else "disconnected",
        "cache": "connected" if cache_connected else "disconnected",
    }
    return JsonResponse(body, status=200 if database else 503)
