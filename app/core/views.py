"""
Infrastructure views.

health_check reports the components messaging depends on:
    - database: conversations, messages and counters (required)
    - cache: notification preference cache (degraded when down)
    - channel_layer: realtime notification fan-out (degraded when down)
"""

import logging
import uuid

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def _check_database() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        return False
    return True


def _check_cache() -> bool:
    try:
        cache.set("health_check", "ok", timeout=5)
        return cache.get("health_check") == "ok"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        return False


def _check_channel_layer() -> bool:
    """Round-trip one message through the channel layer."""
    layer = get_channel_layer()
    if layer is None:
        return False
    try:
        channel = async_to_sync(layer.new_channel)("health_check.")
        token = uuid.uuid4().hex
        async_to_sync(layer.send)(channel, {"type": "health.check", "token": token})
        received = async_to_sync(layer.receive)(channel)
        return received.get("token") == token
    except Exception:
        logger.warning("Health check: channel layer unreachable", exc_info=True)
        return False


def health_check(request):
    """
    Health check endpoint for orchestrators and load balancers.

    Returns 200 when the database is reachable and 503 otherwise. Cache and
    channel layer failures only mark the service as degraded, since sends
    still commit without them.

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "channel_layer": "connected"
        }
    """
    database_ok = _check_database()
    cache_ok = _check_cache()
    channel_layer_ok = _check_channel_layer()

    if not database_ok:
        overall = "unhealthy"
    elif cache_ok and channel_layer_ok:
        overall = "healthy"
    else:
        overall = "degraded"

    def _state(ok):
        return "connected" if ok else "disconnected"

    return JsonResponse(
        {
            "status": overall,
            "database": _state(database_ok),
            "cache": _state(cache_ok),
            "channel_layer": _state(channel_layer_ok),
        },
        status=200 if database_ok else 503,
    )
