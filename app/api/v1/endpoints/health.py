# ============================================================================
# FILE: app/api/v1/endpoints/health.py
# ============================================================================
from fastapi import APIRouter, Request, status
from datetime import datetime, timezone
from typing import Optional
import logging
import platform
import sys
import time

from app.config import settings
from app.core.responses import api_response

logger = logging.getLogger(__name__)
router = APIRouter()

def _format_uptime(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h {minutes}m {secs}s"

def _max_rss_mb() -> Optional[float]:
    """Peak resident memory of the process in MB (None where unsupported)"""
    if sys.platform.startswith("win"):
        return None
    import resource

    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS and kilobytes on Linux
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(usage / divisor, 2)

@router.get("/health-check")
async def health_check(request: Request):
    """Liveness plus database connectivity; 503 when the database is unreachable"""
    started_at = getattr(request.app.state, "started_at", time.time())
    uptime = time.time() - started_at

    database = getattr(request.app.state, "database", None)
    db_ok = database.ping() if database is not None else False

    data = {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        "uptime": {"seconds": round(uptime, 2), "formatted": _format_uptime(uptime)},
        "memory": {"max_rss_mb": _max_rss_mb()},
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "python": platform.python_version(),
        },
        "database": {
            "status": "connected" if db_ok else "disconnected",
            "dialect": database.dialect if database is not None else None,
        },
    }

    if not db_ok:
        logger.warning("Health check degraded: database unreachable")
        return api_response(status.HTTP_503_SERVICE_UNAVAILABLE, data, "Service is degraded.")
    return api_response(status.HTTP_200_OK, data, "Service is healthy.")
