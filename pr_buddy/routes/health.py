# pr_buddy/routes/health.py

"""Health Check Endpoint

Reports the status of the service and its GitHub / AI dependencies.
"""

from datetime import datetime, timezone
import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from pr_buddy.dependencies import get_pr_processor
from pr_buddy.services.pr_processor import PRProcessingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["health"])

STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check(processor: PRProcessingService = Depends(get_pr_processor)):
    """
    Health check endpoint

    Returns:
        Health status information
    """
    try:
        services = await processor.get_health_status()
        return JSONResponse(
            content={
                "status": "healthy",
                "services": services,
                "uptime": round(time.monotonic() - STARTED_AT, 3),
                "timestamp": datetime.now(timezone.utc).isoformat()
            },
            status_code=200
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return JSONResponse(
            content={
                "status": "unhealthy",
                "error": str(e),
                "timestamp": datetime.now(timezone.utc).isoformat()
            },
            status_code=500
        )
