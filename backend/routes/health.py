"""
Health check endpoint.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Health check — verifies database connectivity and reports side-effect counters."""
    effects = request.app.state.side_effects
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database_connected": False,
                "error": "database unavailable",
            },
        )
    return {
        "status": "healthy",
        "database_connected": True,
        "pending_side_effects": effects.pending,
        "side_effect_failures": effects.failures_total,
        "emails_sent": effects.dispatcher.sent_total,
        "events_published": effects.event_bus.published_total,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
