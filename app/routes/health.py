# app/routes/health.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import text
import psutil
import datetime
import sys
import logging

from app.database import get_db
from app.services.email_service import MockNotifier

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/health",
    tags=["Health Check"]
)


@router.get("")
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Health check with database connectivity and host metrics
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.datetime.now().isoformat(),
        "service": "MoyoClub Backend API",
        "version": "1.0.0",
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["database"] = {
            "status": "connected",
            "type": db.get_bind().dialect.name
        }
    except Exception as e:
        logger.error(f"Health check database probe failed: {e}")
        health_status["database"] = {
            "status": "disconnected",
            "error": str(e)
        }
        health_status["status"] = "degraded"

    health_status["system"] = {
        "python_version": sys.version,
        "platform": sys.platform,
        "cpu_percent": psutil.cpu_percent(interval=None),
        "memory_percent": psutil.virtual_memory().percent,
    }

    health_status["email"] = {
        "mode": "mock" if isinstance(request.app.state.notifier, MockNotifier) else "smtp"
    }

    logger.info(f"Health check completed: {health_status['status']}")
    return health_status
