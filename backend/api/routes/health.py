"""Health check endpoints."""

import asyncio
import logging
from datetime import UTC, datetime
from uuid import uuid4

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_storage
from adapters.storage import StorageAdapter
from core.exceptions import StorageError
from infrastructure.config import get_settings
from infrastructure.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Health check with database connectivity."""
    try:
        # Bounded so a stuck database cannot hang the probe
        result = await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=5.0)
        result.scalar()
        db_status = "connected"
    except TimeoutError:
        logger.error("Health check DB timeout")
        db_status = "error: database timeout"
    except Exception as e:
        logger.error("Health check DB error: %s", str(e))
        db_status = "error: database check failed"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": db_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/storage")
async def health_check_storage(storage: StorageAdapter = Depends(get_storage)):
    """Write, check and delete a throwaway object on the configured storage backend."""
    key = f".healthcheck/{uuid4()}"
    body = {
        "status": "healthy",
        "storage_type": settings.storage_type,
        "adapter": type(storage).__name__,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    try:
        await storage.save_file(key, b"ok")
        if not await storage.exists(key):
            raise StorageError(f"Health check object missing after write: {key}")
        if not await storage.delete(key):
            raise StorageError(f"Failed to delete health check object: {key}")
    except Exception as e:
        logger.error("Health check storage error: %s", str(e))
        body["status"] = "degraded"
        body["error"] = str(e)
        return JSONResponse(status_code=503, content=body)
    return body


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}
