from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from backend import RedisBackend, get_redis_backend
from database import get_db
from errors import StorageError
from logging_config import get_logger

logger = get_logger(__name__)

health_router = APIRouter(prefix="/health", tags=["health"])


@health_router.get("")
def health_check():
    """Liveness: 200 whenever the process is up."""
    return {"status": "healthy", "service": "open-spaces-live"}


@health_router.get("/ready")
def readiness_check(
    db: Session = Depends(get_db),
    store: RedisBackend = Depends(get_redis_backend),
):
    """Readiness: both storage collaborators must answer."""
    checks = {"database": "healthy", "redis": "healthy"}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check: database unavailable: {e}")
        checks["database"] = "unavailable"
    try:
        store.ping()
    except StorageError:
        checks["redis"] = "unavailable"

    if "unavailable" in checks.values():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
