from contextlib import asynccontextmanager
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from backend import redis_backend
from constants import CORS_ORIGINS
from database import init_db
from errors import OpenSpacesError, StorageError
from routers.admin import admin_router
from routers.auth import auth_router
from routers.health import health_router
from routers.ideas import ideas_router
from routers.rooms import rooms_router
from routers.schedule import schedule_router
from routers.slots import slots_router
from logging_config import get_logger, setup_logging
import os

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    try:
        redis_backend.ping()
        logger.info("Redis client connected successfully")
    except StorageError:
        logger.error("Failed to connect to Redis on startup")
        raise
    logger.info("Open Spaces API started")
    yield
    logger.info("Open Spaces API shutting down")


app = FastAPI(title="Open Spaces Live API", lifespan=lifespan)

# Session cookies need credentialed CORS, so origins are explicit
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(ideas_router)
api_router.include_router(slots_router)
api_router.include_router(rooms_router)
api_router.include_router(admin_router)
api_router.include_router(schedule_router)
api_router.include_router(health_router)
app.include_router(api_router)

logger.info("FastAPI application initialized")


@app.exception_handler(OpenSpacesError)
async def open_spaces_error_handler(request: Request, exc: OpenSpacesError):
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {exc}", exc_info=True)
    error = StorageError()
    return JSONResponse(status_code=error.http_status, content=error.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                        "type": e["type"],
                    }
                    for e in exc.errors()
                ],
            },
        },
    )


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    # Never leak internals
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
            },
        },
    )
