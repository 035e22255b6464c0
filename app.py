"""
DoseTrack Backend
Main FastAPI application for medication schedules and adherence tracking
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Configuration and database
from config import settings
from database import init_db, DatabaseHealthCheck
from errors import (
    DoseTrackError,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    DuplicateLogError,
    TransientStoreError,
)
from api import include_routers

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


ERROR_STATUS_CODES = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    DuplicateLogError: 409,
    TransientStoreError: 503,
}


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


# ==================== APP INITIALIZATION ====================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## DoseTrack API

    Medication schedules, dose logging and adherence analytics.

    ### Features
    - **Schedules**: Daily doses spread evenly over the waking window
    - **Dose logging**: Mark doses taken or missed, at most once each
    - **Adherence**: Percentage, per-day series and most-missed medications
    - **Rewards**: Points for doses taken on time
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Attach modular API routers (prefix /api/v1)
include_routers(app)


# ==================== EXCEPTION HANDLERS ====================

def _error_body(status_code: int, message: str) -> dict:
    return {
        "error": True,
        "message": message,
        "status_code": status_code,
        "timestamp": datetime.utcnow().isoformat()
    }


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.detail)
    )


@app.exception_handler(DoseTrackError)
async def dosetrack_exception_handler(request: Request, exc: DoseTrackError):
    status_code = 500
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    headers = None
    if exc.retryable:
        headers = {"Retry-After": str(max(1, round(settings.STORE_RETRY_BACKOFF_SECONDS * settings.STORE_MAX_ATTEMPTS)))}
        logger.warning(f"{request.method} {request.url.path} unavailable: {exc.message}")
    elif status_code == 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content=_error_body(status_code, exc.message),
        headers=headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body(
            500,
            "An unexpected error occurred" if not settings.DEBUG else str(exc)
        )
    )


# ==================== HEALTH ENDPOINTS ====================

@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic health check"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint"""
    db_connected = DatabaseHealthCheck.is_connected()

    return {
        "status": "healthy" if db_connected else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": {
                "status": "up" if db_connected else "down",
                "type": "sqlite" if "sqlite" in settings.DATABASE_URL else "postgresql"
            }
        },
        "version": settings.APP_VERSION,
        "environment": settings.ENV
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
