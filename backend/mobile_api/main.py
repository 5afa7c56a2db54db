"""Main FastAPI application"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from datetime import datetime, timezone
from pathlib import Path
import logging
import traceback
import time
import uuid

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response

from mobile_api.config import settings
from mobile_api.core.database import init_db, check_connection
from mobile_api.core.exceptions import BaseAPIException, StorageNotConfiguredError, UpstreamError
from mobile_api.schemas.response import ErrorResponse
from mobile_api.api.routes import auth, users, items
from mobile_api.services.rate_limiter import rate_limiter
from mobile_api.services.session_sweeper import session_sweeper
from mobile_api.services.storage_service import get_storage_client

# Configure logging - ensure log directory exists
_log_dir = Path(settings.get_log_file()).parent
_log_dir.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.get_log_file()),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

_STARTED_AT = time.time()

REQUEST_COUNT = Counter(
    "mobile_api_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "mobile_api_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
SWEEPER_UP_GAUGE = Gauge("mobile_api_session_sweeper_up", "Session sweeper liveness (1 running, 0 stopped)")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None
)

# GZip compression for large responses
app.add_middleware(GZipMiddleware, minimum_size=500)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(message: str, code: str, **extra) -> dict:
    return ErrorResponse(error=message, code=code, **extra).model_dump(exclude_none=True)


# Security headers, API rate ceiling and request timing
@app.middleware("http")
async def add_headers_and_timing(request: Request, call_next):
    """Add security headers, enforce the API rate ceiling and log slow requests"""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start = time.time()
    if request.url.path.startswith(settings.API_PREFIX + "/"):
        ip = request.client.host if request.client else "unknown"
        if not rate_limiter.allow(f"api:{ip}", settings.API_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS):
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=_error_body("API rate limit exceeded", "API_RATE_LIMIT"),
            )
        else:
            response = await call_next(request)
    else:
        response = await call_next(request)
    duration = time.time() - start

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["X-Request-ID"] = request_id

    REQUEST_COUNT.labels(request.method, request.url.path, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(request.method, request.url.path).observe(duration)

    logger.info(
        "%s %s %s %.3fs request_id=%s",
        request.method,
        request.url.path,
        response.status_code,
        duration,
        request_id,
    )
    if duration > 1.0:
        logger.warning(
            "Slow request: %s %s took %.2fs request_id=%s",
            request.method,
            request.url.path,
            duration,
            request_id,
        )

    return response


# Exception handlers
@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"API Exception: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "code": exc.code,
            "path": request.url.path,
            "method": request.method
        }
    )

    message = exc.message
    if isinstance(exc, UpstreamError) and settings.is_production:
        message = "Upstream service error"

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message, exc.code, details=exc.details or None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors as 400 VALIDATION_ERROR"""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        f"Validation error: {errors}",
        extra={"path": request.url.path, "method": request.method}
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation failed", "VALIDATION_ERROR", details={"errors": errors})
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render framework HTTP errors (unknown routes, wrong methods) in the envelope"""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("Endpoint not found", "NOT_FOUND", path=request.url.path)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    """Unique/foreign-key violations that slipped past service checks"""
    logger.warning(
        f"Integrity error: {str(exc.orig)}",
        extra={"path": request.url.path, "method": request.method}
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Duplicate entry", "DUPLICATE_ENTRY")
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors"""
    logger.error(
        f"Database error: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc()
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("A database error occurred. Please try again later.", "DATABASE_ERROR")
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.critical(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc()
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "Internal server error" if settings.is_production else str(exc),
            "SERVER_ERROR"
        )
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    settings.validate_security_settings()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Storage: {settings.SPACES_BUCKET or 'Not configured'}")
    if settings.using_default_secret():
        logger.warning("JWT secret: using default (change in production!)")

    # Initialize database
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    if settings.RUN_SESSION_SWEEPER:
        session_sweeper.start()
        SWEEPER_UP_GAUGE.set(1)


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    if session_sweeper.is_running():
        session_sweeper.stop()
    SWEEPER_UP_GAUGE.set(0)
    logger.info(f"Shutting down {settings.APP_NAME}")


# Health check endpoints (no auth required)
@app.get("/health")
async def health_check():
    """Application health status"""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.time() - _STARTED_AT, 3),
        "session_sweeper": session_sweeper.status(),
    }


@app.get("/health/db")
def database_health():
    """Database connection status"""
    try:
        now = check_connection()
    except Exception as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "disconnected", "error": str(exc)}
        )
    return {"status": "connected", "timestamp": now}


@app.get("/health/storage")
def storage_health():
    """Object storage status"""
    try:
        return get_storage_client().check()
    except StorageNotConfiguredError as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_configured", "error": exc.message}
        )
    except UpstreamError as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "disconnected", "error": exc.message}
        )


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Root endpoint - API index
@app.get("/")
async def root():
    """Root endpoint"""
    prefix = settings.API_PREFIX
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "REST API for mobile applications with JWT authentication",
        "status": "running",
        "docs": "/api/docs" if settings.DEBUG else "disabled",
        "endpoints": {
            "health": ["/health", "/health/db", "/health/storage"],
            "auth": [
                f"POST {prefix}/auth/signup",
                f"POST {prefix}/auth/login",
                f"POST {prefix}/auth/logout",
                f"POST {prefix}/auth/refresh",
            ],
            "users": [
                f"GET {prefix}/users/me",
                f"PUT {prefix}/users/me",
                f"PUT {prefix}/users/me/password",
                f"GET {prefix}/users/me/items",
                f"DELETE {prefix}/users/me",
            ],
            "items": [
                f"GET {prefix}/items",
                f"GET {prefix}/items/:id",
                f"POST {prefix}/items",
                f"PUT {prefix}/items/:id",
                f"DELETE {prefix}/items/:id",
                f"POST {prefix}/items/:id/upload",
                f"GET {prefix}/items/:id/uploads",
            ],
        },
        "authentication": {
            "type": "JWT Bearer Token",
            "header": "Authorization: Bearer <token>",
        },
    }


# Include routers
app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Authentication"])
app.include_router(users.router, prefix=f"{settings.API_PREFIX}/users", tags=["Users"])
app.include_router(items.router, prefix=f"{settings.API_PREFIX}/items", tags=["Items"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mobile_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
