from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from cmspro import __version__
from cmspro.core.config import settings
from cmspro.core.database import init_db, close_db, get_session_local
from cmspro.core.exceptions import CMSProError, ValidationError, error_response
from cmspro.core.logging_config import logger
from cmspro.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from cmspro.core.rate_limiter import limiter, rate_limit_exceeded_handler
from cmspro.api.v1.router import api_router
from cmspro.api.v1.endpoints import realtime
from cmspro.services.broadcast import WebSocketBroadcaster
from cmspro.services.email_service import email_service
from cmspro.services.system_mode_service import SystemModeService

PLACEHOLDER_SECRETS = {"", "CHANGE_ME", "your-secret-key-here"}


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if settings.JWT_SECRET_KEY in PLACEHOLDER_SECRETS:
        errors.append("JWT_SECRET_KEY is not set or using default value")

    # Warnings: App can function but administrator sign-up will fail
    if not settings.super_admin_email:
        warnings.append("SUPER_ADMIN_EMAIL not set - administrator registrations cannot be approved")
    if not email_service.is_configured:
        warnings.append("SMTP credentials not set - approval emails will fail")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    await validate_critical_config()
    await init_db()

    # Seed the system mode row so the first toggle never races its creation
    async with get_session_local()() as session:
        mode = await SystemModeService(app.state.broadcaster).get_mode(session)
    logger.info(f"[Startup] System is {'online' if mode.is_system_online else 'offline'}")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Complaint management with administrator approval and live system status",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Shared by the system mode service (publisher) and the /ws endpoint (subscribers)
app.state.broadcaster = WebSocketBroadcaster()

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
# 1. Default per-minute limit for routes without their own @limiter.limit
app.add_middleware(SlowAPIMiddleware)

# 2. Request logging
app.add_middleware(RequestLoggingMiddleware)

# 3. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 4. Request size limit (1MB)
app.add_middleware(RequestSizeLimitMiddleware, max_size=1024 * 1024)

# 5. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(CMSProError)
async def cmspro_exception_handler(request: Request, exc: CMSProError):
    if exc.status_code >= 500:
        logger.error(f"[{exc.code}] {exc.message}", extra={"error_details": exc.details})
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
    message = first.get("msg", "Invalid request")
    # pydantic prefixes messages raised from our validators
    message = message.removeprefix("Value error, ")

    error = ValidationError(message, field=field)
    error.details["errors"] = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]
    return JSONResponse(status_code=error.status_code, content=error_response(error))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API is running...",
        "version": __version__,
        "docs": "/docs",
    }


# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(realtime.router, tags=["Realtime"])


def run():
    """Console entry point"""
    import uvicorn

    uvicorn.run(
        "cmspro.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
