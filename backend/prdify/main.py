import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from prdify.core.config import settings
from prdify.core.exceptions import ErrorKind, PrdError
from prdify.core.logging import configure_logging, LoggingMiddleware, get_logger
from prdify.core.monitoring import MetricsMiddleware, get_metrics, record_prd_error, update_health_status
from prdify.core.rate_limiter import rate_limit_middleware, setup_redis_rate_limiter, limiter, rate_limit_handler
from prdify.database.connection import create_tables, check_database_health, get_db_stats
from prdify.routers import document, planning, prd
from prdify.services.llm_provider import StructuredCompletionProvider

# Configure logging
configure_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)

# Server-side failures are not described to clients in detail
PUBLIC_MESSAGES = {
    ErrorKind.GENERATION: "Failed to generate content",
    ErrorKind.UPDATE: "Failed to save PRD changes",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("Starting PRDify API", version=settings.app_version)

    create_tables()

    if settings.rate_limit_enabled and settings.redis_url:
        setup_redis_rate_limiter(settings.redis_url)

    # The composition root owns the completion provider
    if getattr(app.state, "llm_provider", None) is None:
        app.state.llm_provider = StructuredCompletionProvider.from_settings(settings)

    update_health_status("database", check_database_health())
    update_health_status("openai", app.state.llm_provider.is_configured)

    logger.info("Application startup complete")
    yield

    logger.info("Shutting down PRDify API")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    **settings.get_cors_config()
)

if settings.metrics_enabled:
    app.add_middleware(MetricsMiddleware)

app.add_middleware(LoggingMiddleware)

if settings.rate_limit_enabled:
    app.middleware("http")(rate_limit_middleware)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


@app.exception_handler(PrdError)
async def prd_error_handler(request: Request, exc: PrdError):
    """Map every core error kind to its HTTP status"""
    record_prd_error(exc.kind.value)
    log = logger.bind(path=request.url.path, kind=exc.kind.value, error=exc.message, **exc.details)
    if exc.kind in PUBLIC_MESSAGES:
        log.error("PRD operation failed")
        content = {"error": PUBLIC_MESSAGES[exc.kind], "kind": exc.kind.value}
    else:
        log.info("PRD operation rejected")
        content = exc.to_dict()
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    db_healthy = check_database_health()
    update_health_status("database", db_healthy)

    provider = getattr(app.state, "llm_provider", None)
    llm_configured = bool(provider and provider.is_configured)
    update_health_status("openai", llm_configured)

    health_status = {
        "status": "healthy" if db_healthy else "unhealthy",
        "timestamp": time.time(),
        "version": settings.app_version,
        "environment": settings.environment.value,
        "services": {
            "database": {
                "status": "healthy" if db_healthy else "unhealthy",
                "stats": get_db_stats(),
            },
            "openai": {"status": "configured" if llm_configured else "not_configured"},
        },
    }
    return JSONResponse(content=health_status, status_code=200 if db_healthy else 503)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return await get_metrics()


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "PRDify API",
        "version": settings.app_version,
        "environment": settings.environment.value,
        "docs_url": "/docs" if settings.is_development else None,
        "health_url": "/health",
        "metrics_url": "/metrics" if settings.metrics_enabled else None
    }


app.include_router(prd.router)
app.include_router(planning.router)
app.include_router(document.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
