"""
Fan League FastAPI Application
Main entry point for the application
"""

import asyncio
import logging
import subprocess
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from fanleague.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Sentry integration
if settings.sentry_dsn:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
    from sentry_sdk.integrations.redis import RedisIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
            RedisIntegration(),
        ],
        traces_sample_rate=0.1,
        environment=settings.app_env,
    )

from fanleague.api.health import router as health_router
from fanleague.api.v1.users import router as users_router
from fanleague.api.v1.auth import router as auth_router
from fanleague.api.v1.dashboard import router as dashboard_router
from fanleague.api.v1.loyalty import router as loyalty_router
from fanleague.api.v1.tournaments import router as tournaments_router
from fanleague.api.v1.admin import router as admin_router
from fanleague.core.metrics import REQUEST_COUNT, REQUEST_DURATION, ACTIVE_CONNECTIONS
from fanleague.core.redis_client import redis_client
from fanleague.middleware.rate_limit import RateLimitMiddleware

# Create FastAPI app instance
app = FastAPI(
    title="Fan League API",
    description="Fan registration, phone verification and tournament loyalty rewards",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


# Run database migrations on startup
@app.on_event("startup")
async def startup_event():
    """Run database migrations on startup"""
    if not settings.run_migrations_on_startup:
        return
    try:
        logger.info("Running database migrations")
        result = await asyncio.to_thread(
            subprocess.run,
            ["alembic", "upgrade", "head"],
            capture_output=True,
            text=True,
            timeout=60
        )
        if result.returncode == 0:
            logger.info("Database migrations completed")
        else:
            logger.warning(f"Migration failed: {result.stderr}")
    except (OSError, subprocess.SubprocessError) as e:
        logger.error(f"Migration error (continuing anyway): {e}")


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting on the verification endpoints, only when enabled
app.add_middleware(
    RateLimitMiddleware,
    redis_client=redis_client if settings.rate_limit_enabled else None
)


# Add metrics middleware
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    ACTIVE_CONNECTIONS.inc()
    response = None

    try:
        response = await call_next(request)
        return response
    finally:
        duration = time.time() - start_time
        ACTIVE_CONNECTIONS.dec()

        # Label by route template so ids in paths do not explode cardinality
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        if response is not None:
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)


def _error_body(detail) -> dict:
    if isinstance(detail, dict):
        return detail
    return {"error": str(detail)}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Flatten HTTPException details into the {error, details} envelope"""
    if exc.status_code == 405:
        body = {"error": "Method not allowed"}
    elif exc.status_code == 404 and exc.detail == "Not Found":
        body = {"error": "Not found"}
    else:
        body = _error_body(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation failures are 400s"""
    errors = exc.errors()
    missing = any(
        error.get("type") in ("missing", "string_too_short") for error in errors
    )
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in errors
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Missing required fields" if missing else "Invalid request",
            "details": details
        }
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Add metrics endpoint
@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include routers
app.include_router(health_router, prefix=settings.api_v1_prefix, tags=["health"])
app.include_router(users_router, prefix=settings.api_v1_prefix, tags=["users"])
app.include_router(auth_router, prefix=settings.api_v1_prefix, tags=["verification"])
app.include_router(dashboard_router, prefix=settings.api_v1_prefix, tags=["dashboard"])
app.include_router(loyalty_router, prefix=settings.api_v1_prefix, tags=["loyalty"])
app.include_router(tournaments_router, prefix=settings.api_v1_prefix, tags=["tournaments"])
app.include_router(admin_router, prefix=settings.api_v1_prefix, tags=["admin"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fanleague.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
