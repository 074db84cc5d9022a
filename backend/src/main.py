"""Main FastAPI Application

Wires middleware, global exception handlers, the API routers, and the
background consumers (submission worker, expiration scheduler).

Run locally for development with:

    uvicorn main:app --reload

Keep application logic in `application`, `core`, and
`infrastructure` to preserve a clean architecture.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from core.config import settings
from core.database import init_db, close_db, health_check as db_health_check
from core.logging_config import configure_logging
from core.exceptions import (
    DomainException,
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    ValidationException,
    ResourceNotFoundException,
    UpstreamException,
)
from application.services.expiration_sweeper import ExpirationScheduler
from application.services.submission_worker import SubmissionWorker
from infrastructure.cache.redis_cache_service import cache_service
from infrastructure.messaging import RedisStreamEventBus
from presentation.api.v1.container import (
    get_event_bus,
    run_expiration_sweep,
    submission_pipeline_scope,
)
from presentation.api.v1.endpoints import applications_router, job_offers_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    configure_logging()
    logger.info(f"🚀 Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")

    await init_db()
    logger.info("✅ Database initialized")

    await cache_service.connect()

    event_bus = get_event_bus()
    if isinstance(event_bus, RedisStreamEventBus):
        await event_bus.connect()

    if settings.SUBMISSION_WORKER_ENABLED:
        worker = SubmissionWorker(
            event_bus,
            submission_pipeline_scope,
            max_concurrent_tasks=settings.SUBMISSION_MAX_CONCURRENT_TASKS,
        )
        worker.register()
        app.state.submission_worker = worker

    if isinstance(event_bus, RedisStreamEventBus):
        await event_bus.start()

    scheduler = None
    if settings.EXPIRATION_SWEEP_ENABLED:
        scheduler = ExpirationScheduler(run_expiration_sweep, settings.EXPIRATION_SWEEP_INTERVAL_MINUTES)
        scheduler.start()

    yield

    logger.info("👋 Shutting down gracefully...")
    if scheduler is not None:
        await scheduler.stop()
    await event_bus.stop()
    if isinstance(event_bus, RedisStreamEventBus):
        await event_bus.disconnect()
    await cache_service.disconnect()
    await close_db()
    logger.info("✅ Connections closed")


app = FastAPI(
    title=settings.APP_NAME,
    description="Job board backend: job offers, applications and the submission pipeline",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException):
    """Handle domain-level exceptions"""
    if isinstance(exc, UpstreamException):
        logger.error(f"Upstream failure: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Upstream service failure"}
        )

    logger.warning(f"Domain exception: {str(exc)}")

    if isinstance(exc, AuthenticationException):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, AuthorizationException):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationException):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, ResourceNotFoundException):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictException):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler"""
    logger.opt(exception=exc).error(f"Unhandled exception: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


app.include_router(applications_router, prefix="/api/v1", tags=["Applications"])
app.include_router(job_offers_router, prefix="/api/v1", tags=["Job Offers"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "jobboard-backend",
        "database": await db_health_check(),
    }
