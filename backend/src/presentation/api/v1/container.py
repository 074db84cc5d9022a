"""
Dependency Injection Container
Manages service and repository instances
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Depends

from core.config import settings
from core.database import AsyncSessionLocal, get_db
from application.repositories.interfaces import (
    IApplicationRepository,
    ICacheStore,
    IEventBus,
    IJobOfferRepository,
)
from application.services.application_queries import ApplicationQueryService
from application.services.expiration_sweeper import ExpirationSweeper
from application.services.status_transition import StatusTransitionHandler
from application.services.submission_pipeline import SubmissionPipeline
from infrastructure.cache.redis_cache_service import cache_service
from infrastructure.messaging import InMemoryEventBus, RedisStreamEventBus
from infrastructure.persistence.repositories.application import SQLAlchemyApplicationRepository
from infrastructure.persistence.repositories.job_offer import SQLAlchemyJobOfferRepository
from infrastructure.security.jwt_service import JwtService


# Singleton instances
_event_bus: IEventBus | None = None
_jwt_service: JwtService | None = None


def get_cache() -> ICacheStore:
    """Get cache store instance (singleton)"""
    return cache_service


def get_event_bus() -> IEventBus:
    """Get event bus instance (singleton)"""
    global _event_bus
    if _event_bus is None:
        if settings.EVENT_BUS_BACKEND == "memory":
            _event_bus = InMemoryEventBus()
        else:
            _event_bus = RedisStreamEventBus()
    return _event_bus


def get_jwt_service() -> JwtService:
    """Get JWT service instance (singleton)"""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JwtService()
    return _jwt_service


def get_job_offer_repository(
    session: AsyncSession = Depends(get_db)
) -> IJobOfferRepository:
    """Get job offer repository instance (per-request)"""
    return SQLAlchemyJobOfferRepository(session)


def get_application_repository(
    session: AsyncSession = Depends(get_db)
) -> IApplicationRepository:
    """Get application repository instance (per-request)"""
    return SQLAlchemyApplicationRepository(session)


def get_status_transition_handler(
    application_repo: IApplicationRepository = Depends(get_application_repository),
    cache: ICacheStore = Depends(get_cache),
    event_bus: IEventBus = Depends(get_event_bus),
) -> StatusTransitionHandler:
    """Get status transition handler (per-request)"""
    return StatusTransitionHandler(application_repo, cache, event_bus)


def get_query_service(
    application_repo: IApplicationRepository = Depends(get_application_repository),
    job_offer_repo: IJobOfferRepository = Depends(get_job_offer_repository),
    cache: ICacheStore = Depends(get_cache),
) -> ApplicationQueryService:
    """Get cached read service (per-request)"""
    return ApplicationQueryService(application_repo, job_offer_repo, cache)


def get_expiration_sweeper(
    job_offer_repo: IJobOfferRepository = Depends(get_job_offer_repository),
    cache: ICacheStore = Depends(get_cache),
) -> ExpirationSweeper:
    """Get expiration sweeper (per-request)"""
    return ExpirationSweeper(job_offer_repo, cache)


@asynccontextmanager
async def submission_pipeline_scope() -> AsyncIterator[SubmissionPipeline]:
    """Pipeline bound to a fresh database session, one per inbound message"""
    async with AsyncSessionLocal() as session:
        yield SubmissionPipeline(
            SQLAlchemyJobOfferRepository(session),
            SQLAlchemyApplicationRepository(session),
            get_cache(),
            get_event_bus(),
        )


async def run_expiration_sweep() -> int:
    """One sweep with its own database session (scheduler entry point)"""
    async with AsyncSessionLocal() as session:
        sweeper = ExpirationSweeper(SQLAlchemyJobOfferRepository(session), get_cache())
        return await sweeper.sweep()
