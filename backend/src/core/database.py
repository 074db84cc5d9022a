"""
Async Database Configuration
SQLAlchemy 2.0 engine, session factory and declarative base
"""
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from .config import settings


# Constraint names are matched when mapping IntegrityError to domain errors
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def engine_options() -> Dict[str, Any]:
    """Pool settings: no pooling in debug, a bounded queue pool otherwise"""
    options: Dict[str, Any] = {
        "echo": settings.DEBUG,
        "pool_pre_ping": True,
    }
    if settings.DEBUG:
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return options


engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, **engine_options())

# Repositories commit each write themselves, so sessions never autocommit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions

    Usage:
        @router.get("/applications/{id}")
        async def get_application(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create the job_offers and applications tables if missing"""
    import infrastructure.persistence.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Dispose of pooled connections"""
    await engine.dispose()


async def health_check() -> bool:
    """Database health check"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
