"""
DocScan Database Module
Async SQLAlchemy with SQLite (dev) / PostgreSQL (prod) support.

Backs the optional collaborators only: legal rules, legal references and
the learning event log. The analysis core never touches the database.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from app.core.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# Engine and session factory (lazy initialization)
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get or create the async engine.

    SQLite gets NullPool (one connection per session), anything else a
    small async queue pool.
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        if "sqlite" in settings.database_url:
            pool_config = {
                "poolclass": NullPool,
                "connect_args": {"check_same_thread": False},
            }
        else:
            pool_config = {
                "poolclass": AsyncAdaptedQueuePool,
                "pool_size": 5,
                "max_overflow": 10,
                "pool_timeout": 30,
                "pool_recycle": 1800,
                "pool_pre_ping": True,
            }

        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            **pool_config,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_factory


async def init_db(seed: bool = True) -> None:
    """
    Create all tables and optionally load the built-in legal rules.
    Call this on startup.
    """
    from app.models import models  # noqa: F401  (registers tables)
    from app.services.legal_rules import seed_default_rules

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if seed:
        await seed_default_rules(get_session_factory())


async def close_db() -> None:
    """
    Close database connections.
    Call this on shutdown.
    """
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
