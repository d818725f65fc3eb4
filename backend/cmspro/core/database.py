"""
Async database access for CMS Pro.

The engine is created on first use so tests can point DATABASE_URL at their
own file before anything connects. SQLite (the default store) and dev mode
run without a pool; any other backend gets a pre-pinged pool sized from the
DB_POOL_* settings.
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import Any, AsyncGenerator, Dict, Optional

from cmspro.core.config import settings, Settings

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def normalize_database_url(url: str) -> str:
    """Plain postgres URLs are served by asyncpg"""
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def engine_options(url: str, config: Settings = settings) -> Dict[str, Any]:
    """Keyword arguments for create_async_engine for the given URL"""
    options: Dict[str, Any] = {"echo": config.DB_ECHO}

    if url.startswith("sqlite"):
        options["poolclass"] = NullPool
        options["connect_args"] = {"check_same_thread": False}
    elif config.is_dev_mode():
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_timeout=config.DB_POOL_TIMEOUT,
            pool_recycle=config.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        url = normalize_database_url(settings.DATABASE_URL)
        _engine = create_async_engine(url, **engine_options(url))
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Services return ORM rows after commit, so keep them loaded
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; commits leftovers, rolls back on error"""
    async with get_session_local()() as session:
        try:
            yield session
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create the users, complaints and system_settings tables"""
    import cmspro.models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
