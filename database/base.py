"""Database base configuration and session management."""
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import BigInteger, Integer, Enum as SAEnum
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, mapped_column
from sqlalchemy.pool import NullPool

from core.config import settings


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


def enum_column(enum_class, **kwargs):
    """String column storing enum values (not names)."""
    return mapped_column(
        SAEnum(
            enum_class,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        **kwargs
    )


def _engine_kwargs() -> Dict[str, Any]:
    """Engine options for the configured backend."""
    kwargs: Dict[str, Any] = {"echo": settings.debug}
    if settings.is_sqlite:
        return kwargs
    if settings.debug:
        kwargs["poolclass"] = NullPool
    else:
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["max_overflow"] = settings.database_max_overflow
    return kwargs


# Create async engine
engine = create_async_engine(settings.database_url, **_engine_kwargs())

# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


class DBSession:
    """Context manager wrapper for get_db()."""

    def __init__(self):
        self._gen = None
        self._session = None

    async def __aenter__(self) -> AsyncSession:
        self._gen = get_db()
        self._session = await self._gen.__anext__()
        return self._session

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if not self._gen:
            return False
        if exc_type is not None:
            # Let get_db roll back, then re-raise the original error
            try:
                await self._gen.athrow(exc_val)
            except exc_type:
                pass
            return False
        try:
            await self._gen.__anext__()
        except StopAsyncIteration:
            pass
        return False


async def init_db():
    """Initialize database - create all tables."""
    # Register models on the metadata
    import database.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connections."""
    await engine.dispose()
