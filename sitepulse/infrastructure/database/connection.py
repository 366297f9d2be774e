"""
TimescaleDB connection management.

Provides async SQLAlchemy engine and session management for telemetry,
rollup and site data.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ...config import DatabaseSettings, get_settings


# Naming convention for database constraints
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    metadata = metadata


class DatabaseManager:
    """
    Manages TimescaleDB connections and sessions.

    Sessions are opened per request or per job run; bucket writes inside
    one session are committed together at the end of the scope.
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def get_engine(cls, db_settings: Optional[DatabaseSettings] = None) -> AsyncEngine:
        """Get or create the async database engine."""
        if cls._engine is None:
            db_settings = db_settings or get_settings().database
            cls._engine = create_async_engine(
                db_settings.url,
                echo=db_settings.echo_sql,
                pool_size=db_settings.pool_size,
                max_overflow=db_settings.max_overflow,
                pool_pre_ping=True,
                pool_recycle=3600,
            )

            @event.listens_for(cls._engine.sync_engine, "connect")
            def set_timezone(dbapi_conn, connection_record):
                """Bucket boundaries are computed in UTC."""
                cursor = dbapi_conn.cursor()
                cursor.execute("SET timezone = 'UTC'")
                cursor.close()

        return cls._engine

    @classmethod
    def get_session_factory(cls) -> async_sessionmaker[AsyncSession]:
        """Get or create the async session factory."""
        if cls._session_factory is None:
            cls._session_factory = async_sessionmaker(
                bind=cls.get_engine(),
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return cls._session_factory

    @classmethod
    async def close(cls) -> None:
        """Close the database engine and all connections."""
        if cls._engine is not None:
            await cls._engine.dispose()
            cls._engine = None
            cls._session_factory = None


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a transactional scope around a series of operations.
    """
    session_factory = DatabaseManager.get_session_factory()
    session = session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
