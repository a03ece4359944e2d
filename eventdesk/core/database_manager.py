"""
Database engine and session management.

SQLite is serialized at the database level: the driver's implicit BEGIN is
disabled and every transaction opens with ``BEGIN IMMEDIATE``, so only one
writer holds the store at a time. PostgreSQL relies on row locks taken by the
repositories (``SELECT ... FOR UPDATE`` on the event row).
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import DisconnectionError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, QueuePool, StaticPool

from ..database import Base
from .settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class DatabaseManager:
    """Owns the async engine, the session factory and schema creation"""

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = self._prepare_database_url(
            database_url or settings.database.DATABASE_URL
        )
        self.engine: AsyncEngine = create_async_engine(
            self.database_url, **self._get_engine_kwargs(self.database_url)
        )
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self._setup_event_listeners()

        logger.info(
            "Database engine initialized with URL: %s",
            self._mask_url(self.database_url),
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @staticmethod
    def _prepare_database_url(raw_url: str) -> str:
        """Prepare database URL with appropriate async driver"""
        if raw_url.startswith("postgresql://"):
            return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if raw_url.startswith("sqlite://"):
            return raw_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return raw_url

    def _get_engine_kwargs(self, db_url: str) -> Dict[str, Any]:
        """Get engine configuration based on database type"""
        base_kwargs: Dict[str, Any] = {"echo": settings.database.DB_ECHO}

        if db_url.startswith("sqlite"):
            base_kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": settings.database.DB_SQLITE_BUSY_TIMEOUT,
            }
            # An in-memory database only exists on its one connection
            base_kwargs["poolclass"] = StaticPool if ":memory:" in db_url else NullPool
        else:
            base_kwargs.update(
                {
                    "poolclass": QueuePool,
                    "pool_size": settings.database.DB_POOL_SIZE,
                    "max_overflow": settings.database.DB_MAX_OVERFLOW,
                    "pool_timeout": settings.database.DB_POOL_TIMEOUT,
                    "pool_recycle": settings.database.DB_POOL_RECYCLE,
                    "pool_pre_ping": settings.database.DB_POOL_PRE_PING,
                    "connect_args": {
                        "server_settings": {
                            "application_name": f"{settings.PROJECT_NAME}_app"
                        }
                    },
                }
            )

        return base_kwargs

    def _setup_event_listeners(self) -> None:
        """Setup database event listeners for locking and monitoring"""
        sync_engine = self.engine.sync_engine

        if self.is_sqlite:

            @event.listens_for(sync_engine, "connect")
            def configure_sqlite_connection(
                dbapi_connection: Any, connection_record: Any
            ) -> None:
                # Stop the driver from emitting its own deferred BEGIN
                dbapi_connection.isolation_level = None
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            @event.listens_for(sync_engine, "begin")
            def begin_immediate(conn: Any) -> None:
                conn.exec_driver_sql("BEGIN IMMEDIATE")

        @event.listens_for(sync_engine, "checkout")
        def receive_checkout(
            dbapi_connection: Any, connection_record: Any, connection_proxy: Any
        ) -> None:
            connection_record.info["checkout_time"] = time.time()

        @event.listens_for(sync_engine, "checkin")
        def receive_checkin(dbapi_connection: Any, connection_record: Any) -> None:
            checkout_time = connection_record.info.pop("checkout_time", None)
            if checkout_time is not None:
                checkout_duration = time.time() - checkout_time
                if checkout_duration > 30:
                    logger.warning(
                        "Long-running database connection: %.2fs", checkout_duration
                    )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session; commits on success, rolls back on error"""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        # Importing the models registers their tables on Base.metadata
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> dict[str, Any]:
        """Database connectivity check"""
        try:
            start_time = time.time()
            async with self.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                if result.scalar() != 1:
                    return {"status": "error", "message": "Health check query failed"}

            return {
                "status": "healthy",
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
                "database_url": self._mask_url(self.database_url),
            }
        except DisconnectionError as e:
            logger.error("Database disconnection error: %s", e)
            return {"status": "error", "message": "Database disconnected"}
        except SQLAlchemyError as e:
            logger.error("Database health check failed: %s", e)
            return {"status": "error", "message": "Database unavailable"}

    async def close(self) -> None:
        """Close database engine and all connections"""
        await self.engine.dispose()
        logger.info("Database engine closed")

    @staticmethod
    def _mask_url(url: str) -> str:
        """Mask the password in a database URL"""
        if "@" in url:
            auth_part, host_part = url.rsplit("@", 1)
            if auth_part.count(":") >= 2:
                protocol_user = auth_part.rsplit(":", 1)[0]
                return f"{protocol_user}:***@{host_part}"
        return url


# Global database manager instance
db_manager = DatabaseManager()
