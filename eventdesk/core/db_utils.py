from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def db_transaction(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Commit on success; roll back and re-raise on any failure.

    Failed writes are surfaced to the caller, never retried.
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


class DatabaseHealthCheck:
    @staticmethod
    async def check_connection(db: AsyncSession) -> bool:
        try:
            await db.execute(text("SELECT 1"))
            return True
        except Exception:
            return False
