import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from src.config import settings
from src.hierarchies.exceptions import StoreError

logger = logging.getLogger(__name__)

engine = create_async_engine(str(settings.SQLALCHEMY_DATABASE_URI), echo=False)
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()

# Dependency
async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(db: AsyncSession, action: str) -> AsyncIterator[AsyncSession]:
    """
    Run a multi-statement operation as one unit of work.

    Commits when the block exits cleanly and rolls back on any exception.
    Store failures surface as StoreError chained to the driver error;
    domain errors raised inside the block propagate unchanged.
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Store failure during %s: %s", action, e)
        raise StoreError(f"Store failure during {action}") from e
    except BaseException:
        await db.rollback()
        raise
