import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from boba_shop.config import settings
from boba_shop.errors import StorageFailure

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.database_url, echo=False)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as db:
        yield db


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Unit of work over an existing session: commits when the block exits
    cleanly, rolls back on any exception. Storage errors surface as
    StorageFailure so callers never see a half-written object graph.
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as exc:
        try:
            await db.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed after storage error", exc_info=True)
        raise StorageFailure(str(exc)) from exc
    except BaseException:
        await db.rollback()
        raise
