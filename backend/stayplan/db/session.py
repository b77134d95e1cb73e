"""Database engine and session utilities for the shared remote record."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from stayplan.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def get_engine(url: str) -> AsyncEngine:
    """Return a cached async engine for ``url``."""

    return create_async_engine(url, echo=False, future=True)


def get_session_factory(url: str) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=get_engine(url), expire_on_commit=False, class_=AsyncSession)


async def get_store_session() -> AsyncIterator[AsyncSession | None]:
    """Yield a session on the remote record database, or ``None`` when unconfigured.

    A failing schema check does not abort the request: the route's own
    queries then fail and report the error in its JSON body.
    """

    from stayplan.db.init import init_store_database

    url = get_settings().store_database_url
    if not url:
        yield None
        return
    try:
        await init_store_database(url)
    except SQLAlchemyError as exc:
        logger.warning("Remote store schema unavailable: %s", exc)
    async with get_session_factory(url)() as session:
        yield session


__all__ = ["get_engine", "get_session_factory", "get_store_session"]
