"""Database schema initialization helpers."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from stayplan.db.session import get_engine
from stayplan.models import RemoteSnapshot

logger = logging.getLogger(__name__)

_INITIALISED_URLS: set[str] = set()


async def init_store_database(url: str) -> None:
    """Ensure the remote snapshot table exists on the database at ``url``."""

    if url in _INITIALISED_URLS:
        return
    try:
        async with get_engine(url).begin() as conn:
            await conn.run_sync(RemoteSnapshot.__table__.create, checkfirst=True)
    except SQLAlchemyError:
        logger.exception("Failed to initialise remote store schema")
        raise
    _INITIALISED_URLS.add(url)


__all__ = ["init_store_database"]
