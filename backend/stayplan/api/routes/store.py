"""Shared remote record used by the sync coordinator."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stayplan.config import get_settings
from stayplan.db.session import get_store_session
from stayplan.models import RemoteSnapshot
from stayplan.schemas.store import StoreClearResponse, StoreErrorResponse, StoreSaveResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = StoreErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _configuration_missing() -> JSONResponse:
    logger.error("Remote store requested but STORE_DATABASE_URL is not configured")
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Database configuration missing",
        "STORE_DATABASE_URL is not set",
    )


@router.get("", response_model=dict[str, Any])
async def load_store(session: AsyncSession | None = Depends(get_store_session)) -> Any:
    """Return the stored snapshot, or an empty object when nothing was saved."""

    if session is None:
        return _configuration_missing()
    try:
        record = await session.get(RemoteSnapshot, get_settings().store_record_key)
    except SQLAlchemyError as exc:
        logger.exception("Failed to read remote snapshot")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    return record.payload if record is not None and record.payload else {}


@router.post("", response_model=StoreSaveResponse)
async def save_store(request: Request, session: AsyncSession | None = Depends(get_store_session)) -> Any:
    """Replace the stored snapshot with the request body."""

    if session is None:
        return _configuration_missing()
    try:
        data = await request.json()
    except ValueError:
        data = None
    if not data and data != {}:
        return _error(status.HTTP_400_BAD_REQUEST, "No data provided")
    if not isinstance(data, dict):
        return _error(status.HTTP_400_BAD_REQUEST, "Snapshot must be a JSON object")

    key = get_settings().store_record_key
    try:
        record = await session.get(RemoteSnapshot, key)
        if record is None:
            session.add(RemoteSnapshot(key=key, payload=data))
        else:
            record.payload = data
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to save remote snapshot")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    logger.info("Saved remote snapshot with %d keys", len(data))
    return StoreSaveResponse(timestamp=datetime.now(timezone.utc))


@router.delete("", response_model=StoreClearResponse)
async def clear_store(session: AsyncSession | None = Depends(get_store_session)) -> Any:
    if session is None:
        return _configuration_missing()
    try:
        await session.execute(delete(RemoteSnapshot).where(RemoteSnapshot.key == get_settings().store_record_key))
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to clear remote snapshot")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    return StoreClearResponse()


__all__ = ["router"]
