"""Request and response bodies of the shared ``/store`` record."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class StoreSaveResponse(BaseModel):
    success: bool = True
    timestamp: datetime


class StoreClearResponse(BaseModel):
    success: bool = True
    message: str = "Database cleared"


class StoreErrorResponse(BaseModel):
    error: str
    details: str | None = None


__all__ = ["StoreClearResponse", "StoreErrorResponse", "StoreSaveResponse"]
