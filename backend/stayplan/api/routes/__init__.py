"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .store import router as store_router

api_router = APIRouter()
api_router.include_router(store_router, prefix="/store", tags=["store"])

__all__ = ["api_router"]
