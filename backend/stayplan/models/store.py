"""Key-value persistence models for local slots and the shared remote record."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stayplan.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocalEntry(Base):
    """One persisted planning slot; ``value`` holds the JSON text."""

    __tablename__ = "local_entry"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class RemoteSnapshot(Base):
    """The single shared record uploaded by the sync coordinator."""

    __tablename__ = "remote_snapshot"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
