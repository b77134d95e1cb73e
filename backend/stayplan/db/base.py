"""SQLAlchemy base metadata and declarative registry."""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base shared by the local slot and remote snapshot tables."""

    pass
