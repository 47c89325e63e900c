"""SQLAlchemy models and shared enumerations for FridgeSmart."""

from __future__ import annotations

import os
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base shared by all tables."""


class StoredBlob(Base):
    """A serialized value kept under a fixed storage key."""

    __tablename__ = "storage_blobs"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ItemCategory(str, Enum):
    """Supported inventory categories, in display order."""

    PRODUCE = "Produce"
    DAIRY = "Dairy"
    MEAT = "Meat"
    GRAINS = "Grains"
    CONDIMENTS = "Condiments"
    FROZEN = "Frozen"
    BEVERAGES = "Beverages"
    SNACKS = "Snacks"
    OTHER = "Other"

    @classmethod
    def values(cls) -> list[str]:
        return [entry.value for entry in cls]


def get_database_url() -> str:
    """Return the configured DATABASE_URL."""

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL environment variable is not set")

    # Normalize common Postgres URL forms to the installed psycopg v3 driver.
    if database_url.startswith("postgres://"):
        return "postgresql+psycopg://" + database_url[len("postgres://") :]
    if database_url.startswith("postgresql://"):
        return "postgresql+psycopg://" + database_url[len("postgresql://") :]
    if database_url.startswith("postgresql+psycopg2://"):
        return (
            "postgresql+psycopg://"
            + database_url[len("postgresql+psycopg2://") :]
        )

    return database_url
