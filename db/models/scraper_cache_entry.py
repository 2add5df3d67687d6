"""
db/models/scraper_cache_entry.py

Persisted registry search results, one row per canonical query signature.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ScraperCacheEntry(Base, TimestampMixin):
    __tablename__ = "scraper_cache_entries"

    key: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="SHA-256 of jurisdiction, normalized query and options",
    )
    source: Mapped[str] = mapped_column(String(8), nullable=False)
    query: Mapped[str] = mapped_column(String(200), nullable=False)
    entities_json: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
    )
    total_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_scraper_cache_entries_source", "source"),
        Index("ix_scraper_cache_entries_expires_at", "expires_at"),
    )
