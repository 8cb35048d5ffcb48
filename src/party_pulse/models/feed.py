# src/party_pulse/models/feed.py
"""Append-only activity feed log."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from party_pulse.db.session import Base


class FeedEntry(Base):
    """One immutable feed item.

    Rows are only ever inserted. Pages are read in ``(timestamp, id)``
    descending order, which the composite index serves directly.
    """

    __tablename__ = "feed_entry"
    __table_args__ = (
        Index("ix_feed_entry_party_order", "party_id", "timestamp", "id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
