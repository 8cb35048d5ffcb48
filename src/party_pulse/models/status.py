# src/party_pulse/models/status.py
"""Model for leveled status updates (drunk meter, vibe check...)."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from party_pulse.db.session import Base
from party_pulse.db.time import utcnow


class PartyStatus(Base):
    """The live status of one user for one status type within a party.

    The composite primary key enforces "latest wins": posting again updates
    this row instead of adding another.
    """

    __tablename__ = "party_status"
    __table_args__ = (
        CheckConstraint("level BETWEEN 1 AND 5", name="ck_party_status_level"),
    )

    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    status_type: Mapped[str] = mapped_column(String(16), primary_key=True)

    level: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    emoji: Mapped[str | None] = mapped_column(String(16), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
