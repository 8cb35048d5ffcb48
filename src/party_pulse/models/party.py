# src/party_pulse/models/party.py
"""SQLAlchemy models for parties and the activity that feeds their heat score."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from party_pulse.db.session import Base
from party_pulse.db.time import utcnow

GUEST_STATUSES = ("pending", "accepted", "declined", "maybe")
MEDIA_TYPES = ("photo", "video")


def new_id() -> str:
    return str(uuid4())


class Party(Base):
    """A live social event; everything else hangs off ``party.id``."""

    __tablename__ = "party"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PartyGuest(Base):
    """Invitation/RSVP row; only accepted guests count toward the heat score."""

    __tablename__ = "party_guest"
    __table_args__ = (
        UniqueConstraint("party_id", "user_id", name="uq_party_guest_party_user"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'maybe')",
            name="ck_party_guest_status",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PartyMedia(Base):
    """Photo or video shared in a party; upload happens elsewhere, only the URL is kept."""

    __tablename__ = "party_media"
    __table_args__ = (Index("ix_party_media_party_created", "party_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    media_type: Mapped[str] = mapped_column(String(8), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PartyComment(Base):
    """Chat comment on a party."""

    __tablename__ = "party_comment"
    __table_args__ = (Index("ix_party_comment_party_created", "party_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Replies point at their parent; top-level comments have parent_id = NULL.
    parent_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PartyReaction(Base):
    """Emoji reaction on a party moment (media, comment, status...)."""

    __tablename__ = "party_reaction"
    __table_args__ = (Index("ix_party_reaction_target", "target_type", "target_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    target_type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    emoji: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class DrinkLog(Base):
    """A drink logged by a guest."""

    __tablename__ = "drink_log"
    __table_args__ = (Index("ix_drink_log_party_logged", "party_id", "logged_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    drink_type: Mapped[str] = mapped_column(String(32), nullable=False)
    custom_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    logged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
