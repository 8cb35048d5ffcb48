# src/party_pulse/models/subject.py
"""Models for votable subjects: poll options and song requests."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from party_pulse.db.session import Base
from party_pulse.db.time import utcnow
from party_pulse.models.party import new_id

SUBJECT_KIND_POLL_OPTION = "poll_option"
SUBJECT_KIND_SONG = "song"

SUBJECT_STATUS_OPEN = "open"
SUBJECT_STATUS_CLOSED = "closed"
SUBJECT_STATUS_PLAYING = "playing"
SUBJECT_STATUS_PLAYED = "played"
SUBJECT_STATUS_REJECTED = "rejected"

SUBJECT_STATUSES = (
    SUBJECT_STATUS_OPEN,
    SUBJECT_STATUS_CLOSED,
    SUBJECT_STATUS_PLAYING,
    SUBJECT_STATUS_PLAYED,
    SUBJECT_STATUS_REJECTED,
)

# Statuses whose tallies are frozen.
FROZEN_STATUSES = frozenset(
    {SUBJECT_STATUS_CLOSED, SUBJECT_STATUS_PLAYED, SUBJECT_STATUS_REJECTED}
)

POLL_TYPES = ("party_mvp", "best_dressed", "best_moment", "custom")


class Poll(Base):
    """A party poll; its options are ``VoteSubject`` rows with ``poll_id`` set."""

    __tablename__ = "poll"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    poll_type: Mapped[str] = mapped_column(String(16), nullable=False, default="custom")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class VoteSubject(Base):
    """Anything that can be up- or down-voted.

    ``upvotes``/``downvotes`` are the materialized counters; the ``version``
    column makes every counter update a compare-and-swap against the row.
    """

    __tablename__ = "vote_subject"
    __table_args__ = (
        CheckConstraint("kind IN ('poll_option', 'song')", name="ck_vote_subject_kind"),
        CheckConstraint(
            "status IN ('open', 'closed', 'playing', 'played', 'rejected')",
            name="ck_vote_subject_status",
        ),
        CheckConstraint("upvotes >= 0 AND downvotes >= 0", name="ck_vote_subject_counts"),
        Index("ix_vote_subject_party_kind", "party_id", "kind"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    party_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("party.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SUBJECT_STATUS_OPEN
    )
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Poll options only.
    poll_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("poll.id", ondelete="CASCADE"), nullable=True, index=True
    )
    option_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Song requests only.
    requested_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    artist: Mapped[str | None] = mapped_column(Text, nullable=True)
    spotify_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    played_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def tally(self) -> int:
        """Net tally: upvotes minus downvotes."""
        return self.upvotes - self.downvotes

    @property
    def accepts_votes(self) -> bool:
        return self.status not in FROZEN_STATUSES
