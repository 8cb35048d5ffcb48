# src/party_pulse/models/vote.py
"""Models capturing votes on poll options and song requests."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from party_pulse.db.session import Base
from party_pulse.db.time import utcnow


class SubjectVote(Base):
    """A voter's current vote on a subject.

    Only the current direction is kept; a retraction deletes the row.
    """

    __tablename__ = "subject_vote"
    __table_args__ = (
        CheckConstraint("direction IN (1, -1)", name="ck_subject_vote_direction"),
        Index("ix_subject_vote_subject_id", "subject_id"),
    )

    subject_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vote_subject.id", ondelete="CASCADE"),
        primary_key=True,
    )

    voter_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Composite primary key prevents duplicate votes from the same voter.

    # 1 = upvote, -1 = downvote.
    direction: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
