"""Data access helpers for party reads."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from party_pulse.models import (
    Party,
    PartyComment,
    PartyGuest,
    PartyMedia,
    PartyReaction,
    PartyStatus,
)
from party_pulse.schemas.score import EngagementInputs
from party_pulse.schemas.status import StatusType

__all__ = ["PartyRepository"]


class PartyRepository:
    """Thin wrapper around database access for party entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, party_id: str) -> Party | None:
        """Return a party by identifier."""
        return self.session.get(Party, party_id)

    def list_active(self, limit: int) -> list[Party]:
        """Return active parties, oldest first."""
        result = self.session.execute(
            select(Party)
            .where(Party.is_active.is_(True))
            .order_by(Party.created_at.asc(), Party.id.asc())
            .limit(limit)
        )
        return list(result.scalars())

    def engagement_inputs(self, party_id: str) -> EngagementInputs:
        """Read all six score inputs in a single statement.

        Each count is a scalar subquery of the same SELECT, so the database
        evaluates them against one snapshot and the total cannot tear.
        """
        guests = (
            select(func.count())
            .select_from(PartyGuest)
            .where(PartyGuest.party_id == party_id, PartyGuest.status == "accepted")
            .scalar_subquery()
        )
        media = (
            select(func.count())
            .select_from(PartyMedia)
            .where(PartyMedia.party_id == party_id)
            .scalar_subquery()
        )
        comments = (
            select(func.count())
            .select_from(PartyComment)
            .where(PartyComment.party_id == party_id)
            .scalar_subquery()
        )
        statuses = (
            select(func.count())
            .select_from(PartyStatus)
            .where(PartyStatus.party_id == party_id)
            .scalar_subquery()
        )
        reactions = (
            select(func.count())
            .select_from(PartyReaction)
            .where(PartyReaction.party_id == party_id)
            .scalar_subquery()
        )
        avg_vibe = (
            select(func.avg(PartyStatus.level))
            .where(
                PartyStatus.party_id == party_id,
                PartyStatus.status_type == StatusType.VIBE_CHECK.value,
            )
            .scalar_subquery()
        )
        row = self.session.execute(
            select(
                guests.label("guest_count"),
                media.label("media_count"),
                comments.label("comment_count"),
                statuses.label("status_count"),
                reactions.label("reaction_count"),
                avg_vibe.label("avg_vibe_level"),
            )
        ).one()
        return EngagementInputs(
            guest_count=int(row.guest_count or 0),
            media_count=int(row.media_count or 0),
            comment_count=int(row.comment_count or 0),
            status_count=int(row.status_count or 0),
            reaction_count=int(row.reaction_count or 0),
            avg_vibe_level=float(row.avg_vibe_level or 0.0),
        )

    def list_guests(self, party_id: str) -> list[PartyGuest]:
        """Return guests sorted by most recent invitation."""
        result = self.session.execute(
            select(PartyGuest)
            .where(PartyGuest.party_id == party_id)
            .order_by(PartyGuest.invited_at.desc(), PartyGuest.id.desc())
        )
        return list(result.scalars())

    def list_media(self, party_id: str, limit: int) -> list[PartyMedia]:
        """Return the newest media for a party."""
        result = self.session.execute(
            select(PartyMedia)
            .where(PartyMedia.party_id == party_id)
            .order_by(PartyMedia.created_at.desc(), PartyMedia.id.desc())
            .limit(limit)
        )
        return list(result.scalars())

    def list_comments(self, party_id: str, limit: int) -> list[PartyComment]:
        """Return the newest comments for a party."""
        result = self.session.execute(
            select(PartyComment)
            .where(PartyComment.party_id == party_id)
            .order_by(PartyComment.created_at.desc(), PartyComment.id.desc())
            .limit(limit)
        )
        return list(result.scalars())

    def reaction_counts(self, target_type: str, target_id: str) -> dict[str, int]:
        """Return reaction counts per emoji for one target."""
        result = self.session.execute(
            select(PartyReaction.emoji, func.count())
            .where(
                PartyReaction.target_type == target_type,
                PartyReaction.target_id == target_id,
            )
            .group_by(PartyReaction.emoji)
        )
        return {emoji: int(count) for emoji, count in result.all()}
