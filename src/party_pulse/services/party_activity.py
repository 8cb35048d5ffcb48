"""Recording of party activity: guests, comments, media, reactions and drinks.

These rows are the inputs of the heat score. Comments, media and drinks also
show up in the party's activity feed; the feed item is written in the same
transaction as the row it describes.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from party_pulse.core.errors import ConflictError, NotFoundError, ValidationError
from party_pulse.core.settings import Settings, settings as default_settings
from party_pulse.db.session import PartyStore
from party_pulse.db.time import utcnow
from party_pulse.models import (
    DrinkLog,
    Party,
    PartyComment,
    PartyGuest,
    PartyMedia,
    PartyReaction,
)
from party_pulse.models.party import GUEST_STATUSES, MEDIA_TYPES
from party_pulse.repositories.party_repo import PartyRepository
from party_pulse.schemas.feed import (
    CommentPayload,
    DrinkPayload,
    FeedItem,
    FeedPayload,
    MediaPayload,
)
from party_pulse.schemas.party import (
    CommentOut,
    DrinkOut,
    GuestOut,
    MediaOut,
    PartyOut,
    ReactionOut,
)
from party_pulse.services.feed_composer import FeedComposer

logger = logging.getLogger(__name__)


def _require(value: str | None, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value


class PartyActivity:
    """Writes and lists the activity rows of a party."""

    def __init__(
        self,
        store: PartyStore,
        feed: FeedComposer | None = None,
        *,
        config: Settings | None = None,
    ) -> None:
        self.store = store
        self.feed = feed
        self.config = config or default_settings

    # --- Parties -------------------------------------------------------------------
    def create_party(self, title: str, created_by: str) -> PartyOut:
        _require(title, "title")
        _require(created_by, "created_by")
        with self.store.session() as db:
            party = Party(title=title.strip(), created_by=created_by)
            db.add(party)
            db.flush()
            logger.info("Created party %s (%s) by %s", party.id, party.title, created_by)
            return PartyOut.model_validate(party)

    def get_party(self, party_id: str) -> PartyOut:
        with self.store.read_session() as db:
            party = PartyRepository(db).get_by_id(party_id)
            if party is None:
                raise NotFoundError("Party", party_id)
            return PartyOut.model_validate(party)

    def end_party(self, party_id: str) -> PartyOut:
        """Mark a party inactive; it drops out of the hottest ranking."""
        with self.store.session() as db:
            party = self._require_party(db, party_id)
            if party.is_active:
                party.is_active = False
                party.ended_at = utcnow()
                logger.info("Party %s ended", party_id)
            return PartyOut.model_validate(party)

    # --- Guests --------------------------------------------------------------------
    def invite_guest(self, party_id: str, user_id: str) -> GuestOut:
        """Invite a user; the invitation starts out pending.

        Raises:
            NotFoundError: If the party does not exist.
            ConflictError: If the user is already on the guest list.
        """
        _require(user_id, "user_id")
        try:
            with self.store.session() as db:
                self._require_party(db, party_id)
                guest = PartyGuest(party_id=party_id, user_id=user_id)
                db.add(guest)
                db.flush()
                return GuestOut.model_validate(guest)
        except IntegrityError as exc:
            raise ConflictError(f"User {user_id} is already invited to party {party_id}") from exc

    def respond_guest(self, party_id: str, user_id: str, status: str) -> GuestOut:
        if status not in GUEST_STATUSES:
            raise ValidationError(f"Unknown guest status: {status!r}", field="status")
        with self.store.session() as db:
            guest = db.execute(
                select(PartyGuest).where(
                    PartyGuest.party_id == party_id, PartyGuest.user_id == user_id
                )
            ).scalar_one_or_none()
            if guest is None:
                raise NotFoundError("Guest", f"{party_id}/{user_id}")
            guest.status = status
            guest.responded_at = utcnow()
            logger.debug("Guest %s in party %s is now %s", user_id, party_id, status)
            return GuestOut.model_validate(guest)

    def list_guests(self, party_id: str) -> list[GuestOut]:
        with self.store.read_session() as db:
            return [GuestOut.model_validate(g) for g in PartyRepository(db).list_guests(party_id)]

    # --- Comments and media --------------------------------------------------------
    def add_comment(
        self,
        party_id: str,
        user_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> CommentOut:
        _require(user_id, "user_id")
        _require(content, "content")
        with self.store.session() as db:
            self._require_party(db, party_id)
            if parent_id is not None:
                parent = db.get(PartyComment, parent_id)
                if parent is None or parent.party_id != party_id:
                    raise NotFoundError("Comment", parent_id)
            comment = PartyComment(
                party_id=party_id, user_id=user_id, content=content, parent_id=parent_id
            )
            db.add(comment)
            db.flush()
            self._emit(
                db,
                party_id,
                comment.created_at,
                CommentPayload(
                    user_id=user_id,
                    comment_id=comment.id,
                    content=content,
                    parent_id=parent_id,
                ),
            )
            return CommentOut.model_validate(comment)

    def list_comments(self, party_id: str, limit: int = 100) -> list[CommentOut]:
        with self.store.read_session() as db:
            rows = PartyRepository(db).list_comments(party_id, limit)
            return [CommentOut.model_validate(c) for c in rows]

    def add_media(
        self,
        party_id: str,
        user_id: str,
        media_type: str,
        url: str,
        caption: str | None = None,
    ) -> MediaOut:
        """Record a photo or video that was uploaded elsewhere."""
        _require(user_id, "user_id")
        _require(url, "url")
        if media_type not in MEDIA_TYPES:
            raise ValidationError(f"Unknown media type: {media_type!r}", field="media_type")
        with self.store.session() as db:
            self._require_party(db, party_id)
            media = PartyMedia(
                party_id=party_id,
                user_id=user_id,
                media_type=media_type,
                url=url,
                caption=caption,
            )
            db.add(media)
            db.flush()
            self._emit(
                db,
                party_id,
                media.created_at,
                MediaPayload(
                    user_id=user_id,
                    media_id=media.id,
                    media_type=media_type,
                    url=url,
                    caption=caption,
                ),
            )
            return MediaOut.model_validate(media)

    def list_media(self, party_id: str, limit: int = 100) -> list[MediaOut]:
        with self.store.read_session() as db:
            return [MediaOut.model_validate(m) for m in PartyRepository(db).list_media(party_id, limit)]

    # --- Reactions and drinks ------------------------------------------------------
    def add_reaction(
        self,
        party_id: str,
        user_id: str,
        target_type: str,
        target_id: str,
        emoji: str,
    ) -> ReactionOut:
        _require(user_id, "user_id")
        _require(target_type, "target_type")
        _require(target_id, "target_id")
        _require(emoji, "emoji")
        with self.store.session() as db:
            self._require_party(db, party_id)
            reaction = PartyReaction(
                party_id=party_id,
                user_id=user_id,
                target_type=target_type,
                target_id=target_id,
                emoji=emoji,
            )
            db.add(reaction)
            db.flush()
            return ReactionOut.model_validate(reaction)

    def reaction_counts(self, target_type: str, target_id: str) -> dict[str, int]:
        with self.store.read_session() as db:
            return PartyRepository(db).reaction_counts(target_type, target_id)

    def log_drink(
        self,
        party_id: str,
        user_id: str,
        drink_type: str,
        custom_name: str | None = None,
    ) -> DrinkOut:
        _require(user_id, "user_id")
        _require(drink_type, "drink_type")
        with self.store.session() as db:
            self._require_party(db, party_id)
            drink = DrinkLog(
                party_id=party_id,
                user_id=user_id,
                drink_type=drink_type,
                custom_name=custom_name,
            )
            db.add(drink)
            db.flush()
            self._emit(
                db,
                party_id,
                drink.logged_at,
                DrinkPayload(
                    user_id=user_id,
                    drink_id=drink.id,
                    drink_type=drink_type,
                    custom_name=custom_name,
                ),
            )
            return DrinkOut.model_validate(drink)

    def drink_stats(self, party_id: str, user_id: str | None = None) -> dict[str, int]:
        """Count drinks per drink type, optionally for one guest only."""
        stmt = select(DrinkLog.drink_type, func.count()).where(DrinkLog.party_id == party_id)
        if user_id is not None:
            stmt = stmt.where(DrinkLog.user_id == user_id)
        stmt = stmt.group_by(DrinkLog.drink_type)
        with self.store.read_session() as db:
            return {drink_type: int(count) for drink_type, count in db.execute(stmt).all()}

    # --- Internals -----------------------------------------------------------------
    @staticmethod
    def _require_party(db: Session, party_id: str) -> Party:
        party = db.get(Party, party_id)
        if party is None:
            raise NotFoundError("Party", party_id)
        return party

    def _emit(
        self, db: Session, party_id: str, timestamp: datetime, payload: FeedPayload
    ) -> None:
        if self.feed is None:
            return
        self.feed.record(db, FeedItem(party_id=party_id, timestamp=timestamp, payload=payload))
