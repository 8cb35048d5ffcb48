"""Status tracker: latest-wins leveled statuses per (party, user, type)."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from party_pulse.core.errors import ConflictError, NotFoundError, ValidationError
from party_pulse.core.locks import KeyedLocks
from party_pulse.core.settings import Settings, settings as default_settings
from party_pulse.db.session import PartyStore
from party_pulse.db.time import utcnow
from party_pulse.models import Party, PartyStatus
from party_pulse.schemas.feed import FeedItem, StatusPayload
from party_pulse.schemas.status import MAX_LEVEL, MIN_LEVEL, StatusRecord, StatusType
from party_pulse.services.feed_composer import FeedComposer

logger = logging.getLogger(__name__)

_StatusKey = tuple[str, str, str]


def _coerce_type(status_type: StatusType | str) -> StatusType:
    try:
        return StatusType(status_type)
    except ValueError as exc:
        raise ValidationError(f"Unknown status type: {status_type!r}", field="status_type") from exc


class StatusTracker:
    """Keeps exactly one live status per (party, user, status type).

    Posting again replaces the previous record. Writes for one key are
    serialized in-process; a concurrent insert from another process is
    absorbed by retrying the upsert as an update.
    """

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
        self._locks = KeyedLocks()

    def post_status(
        self,
        party_id: str,
        user_id: str,
        status_type: StatusType | str,
        level: int,
        message: str | None = None,
        emoji: str | None = None,
    ) -> StatusRecord:
        """Create or replace the user's status of ``status_type``.

        Args:
            party_id: Party the status belongs to.
            user_id: Author of the status.
            status_type: One of the ``StatusType`` values.
            level: Intensity, 1 through 5.
            message: Optional free text.
            emoji: Optional emoji shown next to the status.

        Returns:
            The stored record.

        Raises:
            ValidationError: On an empty id, unknown type, or a level that is not
                an integer from 1 to 5.
            NotFoundError: If the party does not exist.
        """
        if not party_id:
            raise ValidationError("party_id is required", field="party_id")
        if not user_id:
            raise ValidationError("user_id is required", field="user_id")
        kind = _coerce_type(status_type)
        if (
            not isinstance(level, int)
            or isinstance(level, bool)
            or not MIN_LEVEL <= level <= MAX_LEVEL
        ):
            raise ValidationError(
                f"level must be an integer from {MIN_LEVEL} to {MAX_LEVEL}, got {level!r}",
                field="level",
            )

        key = (party_id, user_id, kind.value)
        with self._locks.hold(key):
            try:
                record = self._upsert(key, level, message, emoji)
            except IntegrityError:
                logger.info("Concurrent insert for status %s; retrying as update", key)
                try:
                    record = self._upsert(key, level, message, emoji)
                except IntegrityError as exc:
                    raise ConflictError(f"Could not store status {key}", attempts=2) from exc

        logger.debug("Status %s for %s in %s set to %d", kind.value, user_id, party_id, level)
        return record

    def get_status(self, party_id: str, user_id: str, status_type: StatusType | str) -> StatusRecord:
        kind = _coerce_type(status_type)
        with self.store.read_session() as db:
            row = db.get(PartyStatus, (party_id, user_id, kind.value))
            if row is None:
                raise NotFoundError("Status", f"{party_id}/{user_id}/{kind.value}")
            return StatusRecord.model_validate(row)

    def latest_statuses(self, party_id: str) -> list[StatusRecord]:
        """Return every live status in the party, most recently updated first."""
        stmt = (
            select(PartyStatus)
            .where(PartyStatus.party_id == party_id)
            .order_by(PartyStatus.updated_at.desc(), PartyStatus.user_id, PartyStatus.status_type)
        )
        with self.store.read_session() as db:
            return [StatusRecord.model_validate(row) for row in db.execute(stmt).scalars()]

    def live_count(self, party_id: str, status_type: StatusType | str | None = None) -> int:
        stmt = select(func.count()).select_from(PartyStatus).where(PartyStatus.party_id == party_id)
        if status_type is not None:
            stmt = stmt.where(PartyStatus.status_type == _coerce_type(status_type).value)
        with self.store.read_session() as db:
            return int(db.execute(stmt).scalar_one())

    def mean_level(self, party_id: str, status_type: StatusType | str) -> float:
        """Mean level over live statuses of one type; 0.0 when there are none."""
        stmt = select(func.avg(PartyStatus.level)).where(
            PartyStatus.party_id == party_id,
            PartyStatus.status_type == _coerce_type(status_type).value,
        )
        with self.store.read_session() as db:
            value = db.execute(stmt).scalar_one_or_none()
        return float(value) if value is not None else 0.0

    def _upsert(
        self, key: _StatusKey, level: int, message: str | None, emoji: str | None
    ) -> StatusRecord:
        now = utcnow()
        party_id, user_id, status_type = key
        with self.store.session() as db:
            if db.get(Party, party_id) is None:
                raise NotFoundError("Party", party_id)
            row = db.get(PartyStatus, key)
            if row is None:
                row = PartyStatus(party_id=party_id, user_id=user_id, status_type=status_type)
                db.add(row)
            row.level = level
            row.message = message
            row.emoji = emoji
            row.updated_at = now
            db.flush()
            if self.feed is not None:
                self.feed.record(
                    db,
                    FeedItem(
                        party_id=party_id,
                        timestamp=now,
                        payload=StatusPayload(
                            user_id=user_id,
                            status_type=StatusType(status_type),
                            level=level,
                            message=message,
                        ),
                    ),
                )
            return StatusRecord.model_validate(row)
