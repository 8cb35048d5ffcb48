"""Vote ledger: one active vote per (voter, subject), net tallies and ranking."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from party_pulse.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from party_pulse.core.locks import KeyedLocks
from party_pulse.core.settings import Settings, settings as default_settings
from party_pulse.db.session import PartyStore
from party_pulse.models import SubjectVote, VoteSubject
from party_pulse.models.subject import SUBJECT_STATUSES
from party_pulse.schemas.vote import RankedSubject, VoteOutcome

logger = logging.getLogger(__name__)

_TRANSIENT_MARKERS = ("locked", "busy", "deadlock", "could not serialize")
# Key collisions raised by SQLite, PostgreSQL and MySQL respectively.
_COLLISION_MARKERS = ("unique constraint", "duplicate key", "duplicate entry")


def _is_transient(exc: Exception) -> bool:
    """Return True for write failures caused by a concurrent writer."""
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, IntegrityError):
        text = str(exc.orig).lower()
        return any(marker in text for marker in _COLLISION_MARKERS)
    if isinstance(exc, OperationalError):
        text = str(exc.orig).lower()
        return any(marker in text for marker in _TRANSIENT_MARKERS)
    return False


def _bump(subject: VoteSubject, direction: int, delta: int) -> None:
    if direction == 1:
        subject.upvotes += delta
    else:
        subject.downvotes += delta


class VoteLedger:
    """Serializes vote mutations per subject and keeps counters consistent.

    Calls for one subject take that subject's lock, so concurrent voters
    commute: the final tally depends only on each voter's last direction.
    Across processes the subject row's ``version`` column turns each counter
    update into a compare-and-swap; a lost race is retried a bounded number
    of times before ``ConflictError`` is raised.
    """

    def __init__(self, store: PartyStore, *, config: Settings | None = None) -> None:
        self.store = store
        self.config = config or default_settings
        self._locks = KeyedLocks()

    # --- Commands ------------------------------------------------------------------
    def cast_vote(self, subject_id: str, voter_id: str, direction: int) -> int:
        """Cast, toggle off, or flip a vote and return the new net tally."""
        return self.record_vote(subject_id, voter_id, direction).tally

    def record_vote(self, subject_id: str, voter_id: str, direction: int) -> VoteOutcome:
        """Apply a vote and return the voter's resulting direction with the tally.

        Args:
            subject_id: Poll option or song request being voted on.
            voter_id: Opaque id of the voter.
            direction: 1 for up, -1 for down.

        Returns:
            The voter's direction after the vote (0 when it toggled off) and
            the subject's net tally, both read in the same transaction.

        Raises:
            ValidationError: On an empty id or a direction other than 1/-1.
            NotFoundError: If the subject does not exist.
            InvalidStateError: If the subject is closed, played or rejected.
            ConflictError: If the write kept losing races.
        """
        self._require_ids(subject_id, voter_id)
        if direction not in (1, -1):
            raise ValidationError(f"direction must be 1 or -1, got {direction!r}", field="direction")

        resulting: list[int] = []

        def mutate(db: Session, subject: VoteSubject) -> None:
            resulting.append(self._apply_vote(db, subject, voter_id, direction))

        tally = self._serialized_write(subject_id, mutate)
        logger.debug(
            "Vote %+d by %s on subject %s; tally now %d", direction, voter_id, subject_id, tally
        )
        # Only the last attempt committed.
        return VoteOutcome(direction=resulting[-1], tally=tally)

    def retract_vote(self, subject_id: str, voter_id: str) -> int:
        """Remove the voter's vote if present and return the net tally."""
        self._require_ids(subject_id, voter_id)

        def mutate(db: Session, subject: VoteSubject) -> None:
            existing = db.get(SubjectVote, (subject.id, voter_id))
            if existing is None:
                return
            db.delete(existing)
            _bump(subject, existing.direction, -1)

        tally = self._serialized_write(subject_id, mutate)
        logger.debug("Vote by %s on subject %s retracted; tally now %d", voter_id, subject_id, tally)
        return tally

    def set_status(
        self,
        subject_id: str,
        status: str,
        *,
        played_at: datetime | None = None,
        expected: Iterable[str] | None = None,
    ) -> RankedSubject:
        """Move a subject to a new lifecycle status under its lock.

        When ``expected`` is given, the current status is checked under the
        same lock and ``InvalidStateError`` is raised if it is not one of them.
        """
        if status not in SUBJECT_STATUSES:
            raise ValidationError(f"Unknown subject status: {status!r}", field="status")
        allowed = frozenset(expected) if expected is not None else None

        def mutate(db: Session, subject: VoteSubject) -> None:
            if allowed is not None and subject.status not in allowed:
                raise InvalidStateError(subject.id, subject.status)
            subject.status = status
            if played_at is not None:
                subject.played_at = played_at

        self._serialized_write(subject_id, mutate, require_open=False)
        return self.get_subject(subject_id)

    # --- Queries -------------------------------------------------------------------
    def get_subject(self, subject_id: str) -> RankedSubject:
        with self.store.read_session() as db:
            subject = db.get(VoteSubject, subject_id)
            if subject is None:
                raise NotFoundError("Subject", subject_id)
            return RankedSubject.model_validate(subject)

    def tally(self, subject_id: str) -> int:
        return self.get_subject(subject_id).tally

    def get_vote(self, subject_id: str, voter_id: str) -> int:
        """Return the voter's current direction, or 0 when they have no vote."""
        with self.store.read_session() as db:
            vote = db.get(SubjectVote, (subject_id, voter_id))
            return vote.direction if vote else 0

    def rank(
        self,
        party_id: str,
        *,
        kind: str | None = None,
        poll_id: str | None = None,
        statuses: Iterable[str] | None = None,
    ) -> list[RankedSubject]:
        """Return subjects ordered by net tally, earliest submission first on ties."""
        stmt = select(VoteSubject).where(VoteSubject.party_id == party_id)
        if kind is not None:
            stmt = stmt.where(VoteSubject.kind == kind)
        if poll_id is not None:
            stmt = stmt.where(VoteSubject.poll_id == poll_id)
        if statuses is not None:
            stmt = stmt.where(VoteSubject.status.in_(list(statuses)))
        stmt = stmt.order_by(
            (VoteSubject.upvotes - VoteSubject.downvotes).desc(),
            VoteSubject.created_at.asc(),
            VoteSubject.id.asc(),
        )
        with self.store.read_session() as db:
            return [RankedSubject.model_validate(s) for s in db.execute(stmt).scalars()]

    # --- Internals -----------------------------------------------------------------
    @staticmethod
    def _require_ids(subject_id: str, voter_id: str) -> None:
        if not subject_id:
            raise ValidationError("subject_id is required", field="subject_id")
        if not voter_id:
            raise ValidationError("voter_id is required", field="voter_id")

    @staticmethod
    def _apply_vote(db: Session, subject: VoteSubject, voter_id: str, direction: int) -> int:
        existing = db.get(SubjectVote, (subject.id, voter_id))
        if existing is None:
            db.add(SubjectVote(subject_id=subject.id, voter_id=voter_id, direction=direction))
            _bump(subject, direction, 1)
            return direction

        if existing.direction == direction:
            # Same direction again is a retraction.
            db.delete(existing)
            _bump(subject, direction, -1)
            return 0

        _bump(subject, existing.direction, -1)
        _bump(subject, direction, 1)
        existing.direction = direction
        return direction

    def _serialized_write(
        self,
        subject_id: str,
        mutate: Callable[[Session, VoteSubject], None],
        *,
        require_open: bool = True,
    ) -> int:
        attempts = self.config.vote_max_attempts
        with self._locks.hold(subject_id):
            for attempt in range(1, attempts + 1):
                try:
                    with self.store.session() as db:
                        subject = db.get(VoteSubject, subject_id)
                        if subject is None:
                            raise NotFoundError("Subject", subject_id)
                        if require_open and not subject.accepts_votes:
                            raise InvalidStateError(subject_id, subject.status)
                        mutate(db, subject)
                        db.flush()
                        tally = subject.tally
                    return tally
                except (StaleDataError, IntegrityError, OperationalError) as exc:
                    if not _is_transient(exc):
                        raise
                    logger.warning(
                        "Write conflict on subject %s (attempt %d/%d): %s",
                        subject_id,
                        attempt,
                        attempts,
                        exc,
                    )
                    if attempt < attempts:
                        time.sleep(self.config.vote_retry_backoff_seconds * attempt)
        raise ConflictError(
            f"Gave up writing subject {subject_id} after {attempts} attempts",
            attempts=attempts,
        )
