"""Party polls whose options are vote-ledger subjects."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select

from party_pulse.core.errors import ConflictError, NotFoundError, ValidationError
from party_pulse.core.locks import KeyedLocks
from party_pulse.models import Party, Poll, SubjectVote, VoteSubject
from party_pulse.models.subject import (
    POLL_TYPES,
    SUBJECT_KIND_POLL_OPTION,
    SUBJECT_STATUS_CLOSED,
    SUBJECT_STATUS_OPEN,
)
from party_pulse.schemas.vote import PollOut
from party_pulse.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)


class PollService:
    """Creates, votes on and closes polls.

    Options are ranked by the ledger. A voter holds at most one vote per
    poll. Closing a poll freezes every option so later votes raise
    ``InvalidStateError``.
    """

    def __init__(self, ledger: VoteLedger) -> None:
        self.ledger = ledger
        self.store = ledger.store
        self._locks = KeyedLocks()

    def create_poll(
        self,
        party_id: str,
        created_by: str,
        question: str,
        options: Sequence[str],
        poll_type: str = "custom",
    ) -> PollOut:
        """Create a poll with free-text options."""
        labels = [option.strip() for option in options if option and option.strip()]
        return self._create(
            party_id, created_by, question, poll_type, [(label, None) for label in labels]
        )

    def create_user_poll(
        self,
        party_id: str,
        created_by: str,
        question: str,
        user_ids: Sequence[str],
        poll_type: str = "party_mvp",
    ) -> PollOut:
        """Create a poll whose options are guests (MVP, best dressed...)."""
        unique_ids = list(dict.fromkeys(user_id for user_id in user_ids if user_id))
        return self._create(
            party_id, created_by, question, poll_type, [(uid, uid) for uid in unique_ids]
        )

    def vote(self, option_id: str, voter_id: str, direction: int) -> int:
        """Vote on one option and return its net tally.

        Toggling or flipping the vote already held on ``option_id`` goes
        through as usual. Voting on a different option of the same poll
        raises ``ConflictError`` until the earlier vote is toggled off.

        Raises:
            NotFoundError: If ``option_id`` is not a poll option.
            ConflictError: If the voter already voted on another option.
        """
        poll_id = self._poll_of(option_id)
        with self._locks.hold((poll_id, voter_id)):
            held = self._held_option(poll_id, voter_id)
            if held is not None and held != option_id:
                raise ConflictError(
                    f"Voter {voter_id} already voted for option {held} in poll {poll_id}"
                )
            return self.ledger.cast_vote(option_id, voter_id, direction)

    def close_poll(self, poll_id: str) -> PollOut:
        with self.store.session() as db:
            poll = db.get(Poll, poll_id)
            if poll is None:
                raise NotFoundError("Poll", poll_id)
            poll.is_active = False
            option_ids = list(
                db.execute(select(VoteSubject.id).where(VoteSubject.poll_id == poll_id)).scalars()
            )
        for option_id in option_ids:
            self.ledger.set_status(option_id, SUBJECT_STATUS_CLOSED)
        logger.info("Closed poll %s with %d options", poll_id, len(option_ids))
        return self.get_poll(poll_id)

    def get_poll(self, poll_id: str) -> PollOut:
        """Return the poll with its options in ranked order."""
        with self.store.read_session() as db:
            poll = db.get(Poll, poll_id)
            if poll is None:
                raise NotFoundError("Poll", poll_id)
            party_id = poll.party_id
            out = PollOut(
                id=poll.id,
                party_id=poll.party_id,
                question=poll.question,
                poll_type=poll.poll_type,
                is_active=poll.is_active,
                created_at=poll.created_at,
            )
        options = self.ledger.rank(party_id, kind=SUBJECT_KIND_POLL_OPTION, poll_id=poll_id)
        return out.model_copy(update={"options": options})

    def list_polls(self, party_id: str, *, active_only: bool = False) -> list[PollOut]:
        """Return the party's polls, newest first."""
        stmt = select(Poll.id).where(Poll.party_id == party_id)
        if active_only:
            stmt = stmt.where(Poll.is_active.is_(True))
        stmt = stmt.order_by(Poll.created_at.desc(), Poll.id.desc())
        with self.store.read_session() as db:
            poll_ids = list(db.execute(stmt).scalars())
        return [self.get_poll(poll_id) for poll_id in poll_ids]

    def _poll_of(self, option_id: str) -> str:
        with self.store.read_session() as db:
            option = db.get(VoteSubject, option_id)
            if option is None or option.poll_id is None:
                raise NotFoundError("Poll option", option_id)
            return option.poll_id

    def _held_option(self, poll_id: str, voter_id: str) -> str | None:
        stmt = (
            select(SubjectVote.subject_id)
            .join(VoteSubject, VoteSubject.id == SubjectVote.subject_id)
            .where(VoteSubject.poll_id == poll_id, SubjectVote.voter_id == voter_id)
            .limit(1)
        )
        with self.store.read_session() as db:
            return db.execute(stmt).scalar_one_or_none()

    def _create(
        self,
        party_id: str,
        created_by: str,
        question: str,
        poll_type: str,
        options: list[tuple[str, str | None]],
    ) -> PollOut:
        if not created_by:
            raise ValidationError("created_by is required", field="created_by")
        if not question or not question.strip():
            raise ValidationError("question is required", field="question")
        if poll_type not in POLL_TYPES:
            raise ValidationError(f"Unknown poll type: {poll_type!r}", field="poll_type")
        if not options:
            raise ValidationError("A poll needs at least one option", field="options")

        with self.store.session() as db:
            if db.get(Party, party_id) is None:
                raise NotFoundError("Party", party_id)
            poll = Poll(
                party_id=party_id,
                created_by=created_by,
                question=question.strip(),
                poll_type=poll_type,
            )
            db.add(poll)
            db.flush()
            for label, option_user_id in options:
                db.add(
                    VoteSubject(
                        party_id=party_id,
                        kind=SUBJECT_KIND_POLL_OPTION,
                        label=label,
                        status=SUBJECT_STATUS_OPEN,
                        poll_id=poll.id,
                        option_user_id=option_user_id,
                    )
                )
            poll_id = poll.id

        logger.info("Created poll %s in party %s with %d options", poll_id, party_id, len(options))
        return self.get_poll(poll_id)
