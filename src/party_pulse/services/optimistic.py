"""Two-phase optimistic vote writes for a client-side view of the ledger."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from party_pulse.core.errors import ConflictError, ValidationError
from party_pulse.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalVote:
    """What one client currently shows for a subject."""

    direction: int
    tally: int


@dataclass(frozen=True)
class PendingVote:
    """A staged vote and the state to restore if the write fails."""

    subject_id: str
    direction: int
    prior: LocalVote
    predicted: LocalVote


def predict(current: LocalVote, direction: int) -> LocalVote:
    """Apply the ledger's toggle/flip rules to a local view."""
    if current.direction == direction:
        return LocalVote(direction=0, tally=current.tally - direction)
    return LocalVote(direction=direction, tally=current.tally - current.direction + direction)


class OptimisticVoteBuffer:
    """Shows a voter's vote immediately and reconciles it with the ledger.

    ``stage`` applies the predicted outcome locally, ``confirm`` sends the
    vote and replaces the prediction with the direction and tally the ledger
    actually stored, and a failed write restores the state captured when the
    vote was staged.
    """

    def __init__(self, ledger: VoteLedger, voter_id: str) -> None:
        if not voter_id:
            raise ValidationError("voter_id is required", field="voter_id")
        self.ledger = ledger
        self.voter_id = voter_id
        self._local: dict[str, LocalVote] = {}
        self._pending: dict[str, PendingVote] = {}
        self._lock = threading.Lock()

    def view(self, subject_id: str) -> LocalVote:
        """Return the locally shown vote, loading it from the ledger once."""
        with self._lock:
            cached = self._local.get(subject_id)
        if cached is not None:
            return cached
        loaded = LocalVote(
            direction=self.ledger.get_vote(subject_id, self.voter_id),
            tally=self.ledger.tally(subject_id),
        )
        with self._lock:
            return self._local.setdefault(subject_id, loaded)

    def stage(self, subject_id: str, direction: int) -> PendingVote:
        """Apply a vote locally and mark it pending.

        Raises:
            ValidationError: If ``direction`` is not 1 or -1.
            ConflictError: If the subject already has a pending vote.
        """
        if direction not in (1, -1):
            raise ValidationError(f"direction must be 1 or -1, got {direction!r}", field="direction")
        current = self.view(subject_id)
        with self._lock:
            if subject_id in self._pending:
                raise ConflictError(f"A vote on subject {subject_id} is already pending")
            current = self._local.get(subject_id, current)
            pending = PendingVote(
                subject_id=subject_id,
                direction=direction,
                prior=current,
                predicted=predict(current, direction),
            )
            self._pending[subject_id] = pending
            self._local[subject_id] = pending.predicted
        return pending

    def confirm(self, pending: PendingVote) -> LocalVote:
        """Send a staged vote and reconcile with what the ledger stored.

        A stale local view (for example a vote cast from another device) can
        make the ledger toggle where the prediction flipped; the confirmed
        view always follows the ledger.
        """
        try:
            outcome = self.ledger.record_vote(pending.subject_id, self.voter_id, pending.direction)
        except Exception:
            self.rollback(pending)
            raise
        confirmed = LocalVote(direction=outcome.direction, tally=outcome.tally)
        with self._lock:
            self._pending.pop(pending.subject_id, None)
            self._local[pending.subject_id] = confirmed
        if confirmed != pending.predicted:
            logger.debug(
                "Reconciled subject %s: predicted %s, ledger says %s",
                pending.subject_id,
                pending.predicted,
                confirmed,
            )
        return confirmed

    def rollback(self, pending: PendingVote) -> LocalVote:
        """Discard a staged vote and restore the prior local state."""
        with self._lock:
            self._pending.pop(pending.subject_id, None)
            self._local[pending.subject_id] = pending.prior
        logger.info("Rolled back pending vote on subject %s", pending.subject_id)
        return pending.prior

    def is_pending(self, subject_id: str) -> bool:
        with self._lock:
            return subject_id in self._pending

    def vote(self, subject_id: str, direction: int) -> LocalVote:
        return self.confirm(self.stage(subject_id, direction))
