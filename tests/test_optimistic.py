# tests/test_optimistic.py
from __future__ import annotations

from collections.abc import Callable

import pytest

from party_pulse.core.errors import ConflictError, InvalidStateError, ValidationError
from party_pulse.services.optimistic import LocalVote, OptimisticVoteBuffer, predict
from party_pulse.services.vote_ledger import VoteLedger


@pytest.mark.parametrize(
    ("current", "direction", "expected"),
    [
        (LocalVote(0, 3), 1, LocalVote(1, 4)),
        (LocalVote(1, 3), 1, LocalVote(0, 2)),
        (LocalVote(1, 3), -1, LocalVote(-1, 1)),
        (LocalVote(-1, -2), -1, LocalVote(0, -1)),
    ],
)
def test_predict_matches_ledger_rules(current: LocalVote, direction: int, expected: LocalVote) -> None:
    assert predict(current, direction) == expected


def test_stage_then_confirm(ledger: VoteLedger, make_subject: Callable[..., str]) -> None:
    subject_id = make_subject()
    buffer = OptimisticVoteBuffer(ledger, "voter-a")

    pending = buffer.stage(subject_id, 1)

    assert buffer.is_pending(subject_id)
    assert buffer.view(subject_id) == LocalVote(1, 1)
    assert ledger.tally(subject_id) == 0

    confirmed = buffer.confirm(pending)

    assert confirmed == LocalVote(1, 1)
    assert not buffer.is_pending(subject_id)
    assert ledger.tally(subject_id) == 1


def test_one_pending_vote_per_subject(ledger: VoteLedger, make_subject: Callable[..., str]) -> None:
    subject_id = make_subject()
    buffer = OptimisticVoteBuffer(ledger, "voter-a")
    buffer.stage(subject_id, 1)

    with pytest.raises(ConflictError):
        buffer.stage(subject_id, -1)


def test_failed_write_rolls_back(ledger: VoteLedger, make_subject: Callable[..., str]) -> None:
    subject_id = make_subject()
    ledger.cast_vote(subject_id, "voter-b", 1)
    buffer = OptimisticVoteBuffer(ledger, "voter-a")
    prior = buffer.view(subject_id)
    pending = buffer.stage(subject_id, 1)
    ledger.set_status(subject_id, "closed")

    with pytest.raises(InvalidStateError):
        buffer.confirm(pending)

    assert buffer.view(subject_id) == prior == LocalVote(0, 1)
    assert not buffer.is_pending(subject_id)


def test_confirm_reconciles_with_other_voters(
    ledger: VoteLedger, make_subject: Callable[..., str]
) -> None:
    subject_id = make_subject()
    buffer = OptimisticVoteBuffer(ledger, "voter-a")
    buffer.view(subject_id)
    ledger.cast_vote(subject_id, "voter-b", 1)

    pending = buffer.stage(subject_id, 1)
    assert pending.predicted.tally == 1

    assert buffer.confirm(pending).tally == 2


def test_explicit_rollback(ledger: VoteLedger, make_subject: Callable[..., str]) -> None:
    subject_id = make_subject()
    buffer = OptimisticVoteBuffer(ledger, "voter-a")
    pending = buffer.stage(subject_id, -1)

    restored = buffer.rollback(pending)

    assert restored == LocalVote(0, 0)
    assert buffer.view(subject_id) == restored
    assert ledger.get_vote(subject_id, "voter-a") == 0


def test_vote_shortcut_and_validation(ledger: VoteLedger, make_subject: Callable[..., str]) -> None:
    subject_id = make_subject()
    buffer = OptimisticVoteBuffer(ledger, "voter-a")

    assert buffer.vote(subject_id, 1) == LocalVote(1, 1)
    assert buffer.vote(subject_id, 1) == LocalVote(0, 0)
    with pytest.raises(ValidationError):
        buffer.stage(subject_id, 0)
    with pytest.raises(ValidationError):
        OptimisticVoteBuffer(ledger, "")


def test_confirm_takes_direction_from_ledger_when_view_is_stale(
    ledger: VoteLedger, make_subject: Callable[..., str]
) -> None:
    subject_id = make_subject()
    buffer = OptimisticVoteBuffer(ledger, "voter-a")
    assert buffer.view(subject_id) == LocalVote(0, 0)
    # Same voter upvotes from another device; the buffer's view is now stale.
    ledger.cast_vote(subject_id, "voter-a", 1)

    confirmed = buffer.vote(subject_id, 1)

    assert confirmed == LocalVote(0, 0)
    assert ledger.get_vote(subject_id, "voter-a") == 0
    assert buffer.view(subject_id) == confirmed
