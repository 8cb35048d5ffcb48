# tests/test_polls.py
from __future__ import annotations

import pytest

from party_pulse.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from party_pulse.services.polls import PollService


def test_create_poll_and_rank_results(polls: PollService, party) -> None:
    poll = polls.create_poll(party.id, "host-1", "Best song tonight?", ["Intro", "Outro", "  "])

    assert poll.is_active
    assert len(poll.options) == 2
    intro, outro = sorted(poll.options, key=lambda o: o.label)

    polls.vote(outro.id, "guest-1", 1)
    polls.vote(outro.id, "guest-2", 1)
    polls.vote(intro.id, "guest-3", -1)

    results = polls.get_poll(poll.id)
    assert [o.label for o in results.options] == ["Outro", "Intro"]
    assert [o.tally for o in results.options] == [2, -1]
    assert results.total_votes == 3


@pytest.mark.parametrize(
    ("question", "options", "poll_type"),
    [
        ("Who?", [], "custom"),
        ("Who?", ["", "  "], "custom"),
        ("   ", ["A"], "custom"),
        ("Who?", ["A"], "loudest"),
    ],
)
def test_create_poll_validation(
    polls: PollService, party, question: str, options: list[str], poll_type: str
) -> None:
    with pytest.raises(ValidationError):
        polls.create_poll(party.id, "host-1", question, options, poll_type=poll_type)


def test_create_poll_unknown_party(polls: PollService) -> None:
    with pytest.raises(NotFoundError):
        polls.create_poll("missing", "host-1", "Who?", ["A"])


def test_user_poll_options_reference_guests(polls: PollService, party) -> None:
    poll = polls.create_user_poll(
        party.id, "host-1", "Party MVP?", ["guest-1", "guest-2", "guest-1"]
    )

    assert poll.poll_type == "party_mvp"
    assert sorted(o.option_user_id for o in poll.options) == ["guest-1", "guest-2"]


def test_close_poll_freezes_options(polls: PollService, party) -> None:
    poll = polls.create_poll(party.id, "host-1", "Pizza or tacos?", ["Pizza", "Tacos"])
    option = poll.options[0]
    polls.vote(option.id, "guest-1", 1)

    closed = polls.close_poll(poll.id)

    assert not closed.is_active
    assert {o.status for o in closed.options} == {"closed"}
    with pytest.raises(InvalidStateError):
        polls.vote(option.id, "guest-2", 1)
    assert polls.get_poll(poll.id).total_votes == 1


def test_list_polls(polls: PollService, party) -> None:
    first = polls.create_poll(party.id, "host-1", "First?", ["A"])
    second = polls.create_poll(party.id, "host-1", "Second?", ["B"])
    polls.close_poll(first.id)

    assert [p.id for p in polls.list_polls(party.id)] == [second.id, first.id]
    assert [p.id for p in polls.list_polls(party.id, active_only=True)] == [second.id]


def test_unknown_poll(polls: PollService) -> None:
    with pytest.raises(NotFoundError):
        polls.get_poll("missing")
    with pytest.raises(NotFoundError):
        polls.close_poll("missing")


def test_one_vote_per_voter_per_poll(polls: PollService, party) -> None:
    poll = polls.create_poll(party.id, "host-1", "Pizza or tacos?", ["Pizza", "Tacos"])
    pizza, tacos = sorted(poll.options, key=lambda o: o.label)
    polls.vote(pizza.id, "voter-x", 1)

    with pytest.raises(ConflictError):
        polls.vote(tacos.id, "voter-x", 1)

    results = polls.get_poll(poll.id)
    assert results.total_votes == 1
    assert {o.label: o.tally for o in results.options} == {"Pizza": 1, "Tacos": 0}


def test_voter_can_flip_or_move_after_toggling_off(polls: PollService, party) -> None:
    poll = polls.create_poll(party.id, "host-1", "Pizza or tacos?", ["Pizza", "Tacos"])
    pizza, tacos = sorted(poll.options, key=lambda o: o.label)

    assert polls.vote(pizza.id, "voter-x", 1) == 1
    assert polls.vote(pizza.id, "voter-x", -1) == -1
    assert polls.vote(pizza.id, "voter-x", -1) == 0
    assert polls.vote(tacos.id, "voter-x", 1) == 1

    assert polls.get_poll(poll.id).total_votes == 1


def test_votes_in_other_polls_are_independent(polls: PollService, party) -> None:
    first = polls.create_poll(party.id, "host-1", "First?", ["A"])
    second = polls.create_poll(party.id, "host-1", "Second?", ["B"])

    polls.vote(first.options[0].id, "voter-x", 1)
    polls.vote(second.options[0].id, "voter-x", 1)

    assert polls.get_poll(first.id).total_votes == 1
    assert polls.get_poll(second.id).total_votes == 1


def test_vote_requires_poll_option(polls: PollService, songs, party) -> None:
    song = songs.request_song(party.id, "guest-1", "Song", "Artist")

    with pytest.raises(NotFoundError):
        polls.vote(song.id, "voter-x", 1)
    with pytest.raises(NotFoundError):
        polls.vote("missing", "voter-x", 1)
