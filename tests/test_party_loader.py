# tests/test_party_loader.py
from __future__ import annotations

import time

import pytest

from party_pulse.core.errors import NotFoundError, PartialLoadError
from party_pulse.core.settings import Settings
from party_pulse.schemas.status import StatusType
from party_pulse.services.party_loader import PartyLoader


@pytest.mark.asyncio
async def test_load_returns_every_section(loader: PartyLoader, activity, tracker, polls, party) -> None:
    activity.invite_guest(party.id, "guest-1")
    activity.add_comment(party.id, "guest-1", "first!")
    tracker.post_status(party.id, "guest-1", StatusType.VIBE_CHECK, 4)
    polls.create_poll(party.id, "host-1", "Encore?", ["Yes", "No"])

    snapshot = await loader.load(party.id)

    assert snapshot.is_complete
    snapshot.raise_for_failures()
    assert [g.user_id for g in snapshot.guests] == ["guest-1"]
    assert [c.content for c in snapshot.comments] == ["first!"]
    assert snapshot.media == []
    assert len(snapshot.polls) == 1
    assert snapshot.statuses[0].level == 4
    assert snapshot.score.comment_score == 5
    assert len(snapshot.feed.items) == 2


@pytest.mark.asyncio
async def test_failed_section_degrades_gracefully(
    loader: PartyLoader, activity, tracker, party, mocker
) -> None:
    activity.add_comment(party.id, "guest-1", "still here")
    mocker.patch.object(tracker, "latest_statuses", side_effect=RuntimeError("replica down"))

    snapshot = await loader.load(party.id)

    assert not snapshot.is_complete
    assert snapshot.statuses is None
    assert snapshot.failed_sections == {"statuses": "RuntimeError: replica down"}
    assert [c.content for c in snapshot.comments] == ["still here"]
    assert snapshot.score is not None

    with pytest.raises(PartialLoadError) as exc_info:
        snapshot.raise_for_failures()
    assert exc_info.value.failed_sections == {"statuses": "RuntimeError: replica down"}
    assert exc_info.value.snapshot is snapshot


@pytest.mark.asyncio
async def test_slow_section_times_out(
    activity, polls, tracker, engagement, feed, test_settings: Settings, party, mocker
) -> None:
    config = test_settings.model_copy(update={"load_section_timeout_seconds": 0.05})
    loader = PartyLoader(activity, polls, tracker, engagement, feed, config=config)
    mocker.patch.object(engagement, "compute_score", side_effect=lambda _: time.sleep(0.5))

    snapshot = await loader.load(party.id)

    assert snapshot.score is None
    assert "timed out" in snapshot.failed_sections["score"]
    assert snapshot.guests == []


@pytest.mark.asyncio
async def test_unknown_party(loader: PartyLoader) -> None:
    with pytest.raises(NotFoundError):
        await loader.load("missing")
