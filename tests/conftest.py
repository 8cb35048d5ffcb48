# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from party_pulse.core.settings import Settings
from party_pulse.db.session import PartyStore, create_store
from party_pulse.models import VoteSubject
from party_pulse.schemas.feed import CommentPayload, FeedItem
from party_pulse.schemas.party import PartyOut
from party_pulse.services import (
    EngagementService,
    FeedComposer,
    PartyActivity,
    PartyLoader,
    PollService,
    SongQueue,
    StatusTracker,
    VoteLedger,
)

BASE_TIME = datetime(2025, 6, 14, 21, 0, tzinfo=UTC)


def at(seconds: float) -> datetime:
    """Return a fixed UTC timestamp ``seconds`` after the test epoch."""
    return BASE_TIME + timedelta(seconds=seconds)


def comment_item(party_id: str, seconds: float, item_id: str, user_id: str = "guest-1") -> FeedItem:
    return FeedItem(
        id=item_id,
        party_id=party_id,
        timestamp=at(seconds),
        payload=CommentPayload(user_id=user_id, comment_id=f"c-{item_id}", content=f"msg {item_id}"),
    )


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test SQLite file with fast retries."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'pulse.db'}",
        vote_max_attempts=3,
        vote_retry_backoff_seconds=0.0,
        feed_default_page_size=5,
        feed_max_page_size=50,
        ingest_queue_size=10,
        load_section_timeout_seconds=5.0,
        load_feed_page_size=10,
    )


@pytest.fixture()
def store(test_settings: Settings) -> Iterator[PartyStore]:
    store = create_store(config=test_settings)
    store.create_tables()
    try:
        yield store
    finally:
        store.drop_tables()
        store.dispose()


@pytest.fixture()
def feed(store: PartyStore, test_settings: Settings) -> FeedComposer:
    return FeedComposer(store, config=test_settings)


@pytest.fixture()
def ledger(store: PartyStore, test_settings: Settings) -> VoteLedger:
    return VoteLedger(store, config=test_settings)


@pytest.fixture()
def tracker(store: PartyStore, feed: FeedComposer, test_settings: Settings) -> StatusTracker:
    return StatusTracker(store, feed, config=test_settings)


@pytest.fixture()
def activity(store: PartyStore, feed: FeedComposer, test_settings: Settings) -> PartyActivity:
    return PartyActivity(store, feed, config=test_settings)


@pytest.fixture()
def engagement(store: PartyStore, test_settings: Settings) -> EngagementService:
    return EngagementService(store, config=test_settings)


@pytest.fixture()
def songs(ledger: VoteLedger) -> SongQueue:
    return SongQueue(ledger)


@pytest.fixture()
def polls(ledger: VoteLedger) -> PollService:
    return PollService(ledger)


@pytest.fixture()
def loader(
    activity: PartyActivity,
    polls: PollService,
    tracker: StatusTracker,
    engagement: EngagementService,
    feed: FeedComposer,
    test_settings: Settings,
) -> PartyLoader:
    return PartyLoader(activity, polls, tracker, engagement, feed, config=test_settings)


@pytest.fixture()
def party(activity: PartyActivity) -> PartyOut:
    """Create the default party most tests act on."""
    return activity.create_party("Rooftop Night", "host-1")


@pytest.fixture()
def make_subject(store: PartyStore, party: PartyOut) -> Callable[..., str]:
    """Return a factory inserting a votable subject and returning its id."""

    def _make(
        label: str = "Option",
        *,
        kind: str = "poll_option",
        status: str = "open",
        created_at: datetime | None = None,
        subject_id: str | None = None,
    ) -> str:
        with store.session() as db:
            subject = VoteSubject(
                party_id=party.id,
                kind=kind,
                label=label,
                status=status,
                created_at=created_at or datetime.now(UTC),
            )
            if subject_id is not None:
                subject.id = subject_id
            db.add(subject)
            db.flush()
            return subject.id

    return _make
