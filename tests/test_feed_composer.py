# tests/test_feed_composer.py
from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta, timezone
from itertools import islice

import pytest

from party_pulse.core.errors import ConflictError, ValidationError
from party_pulse.schemas.common import FeedCursor
from party_pulse.schemas.feed import (
    CommentPayload,
    DrinkPayload,
    FeedItem,
    MediaPayload,
    StatusPayload,
)
from party_pulse.schemas.status import StatusType
from party_pulse.services.feed_composer import FeedComposer, describe, merge, paginate
from tests.conftest import at, comment_item


def _stream(prefix: str, seconds: list[int]) -> list[FeedItem]:
    return [comment_item("p", s, f"{prefix}{s:03d}") for s in sorted(seconds, reverse=True)]


def test_merge_interleaves_sorted_sources() -> None:
    comments = _stream("c", [1, 4, 9])
    statuses = _stream("s", [2, 3, 10, 11])
    drinks = _stream("d", [])

    merged = list(merge([comments, statuses, drinks]))

    assert len(merged) == len(comments) + len(statuses)
    assert [item.key for item in merged] == sorted((i.key for i in merged), reverse=True)
    assert [item.id for item in merged][:3] == ["s011", "s010", "c009"]


def test_merge_is_lazy() -> None:
    pulled: list[str] = []

    def tracked(items: list[FeedItem]) -> Iterator[FeedItem]:
        for item in items:
            pulled.append(item.id)
            yield item

    sources = [tracked(_stream("a", list(range(0, 100, 2)))), tracked(_stream("b", list(range(1, 100, 2))))]
    first = list(islice(merge(sources), 3))

    assert [item.id for item in first] == ["b099", "a098", "b097"]
    assert len(pulled) <= 5


def test_merge_orders_equal_timestamps_by_id() -> None:
    left = [comment_item("p", 5, "b")]
    right = [comment_item("p", 5, "c"), comment_item("p", 5, "a")]

    assert [item.id for item in merge([left, right])] == ["c", "b", "a"]


def test_paginate_walks_to_the_end() -> None:
    items = _stream("x", list(range(7)))
    seen: list[str] = []
    cursor = None
    pages = 0
    while True:
        page = paginate(items, cursor, 3)
        pages += 1
        seen.extend(item.id for item in page.items)
        if page.is_end:
            break
        cursor = page.next_cursor

    assert pages == 3
    assert seen == [item.id for item in items]


def test_paginate_past_the_end_is_empty() -> None:
    items = _stream("x", [1, 2])
    page = paginate(items, items[-1].cursor(), 10)

    assert page.items == []
    assert page.next_cursor is None


def test_paginate_rejects_non_positive_limit() -> None:
    with pytest.raises(ValidationError):
        paginate([], None, 0)


def test_append_and_page(feed: FeedComposer, party) -> None:
    for n in range(7):
        feed.append(comment_item(party.id, n, f"item-{n}"))

    first = feed.page(party.id, limit=3)
    second = feed.page(party.id, first.next_cursor, limit=3)
    third = feed.page(party.id, second.next_cursor, limit=3)

    assert [i.id for i in first.items] == ["item-6", "item-5", "item-4"]
    assert [i.id for i in second.items] == ["item-3", "item-2", "item-1"]
    assert [i.id for i in third.items] == ["item-0"]
    assert third.next_cursor is None


def test_cursor_is_stable_under_new_items(feed: FeedComposer, party) -> None:
    for n in range(5):
        feed.append(comment_item(party.id, n, f"old-{n}"))
    first = feed.page(party.id, limit=2)

    feed.append(comment_item(party.id, 100, "new-1"))
    feed.append(comment_item(party.id, 101, "new-2"))
    second = feed.page(party.id, first.next_cursor, limit=2)

    assert [i.id for i in first.items] == ["old-4", "old-3"]
    assert [i.id for i in second.items] == ["old-2", "old-1"]


def test_item_older_than_cursor_is_seen_once(feed: FeedComposer, party) -> None:
    for s in (10, 20, 30, 40, 50):
        feed.append(comment_item(party.id, s, f"old-{s}"))
    first = feed.page(party.id, limit=2)

    # Arrives late with a timestamp below the cursor, and one above it.
    feed.append(comment_item(party.id, 15, "late-15"))
    feed.append(comment_item(party.id, 45, "late-45"))

    seen = [i.id for i in first.items]
    cursor = first.next_cursor
    pages = 1
    while cursor is not None:
        page = feed.page(party.id, cursor, limit=2)
        seen.extend(i.id for i in page.items)
        cursor = page.next_cursor
        pages += 1
        assert pages < 10

    assert len(seen) == len(set(seen))
    assert seen == ["old-50", "old-40", "old-30", "old-20", "late-15", "old-10"]


def test_page_ties_broken_by_id(feed: FeedComposer, party) -> None:
    feed.append(comment_item(party.id, 1, "tie-a"))
    feed.append(comment_item(party.id, 1, "tie-b"))

    first = feed.page(party.id, limit=1)
    second = feed.page(party.id, first.next_cursor, limit=1)

    assert [i.id for i in first.items] == ["tie-b"]
    assert [i.id for i in second.items] == ["tie-a"]
    assert second.is_end


def test_page_accepts_encoded_cursor(feed: FeedComposer, party) -> None:
    for n in range(3):
        feed.append(comment_item(party.id, n, f"item-{n}"))
    first = feed.page(party.id, limit=1)

    second = feed.page(party.id, first.next_cursor.encode(), limit=5)

    assert [i.id for i in second.items] == ["item-1", "item-0"]


def test_page_size_defaults_and_cap(feed: FeedComposer, party) -> None:
    for n in range(60):
        feed.append(comment_item(party.id, n, f"item-{n:02d}"))

    assert len(feed.page(party.id).items) == 5
    assert len(feed.page(party.id, limit=1000).items) == 50
    with pytest.raises(ValidationError):
        feed.page(party.id, limit=0)


def test_empty_feed(feed: FeedComposer, party) -> None:
    page = feed.page(party.id)
    assert page.items == []
    assert page.is_end


def test_duplicate_id_conflicts(feed: FeedComposer, party) -> None:
    feed.append(comment_item(party.id, 1, "dup"))
    with pytest.raises(ConflictError):
        feed.append(comment_item(party.id, 2, "dup"))
    assert len(feed.page(party.id).items) == 1


def test_payloads_survive_storage(feed: FeedComposer, party) -> None:
    feed.append(
        FeedItem(
            party_id=party.id,
            timestamp=at(1),
            payload=DrinkPayload(user_id="guest-1", drink_id="d-1", drink_type="beer"),
        )
    )
    feed.append(
        FeedItem(
            party_id=party.id,
            timestamp=at(2),
            payload=MediaPayload(
                user_id="guest-2", media_id="m-1", media_type="video", url="https://cdn.example/v"
            ),
        )
    )

    kinds = [type(i.payload) for i in feed.page(party.id).items]

    assert kinds == [MediaPayload, DrinkPayload]


def test_timestamps_are_normalized_to_utc() -> None:
    local = datetime(2025, 6, 14, 23, 0, tzinfo=timezone(timedelta(hours=2)))
    item = comment_item("p", 0, "x").model_copy(update={"timestamp": local})
    validated = FeedItem.model_validate(item.model_dump())

    assert validated.timestamp == datetime(2025, 6, 14, 21, 0, tzinfo=UTC)
    assert validated.timestamp.utcoffset() == timedelta(0)


def test_cursor_token_round_trip() -> None:
    cursor = FeedCursor(timestamp=at(42), id="item-42")
    assert FeedCursor.decode(cursor.encode()) == cursor


@pytest.mark.parametrize("token", ["", "!!!", "bm90LWEtY3Vyc29y"])
def test_malformed_cursor_token(token: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        FeedCursor.decode(token)
    assert exc_info.value.field == "cursor"


@pytest.mark.parametrize(
    ("payload", "headline"),
    [
        (CommentPayload(user_id="ana", comment_id="c", content="hi"), "ana commented: hi"),
        (
            StatusPayload(user_id="ana", status_type=StatusType.VIBE_CHECK, level=5),
            "ana is EUPHORIC (VIBE CHECK)",
        ),
        (
            DrinkPayload(user_id="ana", drink_id="d", drink_type="cocktail", custom_name="Negroni"),
            "ana had a Negroni",
        ),
        (
            MediaPayload(user_id="ana", media_id="m", media_type="photo", url="u"),
            "ana added a photo",
        ),
    ],
)
def test_describe(payload, headline: str) -> None:
    item = FeedItem(party_id="p", timestamp=at(0), payload=payload)
    assert describe(item) == headline
