"""Feed composition: append-only log, k-way merge and cursor pagination."""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable, Iterator
from itertools import dropwhile, islice
from operator import attrgetter
from typing import assert_never

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from party_pulse.core.errors import ConflictError, ValidationError
from party_pulse.core.settings import Settings, settings as default_settings
from party_pulse.db.session import PartyStore
from party_pulse.models import FeedEntry
from party_pulse.schemas.common import FeedCursor
from party_pulse.schemas.feed import (
    CommentPayload,
    DrinkPayload,
    FeedItem,
    FeedPage,
    MediaPayload,
    StatusPayload,
)

logger = logging.getLogger(__name__)

_item_key = attrgetter("key")


def merge(sources: Iterable[Iterable[FeedItem]]) -> Iterator[FeedItem]:
    """Merge streams that are each already sorted newest first.

    This is a lazy heap-based k-way merge; the union is never re-sorted.
    Items with equal keys keep the order of the sources they came from.
    """
    return heapq.merge(*sources, key=_item_key, reverse=True)


def paginate(
    items: Iterable[FeedItem],
    cursor: FeedCursor | None,
    limit: int,
) -> FeedPage:
    """Cut one page out of a newest-first stream.

    Returns up to ``limit`` items strictly older than ``cursor``. The next
    cursor is the last returned item's key, or ``None`` when nothing older
    remains.
    """
    if limit <= 0:
        raise ValidationError(f"limit must be positive, got {limit}", field="limit")
    stream: Iterable[FeedItem] = items
    if cursor is not None:
        boundary = cursor.key
        stream = dropwhile(lambda item: item.key >= boundary, stream)
    window = list(islice(stream, limit + 1))
    return _page_from_window(window, limit)


def _page_from_window(window: list[FeedItem], limit: int) -> FeedPage:
    page_items = window[:limit]
    has_more = len(window) > limit
    next_cursor = page_items[-1].cursor() if has_more else None
    return FeedPage(items=page_items, next_cursor=next_cursor)


def describe(item: FeedItem) -> str:
    """Return a one-line headline for a feed item."""
    payload = item.payload
    match payload:
        case CommentPayload():
            return f"{payload.user_id} commented: {payload.content}"
        case StatusPayload():
            label = payload.status_type.label_for_level(payload.level)
            return f"{payload.user_id} is {label} ({payload.status_type.label})"
        case DrinkPayload():
            return f"{payload.user_id} had a {payload.custom_name or payload.drink_type}"
        case MediaPayload():
            return f"{payload.user_id} added a {payload.media_type}"
        case _:
            assert_never(payload)


def _to_item(entry: FeedEntry) -> FeedItem:
    return FeedItem(
        id=entry.id,
        party_id=entry.party_id,
        timestamp=entry.timestamp,
        payload=entry.payload,
    )


class FeedComposer:
    """Reads and appends the persisted activity feed of each party."""

    def __init__(self, store: PartyStore, *, config: Settings | None = None) -> None:
        self.store = store
        self.config = config or default_settings

    def append(self, item: FeedItem) -> FeedItem:
        """Append an immutable item.

        Raises:
            ConflictError: If an item with the same id already exists.
        """
        try:
            with self.store.session() as db:
                self.record(db, item)
        except IntegrityError as exc:
            raise ConflictError(f"Feed item {item.id} already exists") from exc
        return item

    def record(self, db: Session, item: FeedItem) -> None:
        """Add ``item`` inside the caller's transaction."""
        if db.get(FeedEntry, item.id) is not None:
            raise ConflictError(f"Feed item {item.id} already exists")
        db.add(
            FeedEntry(
                id=item.id,
                party_id=item.party_id,
                timestamp=item.timestamp,
                kind=item.kind,
                payload=item.payload.model_dump(mode="json"),
            )
        )
        db.flush()
        logger.debug("Appended %s feed item %s to party %s", item.kind, item.id, item.party_id)

    def page(
        self,
        party_id: str,
        cursor: FeedCursor | str | None = None,
        limit: int | None = None,
    ) -> FeedPage:
        """Return the page of items strictly older than ``cursor``.

        Args:
            party_id: Party whose feed is read.
            cursor: Cursor (or its encoded token) of the last item already seen.
            limit: Page size; defaults to the configured page size and is
                capped at ``feed_max_page_size``.

        Returns:
            The page; an empty page with ``next_cursor=None`` past the end.
        """
        if isinstance(cursor, str):
            cursor = FeedCursor.decode(cursor)
        size = self._page_size(limit)

        stmt = select(FeedEntry).where(FeedEntry.party_id == party_id)
        if cursor is not None:
            stmt = stmt.where(
                or_(
                    FeedEntry.timestamp < cursor.timestamp,
                    and_(FeedEntry.timestamp == cursor.timestamp, FeedEntry.id < cursor.id),
                )
            )
        stmt = stmt.order_by(FeedEntry.timestamp.desc(), FeedEntry.id.desc()).limit(size + 1)

        with self.store.read_session() as db:
            window = [_to_item(entry) for entry in db.execute(stmt).scalars()]
        return _page_from_window(window, size)

    def _page_size(self, limit: int | None) -> int:
        if limit is None:
            return self.config.effective_feed_page_size
        if limit <= 0:
            raise ValidationError(f"limit must be positive, got {limit}", field="limit")
        return min(limit, self.config.feed_max_page_size)
