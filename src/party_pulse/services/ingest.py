"""Realtime ingest: typed events are queued and applied in the background.

The realtime transport calls :meth:`IngestWorker.ingest` for each incoming
event. Writes are applied by a single background task so the read path never
waits on them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, assert_never

from pydantic import ValidationError as PydanticValidationError

from party_pulse.core.errors import ConflictError, PulseError, ValidationError
from party_pulse.core.settings import Settings, settings as default_settings
from party_pulse.schemas.events import (
    CommentAdded,
    DrinkLogged,
    IngestEvent,
    MediaAdded,
    ReactionAdded,
    StatusPosted,
    VoteCast,
    VoteRetracted,
    event_adapter,
)
from party_pulse.services.party_activity import PartyActivity
from party_pulse.services.status_tracker import StatusTracker
from party_pulse.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.1


@dataclass
class IngestStats:
    """Counters of the events the worker has handled."""

    applied: int = 0
    rejected: int = 0
    failed: int = 0


class IngestWorker:
    """Applies realtime events to the ledger, tracker and activity log."""

    def __init__(
        self,
        ledger: VoteLedger,
        tracker: StatusTracker,
        activity: PartyActivity,
        *,
        config: Settings | None = None,
    ) -> None:
        self.ledger = ledger
        self.tracker = tracker
        self.activity = activity
        self.config = config or default_settings
        self.stats = IngestStats()
        self._queue: asyncio.Queue[IngestEvent] = asyncio.Queue(maxsize=self.config.ingest_queue_size)
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def ingest(self, event: IngestEvent | Mapping[str, Any]) -> None:
        """Queue one event for the background task.

        Raises:
            ValidationError: If a raw mapping is not a known event.
            ConflictError: If the queue is full.
        """
        if isinstance(event, Mapping):
            try:
                event = event_adapter.validate_python(event)
            except PydanticValidationError as exc:
                raise ValidationError(f"Malformed ingest event: {exc}", field="event") from exc
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as exc:
            raise ConflictError(
                f"Ingest queue is full ({self._queue.maxsize} events pending)"
            ) from exc

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the background apply loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the apply loop once the event in progress is done."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=POLL_INTERVAL_SECONDS)
            except TimeoutError:
                continue
            try:
                await asyncio.to_thread(self.apply, event)
                self.stats.applied += 1
            except PulseError as e:
                self.stats.rejected += 1
                logger.warning("Skipping %s event: %s", event.type, e.message)
            except Exception:
                self.stats.failed += 1
                logger.error("Unexpected failure applying %s event", event.type, exc_info=True)
            finally:
                self._queue.task_done()

    def apply(self, event: IngestEvent) -> None:
        """Apply one event synchronously."""
        match event:
            case VoteCast():
                self.ledger.cast_vote(event.subject_id, event.voter_id, event.direction)
            case VoteRetracted():
                self.ledger.retract_vote(event.subject_id, event.voter_id)
            case StatusPosted():
                self.tracker.post_status(
                    event.party_id,
                    event.user_id,
                    event.status_type,
                    event.level,
                    message=event.message,
                    emoji=event.emoji,
                )
            case CommentAdded():
                self.activity.add_comment(
                    event.party_id, event.user_id, event.content, parent_id=event.parent_id
                )
            case MediaAdded():
                self.activity.add_media(
                    event.party_id,
                    event.user_id,
                    event.media_type,
                    event.url,
                    caption=event.caption,
                )
            case ReactionAdded():
                self.activity.add_reaction(
                    event.party_id, event.user_id, event.target_type, event.target_id, event.emoji
                )
            case DrinkLogged():
                self.activity.log_drink(
                    event.party_id, event.user_id, event.drink_type, custom_name=event.custom_name
                )
            case _:
                assert_never(event)
