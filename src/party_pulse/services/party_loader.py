"""Fan-out initial load of everything a party screen shows."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from party_pulse.core.settings import Settings, settings as default_settings
from party_pulse.schemas.party import PartySnapshot
from party_pulse.services.engagement import EngagementService
from party_pulse.services.feed_composer import FeedComposer
from party_pulse.services.party_activity import PartyActivity
from party_pulse.services.polls import PollService
from party_pulse.services.status_tracker import StatusTracker

logger = logging.getLogger(__name__)


def _describe_failure(exc: BaseException, timeout: float | None) -> str:
    if isinstance(exc, TimeoutError):
        return f"timed out after {timeout}s"
    return f"{type(exc).__name__}: {exc}"


class PartyLoader:
    """Loads the independent sections of a party concurrently.

    Each section runs on a worker thread and is bounded by
    ``load_section_timeout_seconds`` (0 disables the bound). A failing
    section does not fail the load: it is left empty on the snapshot and
    reported in ``failed_sections``. Cancelling :meth:`load` abandons the
    sections still in flight; reads have nothing to roll back.
    """

    def __init__(
        self,
        activity: PartyActivity,
        polls: PollService,
        tracker: StatusTracker,
        engagement: EngagementService,
        feed: FeedComposer,
        *,
        config: Settings | None = None,
    ) -> None:
        self.activity = activity
        self.polls = polls
        self.tracker = tracker
        self.engagement = engagement
        self.feed = feed
        self.config = config or default_settings

    def sections(self, party_id: str) -> dict[str, Callable[[], Any]]:
        """Return the section loaders keyed by snapshot field name."""
        return {
            "guests": lambda: self.activity.list_guests(party_id),
            "media": lambda: self.activity.list_media(party_id),
            "comments": lambda: self.activity.list_comments(party_id),
            "polls": lambda: self.polls.list_polls(party_id),
            "statuses": lambda: self.tracker.latest_statuses(party_id),
            "score": lambda: self.engagement.compute_score(party_id),
            "feed": lambda: self.feed.page(party_id, limit=self.config.load_feed_page_size),
        }

    async def load(self, party_id: str) -> PartySnapshot:
        """Load every section of ``party_id`` at once.

        Raises:
            NotFoundError: If the party does not exist.
        """
        await asyncio.to_thread(self.activity.get_party, party_id)

        timeout = self.config.load_section_timeout_seconds or None
        loaders = self.sections(party_id)
        results = await asyncio.gather(
            *(self._run_section(loader, timeout) for loader in loaders.values()),
            return_exceptions=True,
        )

        loaded: dict[str, Any] = {}
        failed: dict[str, str] = {}
        for name, result in zip(loaders, results, strict=True):
            if isinstance(result, Exception):
                failed[name] = _describe_failure(result, timeout)
                logger.warning("Section %s of party %s failed: %s", name, party_id, failed[name])
            elif isinstance(result, BaseException):
                raise result
            else:
                loaded[name] = result

        if failed:
            logger.info(
                "Party %s loaded with %d of %d sections", party_id, len(loaded), len(loaders)
            )
        return PartySnapshot(party_id=party_id, failed_sections=failed, **loaded)

    @staticmethod
    async def _run_section(loader: Callable[[], Any], timeout: float | None) -> Any:
        return await asyncio.wait_for(asyncio.to_thread(loader), timeout=timeout)
