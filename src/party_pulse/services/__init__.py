# src/party_pulse/services/__init__.py
"""Engagement services: voting, statuses, scoring, feeds and loading."""

from .engagement import EngagementService
from .feed_composer import FeedComposer
from .ingest import IngestWorker
from .optimistic import OptimisticVoteBuffer
from .party_activity import PartyActivity
from .party_loader import PartyLoader
from .polls import PollService
from .song_queue import SongQueue
from .status_tracker import StatusTracker
from .vote_ledger import VoteLedger

__all__ = [
    "EngagementService",
    "FeedComposer",
    "IngestWorker",
    "OptimisticVoteBuffer",
    "PartyActivity",
    "PartyLoader",
    "PollService",
    "SongQueue",
    "StatusTracker",
    "VoteLedger",
]
