"""Pydantic schemas for the engagement core."""

from .common import FeedCursor
from .events import IngestEvent, event_adapter
from .feed import (
    CommentPayload,
    DrinkPayload,
    FeedItem,
    FeedPage,
    FeedPayload,
    MediaPayload,
    StatusPayload,
)
from .party import (
    CommentOut,
    DrinkOut,
    GuestOut,
    MediaOut,
    PartyOut,
    PartySnapshot,
    ReactionOut,
)
from .score import EngagementInputs, EngagementScore, PartyHeat
from .status import StatusRecord, StatusType
from .vote import DOWN, UP, Direction, PollOut, RankedSubject, VoteOutcome

__all__ = [
    "FeedCursor",
    "IngestEvent", "event_adapter",
    "CommentPayload", "DrinkPayload", "FeedItem", "FeedPage", "FeedPayload",
    "MediaPayload", "StatusPayload",
    "CommentOut", "DrinkOut", "GuestOut", "MediaOut", "PartyOut", "PartySnapshot",
    "ReactionOut",
    "EngagementInputs", "EngagementScore", "PartyHeat",
    "StatusRecord", "StatusType",
    "DOWN", "UP", "Direction", "PollOut", "RankedSubject", "VoteOutcome",
]
