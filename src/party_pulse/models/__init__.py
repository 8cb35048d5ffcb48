# src/party_pulse/models/__init__.py
"""SQLAlchemy models for the engagement core."""

from .feed import FeedEntry
from .party import DrinkLog, Party, PartyComment, PartyGuest, PartyMedia, PartyReaction
from .status import PartyStatus
from .subject import Poll, VoteSubject
from .vote import SubjectVote

__all__ = [
    "FeedEntry",
    "DrinkLog", "Party", "PartyComment", "PartyGuest", "PartyMedia", "PartyReaction",
    "PartyStatus",
    "Poll", "VoteSubject",
    "SubjectVote",
]
