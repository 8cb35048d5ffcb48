"""Party-related Pydantic schemas, including the initial load snapshot."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from party_pulse.core.errors import PartialLoadError
from party_pulse.schemas.common import UTCDatetime
from party_pulse.schemas.feed import FeedPage
from party_pulse.schemas.score import EngagementScore
from party_pulse.schemas.status import StatusRecord
from party_pulse.schemas.vote import PollOut

GuestStatus = Literal["pending", "accepted", "declined", "maybe"]
MediaType = Literal["photo", "video"]


class PartyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    created_by: str
    created_at: UTCDatetime
    is_active: bool


class GuestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    party_id: str
    user_id: str
    status: GuestStatus
    invited_at: UTCDatetime
    responded_at: UTCDatetime | None = None


class MediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    party_id: str
    user_id: str
    media_type: MediaType
    url: str
    caption: str | None = None
    created_at: UTCDatetime


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    party_id: str
    user_id: str
    content: str
    parent_id: str | None = None
    created_at: UTCDatetime


class PartySnapshot(BaseModel):
    """Result of the fan-out initial load.

    Each section is ``None`` when it failed to load; ``failed_sections`` maps
    the section name to the error that stopped it.
    """

    party_id: str
    guests: list[GuestOut] | None = None
    media: list[MediaOut] | None = None
    comments: list[CommentOut] | None = None
    polls: list[PollOut] | None = None
    statuses: list[StatusRecord] | None = None
    score: EngagementScore | None = None
    feed: FeedPage | None = None
    failed_sections: dict[str, str] = Field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return not self.failed_sections

    def raise_for_failures(self) -> None:
        """Raise ``PartialLoadError`` if any section failed."""
        if self.failed_sections:
            raise PartialLoadError(dict(self.failed_sections), snapshot=self)


class ReactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    party_id: str
    user_id: str
    target_type: str
    target_id: str
    emoji: str
    created_at: UTCDatetime


class DrinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    party_id: str
    user_id: str
    drink_type: str
    custom_name: str | None = None
    logged_at: UTCDatetime
