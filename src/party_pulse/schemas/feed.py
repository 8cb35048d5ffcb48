"""Feed item schemas.

A feed item's payload is a tagged union discriminated by ``kind``; consumers
match on the payload type exhaustively.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from party_pulse.schemas.common import FeedCursor, UTCDatetime
from party_pulse.schemas.status import StatusType


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str


class CommentPayload(_Payload):
    kind: Literal["comment"] = "comment"
    comment_id: str
    content: str
    parent_id: str | None = None


class StatusPayload(_Payload):
    kind: Literal["status"] = "status"
    status_type: StatusType
    level: int = Field(..., ge=1, le=5)
    message: str | None = None


class DrinkPayload(_Payload):
    kind: Literal["drink"] = "drink"
    drink_id: str
    drink_type: str
    custom_name: str | None = None


class MediaPayload(_Payload):
    kind: Literal["media"] = "media"
    media_id: str
    media_type: Literal["photo", "video"]
    url: str
    caption: str | None = None


FeedPayload = Annotated[
    CommentPayload | StatusPayload | DrinkPayload | MediaPayload,
    Field(discriminator="kind"),
]


class FeedItem(BaseModel):
    """An immutable activity feed entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    party_id: str
    timestamp: UTCDatetime
    payload: FeedPayload

    @property
    def kind(self) -> str:
        return self.payload.kind

    @property
    def key(self) -> tuple[datetime, str]:
        """Sort key; feeds are ordered by this key descending."""
        return (self.timestamp, self.id)

    def cursor(self) -> FeedCursor:
        return FeedCursor(timestamp=self.timestamp, id=self.id)


class FeedPage(BaseModel):
    """One page of feed items, newest first.

    ``next_cursor`` is ``None`` once the reader has reached the end.
    """

    items: list[FeedItem] = Field(default_factory=list)
    next_cursor: FeedCursor | None = None

    @property
    def is_end(self) -> bool:
        return self.next_cursor is None
