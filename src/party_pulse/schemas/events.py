"""Realtime events accepted by the ingest entrypoint."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from party_pulse.schemas.party import MediaType
from party_pulse.schemas.status import StatusType
from party_pulse.schemas.vote import Direction


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class VoteCast(_Event):
    type: Literal["vote_cast"] = "vote_cast"
    subject_id: str
    voter_id: str
    direction: Direction


class VoteRetracted(_Event):
    type: Literal["vote_retracted"] = "vote_retracted"
    subject_id: str
    voter_id: str


class StatusPosted(_Event):
    type: Literal["status_posted"] = "status_posted"
    party_id: str
    user_id: str
    status_type: StatusType
    level: int
    message: str | None = None
    emoji: str | None = None


class CommentAdded(_Event):
    type: Literal["comment_added"] = "comment_added"
    party_id: str
    user_id: str
    content: str
    parent_id: str | None = None


class MediaAdded(_Event):
    type: Literal["media_added"] = "media_added"
    party_id: str
    user_id: str
    media_type: MediaType
    url: str
    caption: str | None = None


class ReactionAdded(_Event):
    type: Literal["reaction_added"] = "reaction_added"
    party_id: str
    user_id: str
    target_type: str
    target_id: str
    emoji: str


class DrinkLogged(_Event):
    type: Literal["drink_logged"] = "drink_logged"
    party_id: str
    user_id: str
    drink_type: str
    custom_name: str | None = None


IngestEvent = Annotated[
    VoteCast
    | VoteRetracted
    | StatusPosted
    | CommentAdded
    | MediaAdded
    | ReactionAdded
    | DrinkLogged,
    Field(discriminator="type"),
]

event_adapter: TypeAdapter[IngestEvent] = TypeAdapter(IngestEvent)
