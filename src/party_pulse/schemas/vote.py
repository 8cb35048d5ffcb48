"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from party_pulse.schemas.common import UTCDatetime

Direction = Literal[-1, 1]
UP: Direction = 1
DOWN: Direction = -1


class VoteOutcome(BaseModel):
    """Where one voter's vote ended up and the subject's net tally after it."""

    model_config = ConfigDict(frozen=True)

    direction: Literal[-1, 0, 1] = Field(..., description="0 when the vote toggled off")
    tally: int


class RankedSubject(BaseModel):
    """A subject with its counters, as returned by rankings."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    party_id: str
    kind: str
    label: str
    status: str
    upvotes: int
    downvotes: int
    created_at: UTCDatetime
    poll_id: str | None = None
    option_user_id: str | None = None
    requested_by: str | None = None
    artist: str | None = None
    spotify_uri: str | None = None
    played_at: UTCDatetime | None = None

    @property
    def tally(self) -> int:
        return self.upvotes - self.downvotes


class PollOut(BaseModel):
    """A poll with its options in ranked order."""

    id: str
    party_id: str
    question: str
    poll_type: str
    is_active: bool
    created_at: UTCDatetime
    options: list[RankedSubject] = Field(default_factory=list)

    @property
    def total_votes(self) -> int:
        return sum(option.upvotes + option.downvotes for option in self.options)
