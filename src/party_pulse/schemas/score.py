"""Engagement score schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

HEAT_LABELS = {
    1: "WARMING UP",
    2: "GETTING LIT",
    3: "ON FIRE",
    4: "BLAZING",
    5: "INFERNO",
}


class EngagementInputs(BaseModel):
    """The six counts a score is computed from, read as one snapshot."""

    model_config = ConfigDict(frozen=True)

    guest_count: int = 0
    media_count: int = 0
    comment_count: int = 0
    status_count: int = 0
    reaction_count: int = 0
    avg_vibe_level: float = 0.0


class EngagementScore(BaseModel):
    """Weighted engagement breakdown. Derived on every query, never stored."""

    model_config = ConfigDict(frozen=True)

    guest_score: int
    media_score: int
    comment_score: int
    status_score: int
    reaction_score: int
    vibe_score: int
    total: int
    heat_level: int

    @property
    def heat_label(self) -> str:
        return HEAT_LABELS[self.heat_level]


class PartyHeat(BaseModel):
    """A party's score, as listed by the hottest-parties ranking."""

    party_id: str
    title: str
    score: EngagementScore
