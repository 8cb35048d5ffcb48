"""Status-related Pydantic schemas."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from party_pulse.schemas.common import UTCDatetime

MIN_LEVEL = 1
MAX_LEVEL = 5


class StatusType(StrEnum):
    """Kinds of leveled status a guest can post."""

    DRUNK_METER = "drunk_meter"
    VIBE_CHECK = "vibe_check"
    RSVP = "rsvp"
    DANCE_MODE = "dance_mode"
    ENERGY = "energy"
    SOCIAL_METER = "social_meter"
    FOOD_STATUS = "food_status"

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]

    def label_for_level(self, level: int) -> str:
        """Return the display label for ``level``, clamped into 1-5."""
        index = max(0, min(level - 1, MAX_LEVEL - 1))
        return _LEVEL_LABELS[self][index]


_TYPE_LABELS: dict[StatusType, str] = {
    StatusType.DRUNK_METER: "DRUNK METER",
    StatusType.VIBE_CHECK: "VIBE CHECK",
    StatusType.RSVP: "RSVP",
    StatusType.DANCE_MODE: "DANCE MODE",
    StatusType.ENERGY: "ENERGY",
    StatusType.SOCIAL_METER: "SOCIAL",
    StatusType.FOOD_STATUS: "FOOD",
}

_LEVEL_LABELS: dict[StatusType, tuple[str, ...]] = {
    StatusType.DRUNK_METER: ("SOBER", "TIPSY", "BUZZED", "LIT", "GONE"),
    StatusType.VIBE_CHECK: ("CHILL", "WARMING UP", "FEELING IT", "PEAK", "EUPHORIC"),
    StatusType.RSVP: ("MAYBE", "PROBABLY", "ON MY WAY", "I'M HERE", "LEAVING SOON"),
    StatusType.DANCE_MODE: ("WALLFLOWER", "NODDING", "MOVING", "DANCING", "MAIN CHARACTER"),
    StatusType.ENERGY: ("LOW", "HANGING IN", "SOLID", "ENERGIZED", "UNSTOPPABLE"),
    StatusType.SOCIAL_METER: ("SOLO", "OBSERVING", "MINGLING", "IN THE MIX", "LIFE OF PARTY"),
    StatusType.FOOD_STATUS: ("FED", "GETTING HUNGRY", "NEED SNACK", "STARVING", "PIZZA TIME"),
}


class StatusRecord(BaseModel):
    """The live status of one user for one status type."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    party_id: str
    user_id: str
    status_type: StatusType
    level: int = Field(..., ge=MIN_LEVEL, le=MAX_LEVEL)
    message: str | None = None
    emoji: str | None = None
    updated_at: UTCDatetime

    @property
    def level_label(self) -> str:
        return self.status_type.label_for_level(self.level)
