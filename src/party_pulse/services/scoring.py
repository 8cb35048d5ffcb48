"""
Engagement (heat) scoring.

The score is a pure function of six counts. Callers recompute it from a fresh
snapshot on every query; it is never stored or updated incrementally.
"""

from __future__ import annotations

import math

from party_pulse.core.errors import ValidationError
from party_pulse.schemas.score import EngagementInputs, EngagementScore

GUEST_WEIGHT = 10
MEDIA_WEIGHT = 25
COMMENT_WEIGHT = 5
STATUS_WEIGHT = 8
REACTION_WEIGHT = 2
VIBE_WEIGHT = 15

# Lower bounds of heat levels 2..5; anything below the first is level 1.
HEAT_THRESHOLDS: tuple[int, ...] = (100, 300, 600, 1000)


def heat_level(total: int) -> int:
    """
    Discretize a total score into a heat level.

    [0,100) -> 1, [100,300) -> 2, [300,600) -> 3, [600,1000) -> 4, [1000,inf) -> 5

    Args:
        total: Non-negative total score

    Returns:
        Heat level (1-5)
    """
    level = 1
    for threshold in HEAT_THRESHOLDS:
        if total >= threshold:
            level += 1
    return level


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score(
    guest_count: int,
    media_count: int,
    comment_count: int,
    status_count: int,
    reaction_count: int,
    avg_vibe_level: float,
) -> EngagementScore:
    """
    Compute the weighted engagement score.

    vibe_score = round(avg_vibe_level * 15 * (status_count + 1)), rounding
    halves up.

    Args:
        guest_count: Accepted guests
        media_count: Media items shared
        comment_count: Comments posted
        status_count: Live status records
        reaction_count: Reactions added
        avg_vibe_level: Mean level of live vibe checks (0 when none)

    Returns:
        Score breakdown with total and heat level

    Raises:
        ValidationError: If any input is negative or not finite
    """
    counts = {
        "guest_count": guest_count,
        "media_count": media_count,
        "comment_count": comment_count,
        "status_count": status_count,
        "reaction_count": reaction_count,
    }
    for name, value in counts.items():
        if value < 0:
            raise ValidationError(f"{name} must not be negative, got {value}", field=name)
    if not math.isfinite(avg_vibe_level) or avg_vibe_level < 0:
        raise ValidationError(
            f"avg_vibe_level must be a non-negative number, got {avg_vibe_level}",
            field="avg_vibe_level",
        )

    guest_score = guest_count * GUEST_WEIGHT
    media_score = media_count * MEDIA_WEIGHT
    comment_score = comment_count * COMMENT_WEIGHT
    status_score = status_count * STATUS_WEIGHT
    reaction_score = reaction_count * REACTION_WEIGHT
    vibe_score = _round_half_up(avg_vibe_level * VIBE_WEIGHT * (status_count + 1))

    total = guest_score + media_score + comment_score + status_score + reaction_score + vibe_score

    return EngagementScore(
        guest_score=guest_score,
        media_score=media_score,
        comment_score=comment_score,
        status_score=status_score,
        reaction_score=reaction_score,
        vibe_score=vibe_score,
        total=total,
        heat_level=heat_level(total),
    )


def score_inputs(inputs: EngagementInputs) -> EngagementScore:
    """Convenience wrapper computing the score from a snapshot object."""
    return score(
        inputs.guest_count,
        inputs.media_count,
        inputs.comment_count,
        inputs.status_count,
        inputs.reaction_count,
        inputs.avg_vibe_level,
    )
