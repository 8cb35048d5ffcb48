"""Engagement service: snapshot reads feeding the pure score function."""

from __future__ import annotations

import logging

from party_pulse.core.errors import NotFoundError, ValidationError
from party_pulse.core.settings import Settings, settings as default_settings
from party_pulse.db.session import PartyStore
from party_pulse.repositories.party_repo import PartyRepository
from party_pulse.schemas.score import EngagementInputs, EngagementScore, PartyHeat
from party_pulse.services.scoring import score_inputs

logger = logging.getLogger(__name__)


class EngagementService:
    """Computes heat scores from one consistent read of a party's counts."""

    def __init__(self, store: PartyStore, *, config: Settings | None = None) -> None:
        self.store = store
        self.config = config or default_settings

    def snapshot(self, party_id: str) -> EngagementInputs:
        """Read the six score inputs of a party in one statement.

        Raises:
            NotFoundError: If the party does not exist.
        """
        with self.store.read_session() as db:
            repo = PartyRepository(db)
            if repo.get_by_id(party_id) is None:
                raise NotFoundError("Party", party_id)
            return repo.engagement_inputs(party_id)

    def compute_score(self, party_id: str) -> EngagementScore:
        inputs = self.snapshot(party_id)
        result = score_inputs(inputs)
        logger.debug("Party %s scored %d (heat %d)", party_id, result.total, result.heat_level)
        return result

    def hottest_parties(self, limit: int = 10) -> list[PartyHeat]:
        """Rank active parties by total score, highest first.

        At most ``hottest_scan_limit`` active parties are scored. Ties are
        broken by party id so the order is deterministic.
        """
        if limit <= 0:
            raise ValidationError(f"limit must be positive, got {limit}", field="limit")
        with self.store.read_session() as db:
            repo = PartyRepository(db)
            ranked = [
                PartyHeat(
                    party_id=party.id,
                    title=party.title,
                    score=score_inputs(repo.engagement_inputs(party.id)),
                )
                for party in repo.list_active(self.config.hottest_scan_limit)
            ]
        ranked.sort(key=lambda heat: (-heat.score.total, heat.party_id))
        return ranked[:limit]
