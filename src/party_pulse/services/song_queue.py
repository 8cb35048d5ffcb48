"""Song request queue built on the vote ledger."""

from __future__ import annotations

import logging

from sqlalchemy import select

from party_pulse.core.errors import InvalidStateError, NotFoundError, ValidationError
from party_pulse.db.time import utcnow
from party_pulse.models import Party, VoteSubject
from party_pulse.models.subject import (
    SUBJECT_KIND_SONG,
    SUBJECT_STATUS_OPEN,
    SUBJECT_STATUS_PLAYED,
    SUBJECT_STATUS_PLAYING,
    SUBJECT_STATUS_REJECTED,
)
from party_pulse.schemas.vote import UP, RankedSubject
from party_pulse.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)

QUEUE_STATUSES = (SUBJECT_STATUS_OPEN, SUBJECT_STATUS_PLAYING)


class SongQueue:
    """Guests request songs and vote them up or down the queue.

    A request starts ``open`` with the requester's own upvote. Playing a song
    retires whatever was playing before it as ``played``; skipping marks it
    ``rejected``. Played and rejected songs keep their final tally.
    """

    def __init__(self, ledger: VoteLedger) -> None:
        self.ledger = ledger
        self.store = ledger.store

    def request_song(
        self,
        party_id: str,
        requested_by: str,
        title: str,
        artist: str,
        spotify_uri: str | None = None,
    ) -> RankedSubject:
        if not requested_by:
            raise ValidationError("requested_by is required", field="requested_by")
        if not title or not title.strip():
            raise ValidationError("title is required", field="title")
        with self.store.session() as db:
            if db.get(Party, party_id) is None:
                raise NotFoundError("Party", party_id)
            song = VoteSubject(
                party_id=party_id,
                kind=SUBJECT_KIND_SONG,
                label=title.strip(),
                artist=artist,
                spotify_uri=spotify_uri,
                requested_by=requested_by,
            )
            db.add(song)
            db.flush()
            song_id = song.id

        self.ledger.cast_vote(song_id, requested_by, UP)
        logger.info("Song %s requested in party %s by %s", song_id, party_id, requested_by)
        return self.ledger.get_subject(song_id)

    def vote(self, song_id: str, voter_id: str, direction: int) -> int:
        return self.ledger.cast_vote(song_id, voter_id, direction)

    def queue(self, party_id: str) -> list[RankedSubject]:
        """Open and playing songs, highest tally first."""
        return self.ledger.rank(party_id, kind=SUBJECT_KIND_SONG, statuses=QUEUE_STATUSES)

    def now_playing(self, party_id: str) -> RankedSubject | None:
        playing = self.ledger.rank(
            party_id, kind=SUBJECT_KIND_SONG, statuses=(SUBJECT_STATUS_PLAYING,)
        )
        return playing[0] if playing else None

    def play_song(self, song_id: str) -> RankedSubject:
        """Start playing ``song_id``.

        Raises:
            NotFoundError: If the song does not exist.
            InvalidStateError: If the song was already played or skipped.
        """
        song = self._get_song(song_id)
        # The status is re-checked under the subject lock; the read above may be stale.
        playing = self.ledger.set_status(
            song_id, SUBJECT_STATUS_PLAYING, expected=(SUBJECT_STATUS_OPEN, SUBJECT_STATUS_PLAYING)
        )

        with self.store.read_session() as db:
            current_ids = list(
                db.execute(
                    select(VoteSubject.id).where(
                        VoteSubject.party_id == song.party_id,
                        VoteSubject.kind == SUBJECT_KIND_SONG,
                        VoteSubject.status == SUBJECT_STATUS_PLAYING,
                        VoteSubject.id != song_id,
                    )
                ).scalars()
            )
        now = utcnow()
        for current_id in current_ids:
            try:
                self.ledger.set_status(
                    current_id,
                    SUBJECT_STATUS_PLAYED,
                    played_at=now,
                    expected=(SUBJECT_STATUS_PLAYING,),
                )
            except InvalidStateError as exc:
                logger.debug("Song %s already left the playing state: %s", current_id, exc.status)

        logger.info("Now playing song %s in party %s", song_id, song.party_id)
        return playing

    def skip_song(self, song_id: str) -> RankedSubject:
        song = self._get_song(song_id)
        skipped = self.ledger.set_status(
            song_id, SUBJECT_STATUS_REJECTED, expected=(SUBJECT_STATUS_OPEN, SUBJECT_STATUS_PLAYING)
        )
        logger.info("Skipped song %s in party %s", song_id, song.party_id)
        return skipped

    def played_songs(self, party_id: str) -> list[RankedSubject]:
        """Played songs, most recently played first."""
        stmt = (
            select(VoteSubject)
            .where(
                VoteSubject.party_id == party_id,
                VoteSubject.kind == SUBJECT_KIND_SONG,
                VoteSubject.status == SUBJECT_STATUS_PLAYED,
            )
            .order_by(VoteSubject.played_at.desc(), VoteSubject.id.asc())
        )
        with self.store.read_session() as db:
            return [RankedSubject.model_validate(s) for s in db.execute(stmt).scalars()]

    def _get_song(self, song_id: str) -> RankedSubject:
        song = self.ledger.get_subject(song_id)
        if song.kind != SUBJECT_KIND_SONG:
            raise NotFoundError("Song", song_id)
        return song
