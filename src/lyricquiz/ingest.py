"""Concurrent lyric fetching for a GameSession.

One fetch is issued per song and all of them run at once on the event
loop, so they resolve in any order.  Each resolution is recorded in a
single synchronous step (:meth:`LyricIngestionPipeline._record`): the pool
or store is updated and the "enough songs ready" check runs against the
result, with no ``await`` in between.  The session's one-shot ``started``
flag keeps the game from being started twice.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .exceptions import FetchError
from .models import Song
from .providers.base import LyricsProvider

if TYPE_CHECKING:
    from .session import GameSession

logger = logging.getLogger(__name__)


class LyricIngestionPipeline:
    def __init__(self, session: "GameSession", provider: LyricsProvider):
        self.session = session
        self.provider = provider

    async def ingest(self, songs: Iterable[Song]) -> None:
        """Fetch lyrics for every song concurrently and feed the results to the session."""
        await asyncio.gather(*(self._ingest_one(song) for song in songs))

    async def _ingest_one(self, song: Song) -> None:
        logger.debug("Fetching lyrics for %r by %r", song.title, song.primary_artist_name)
        try:
            lyrics = await self.provider.fetch_lyrics(song)
        except FetchError as exc:
            logger.warning("Error fetching lyrics for %r: %s", song.title, exc)
            lyrics = None
        except Exception:
            logger.exception("Unexpected error fetching lyrics for %r", song.title)
            lyrics = None
        self._record(song, lyrics)

    def _record(self, song: Song, lyrics: str | None) -> None:
        session = self.session
        if lyrics is None:
            session.drop_song(song)
        else:
            session.store_lyrics(song, lyrics)

        if not session.started and self.enough_songs_ready():
            session.begin()

    def enough_songs_ready(self) -> bool:
        """True when the first ``questions_per_round`` pool songs all have lyrics."""
        session = self.session
        head = session.state.song_pool[: session.questions_per_round]
        return all(session.lyrics.get(song) for song in head)
