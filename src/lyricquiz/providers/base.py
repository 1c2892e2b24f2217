from abc import ABC, abstractmethod

from ..models import Song


class LyricsProvider(ABC):
    """Source of plain lyrics for a song."""

    @abstractmethod
    async def fetch_lyrics(self, song: Song) -> str | None:
        """Return the song's plain lyrics, or None if the provider has none.

        Raises FetchError on HTTP-level failures.
        """


class TopTracksProvider(ABC):
    """Source of the user's favourite songs."""

    @abstractmethod
    async def fetch_top_tracks(self, limit: int) -> list[Song]:
        """Return up to *limit* songs, most listened first.

        Raises AuthError when the service rejects the credentials and
        FetchError on other HTTP-level failures.
        """
