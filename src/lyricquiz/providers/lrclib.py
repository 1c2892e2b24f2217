"""Lyrics provider backed by lrclib.net.

Endpoint: ``GET /api/get?artist_name=<artist>&track_name=<title>``

Response (200)::

    {"trackName": "...", "artistName": "...", "plainLyrics": "...",
     "syncedLyrics": "[00:12.34] ...", "instrumental": false, ...}

A 404 means lrclib has no record of the track.  Instrumental tracks come
back with empty ``plainLyrics``; both cases are reported as "no lyrics".
No authentication is needed.
"""

import httpx

from ..exceptions import FetchError
from ..models import Song
from .base import LyricsProvider

DEFAULT_BASE_URL = "https://lrclib.net"


class LrcLibProvider(LyricsProvider):
    """Fetch plain lyrics from an lrclib instance."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        user_agent: str = "lyricquiz/0.1",
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": user_agent},
            timeout=timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "LrcLibProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_lyrics(self, song: Song) -> str | None:
        url = f"{self.base_url}/api/get"
        params = {"artist_name": song.primary_artist_name, "track_name": song.title}
        try:
            resp = await self._client.get(url, params=params)
        except httpx.RequestError as exc:
            raise FetchError(url, 0) from exc
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise FetchError(url, resp.status_code)

        plain = resp.json().get("plainLyrics") or ""
        return plain if plain.strip() else None
