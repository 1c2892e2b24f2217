"""Top-tracks provider backed by the Spotify Web API.

Endpoint: ``GET /v1/me/top/tracks?time_range=long_term&limit=<n>``
(bearer token with the ``user-top-read`` scope)

Only three fields of each track object are used::

    {"name": "...", "album": {"name": "..."}, "artists": [{"name": "..."}, ...]}
"""

import asyncio
from collections.abc import Callable

import httpx

from ..exceptions import AuthError, FetchError
from ..models import Song
from .base import TopTracksProvider

TOP_TRACKS_URL = "https://api.spotify.com/v1/me/top/tracks"
MAX_LIMIT = 50  # Spotify rejects larger pages


def song_from_track(track: dict) -> Song:
    """Convert a Spotify track object to a Song (first listed artist only)."""
    artists = track.get("artists") or [{}]
    album = track.get("album") or {}
    return Song(
        title=track.get("name", ""),
        primary_artist_name=artists[0].get("name", ""),
        album_name=album.get("name"),
    )


class SpotifyTopTracksProvider(TopTracksProvider):
    """Fetch the user's long-term top tracks.

    *token_source* is called once per request and must return a valid bearer
    token, e.g. :meth:`lyricquiz.auth.SpotifyAuth.get_access_token`.
    """

    def __init__(
        self,
        token_source: Callable[[], str],
        *,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.token_source = token_source
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "SpotifyTopTracksProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_top_tracks(self, limit: int) -> list[Song]:
        # token_source may refresh over a blocking client
        token = await asyncio.to_thread(self.token_source)
        headers = {"Authorization": f"Bearer {token}"}
        params = {"time_range": "long_term", "limit": min(limit, MAX_LIMIT)}
        try:
            resp = await self._client.get(TOP_TRACKS_URL, params=params, headers=headers)
        except httpx.RequestError as exc:
            raise FetchError(TOP_TRACKS_URL, 0) from exc
        if resp.status_code == 401:
            raise AuthError("access token was rejected; run `lyricquiz login`")
        if resp.status_code != 200:
            raise FetchError(TOP_TRACKS_URL, resp.status_code)

        return [song_from_track(item) for item in resp.json().get("items", [])]
