import asyncio
import threading

import httpx
import pytest

from lyricquiz.exceptions import AuthError, FetchError
from lyricquiz.models import Song
from lyricquiz.providers.lrclib import LrcLibProvider
from lyricquiz.providers.spotify import SpotifyTopTracksProvider, song_from_track

SONG = Song(title="Dark Star", primary_artist_name="Grateful Dead", album_name="Live/Dead")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fetch_lyrics(handler, song=SONG, base_url="https://lrclib.net"):
    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with LrcLibProvider(base_url, client=client) as provider:
            return await provider.fetch_lyrics(song)

    return asyncio.run(run())


def _fetch_top_tracks(handler, limit=50, token="tok"):
    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with SpotifyTopTracksProvider(lambda: token, client=client) as provider:
            return await provider.fetch_top_tracks(limit)

    return asyncio.run(run())


# ---------------------------------------------------------------------------
# LrcLibProvider
# ---------------------------------------------------------------------------


def test_lrclib_queries_artist_and_track():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"plainLyrics": "Dark star crashes\npouring its light\n"})

    lyrics = _fetch_lyrics(handler)
    assert lyrics == "Dark star crashes\npouring its light\n"
    assert seen["url"].host == "lrclib.net"
    assert seen["url"].path == "/api/get"
    assert dict(seen["url"].params) == {
        "artist_name": "Grateful Dead",
        "track_name": "Dark Star",
    }


def test_lrclib_custom_base_url_trailing_slash():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"plainLyrics": "la"})

    _fetch_lyrics(handler, base_url="http://localhost:3000/")
    assert str(seen["url"]).startswith("http://localhost:3000/api/get?")


def test_lrclib_404_means_no_lyrics():
    assert _fetch_lyrics(lambda request: httpx.Response(404, json={"code": 404})) is None


def test_lrclib_instrumental_means_no_lyrics():
    payload = {"plainLyrics": "", "syncedLyrics": "[au: instrumental]", "instrumental": True}
    assert _fetch_lyrics(lambda request: httpx.Response(200, json=payload)) is None


def test_lrclib_missing_plain_lyrics_means_no_lyrics():
    assert _fetch_lyrics(lambda request: httpx.Response(200, json={"plainLyrics": None})) is None


def test_lrclib_whitespace_lyrics_mean_no_lyrics():
    assert _fetch_lyrics(lambda request: httpx.Response(200, json={"plainLyrics": " \n\n "})) is None


def test_lrclib_lyrics_are_returned_untouched():
    text = "\n\nVerse one\n\n\nVerse two\n"
    assert _fetch_lyrics(lambda request: httpx.Response(200, json={"plainLyrics": text})) == text


def test_lrclib_server_error_raises():
    with pytest.raises(FetchError) as exc_info:
        _fetch_lyrics(lambda request: httpx.Response(500))
    assert exc_info.value.status_code == 500


def test_lrclib_transport_error_raises_status_zero():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as exc_info:
        _fetch_lyrics(handler)
    assert exc_info.value.status_code == 0


# ---------------------------------------------------------------------------
# SpotifyTopTracksProvider
# ---------------------------------------------------------------------------


TRACK = {
    "name": "Ripple",
    "album": {"name": "American Beauty"},
    "artists": [{"name": "Grateful Dead"}, {"name": "Someone Else"}],
}


def test_song_from_track_uses_first_artist():
    song = song_from_track(TRACK)
    assert song.title == "Ripple"
    assert song.primary_artist_name == "Grateful Dead"
    assert song.album_name == "American Beauty"


def test_song_from_track_without_album():
    song = song_from_track({"name": "Single", "artists": [{"name": "Solo"}]})
    assert song.album_name is None


def test_top_tracks_sends_bearer_token_and_params():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"items": [TRACK, TRACK]})

    songs = _fetch_top_tracks(handler, limit=20)
    assert seen["auth"] == "Bearer tok"
    assert seen["params"] == {"time_range": "long_term", "limit": "20"}
    assert len(songs) == 2
    assert songs[0] is not songs[1]


def test_top_tracks_limit_is_capped():
    seen = {}

    def handler(request):
        seen["limit"] = request.url.params["limit"]
        return httpx.Response(200, json={"items": []})

    assert _fetch_top_tracks(handler, limit=500) == []
    assert seen["limit"] == "50"


def test_top_tracks_401_raises_auth_error():
    with pytest.raises(AuthError):
        _fetch_top_tracks(lambda request: httpx.Response(401))


def test_top_tracks_other_error_raises_fetch_error():
    with pytest.raises(FetchError) as exc_info:
        _fetch_top_tracks(lambda request: httpx.Response(503))
    assert exc_info.value.status_code == 503


def test_top_tracks_token_source_runs_off_the_event_loop_thread():
    seen = {}

    def token_source():
        seen["thread"] = threading.get_ident()
        return "tok"

    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"items": []})))
        async with SpotifyTopTracksProvider(token_source, client=client) as provider:
            await provider.fetch_top_tracks(5)
        return threading.get_ident()

    loop_thread = asyncio.run(run())
    assert seen["thread"] != loop_thread
