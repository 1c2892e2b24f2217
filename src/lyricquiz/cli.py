import asyncio
import json
import logging
import random
import sys
from pathlib import Path

import click

from .auth import SpotifyAuth, TokenStore, extract_code
from .config import Settings, default_token_path
from .exceptions import ConfigError, FetchError, LyricQuizError
from .models import Song
from .providers.lrclib import DEFAULT_BASE_URL, LrcLibProvider
from .providers.spotify import MAX_LIMIT, SpotifyTopTracksProvider
from .session import DEFAULT_FEEDBACK_DELAY, DEFAULT_QUESTIONS_PER_ROUND, GameSession
from .terminal import TerminalGame

_LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def _fail(exc: Exception) -> None:
    msg = f"Error: {exc}"
    if isinstance(exc, FetchError) and exc.status_code == 0:
        msg = f"Error: Could not reach {exc.url}"
    click.echo(msg, err=True)
    sys.exit(1)


def load_songs_file(path: Path) -> list[Song]:
    """Read songs from a JSON list of ``{"title", "artist", "album"}`` objects."""
    try:
        entries = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(entries, list):
        raise ConfigError(f"{path} must contain a JSON list of songs")

    songs = []
    for n, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict) or not entry.get("title") or not entry.get("artist"):
            raise ConfigError(f"{path}: song #{n} needs a title and an artist")
        songs.append(Song(title=entry["title"], primary_artist_name=entry["artist"],
                          album_name=entry.get("album")))
    return songs


def _make_auth(settings: Settings) -> SpotifyAuth:
    return SpotifyAuth(
        settings.require_client_id(),
        settings.redirect_uri,
        TokenStore(settings.token_path),
        timeout=settings.http_timeout,
    )


async def fetch_top_tracks(settings: Settings) -> list[Song]:
    auth = _make_auth(settings)
    async with SpotifyTopTracksProvider(auth.get_access_token, timeout=settings.http_timeout) as provider:
        return await provider.fetch_top_tracks(settings.top_tracks_limit)


async def run_quiz(songs: list[Song], settings: Settings, rng: random.Random | None = None) -> None:
    """Play sessions over *songs* until the player stops."""
    async with LrcLibProvider(
        settings.lrclib_base_url, user_agent=settings.user_agent, timeout=settings.http_timeout
    ) as provider:
        restart = True
        while restart:
            session = GameSession(
                provider,
                questions_per_round=settings.questions_per_round,
                feedback_delay=settings.feedback_delay,
                rng=rng,
            )
            game = TerminalGame(session)
            ingest_task = session.start_game(songs)
            try:
                restart = await game.play(ingest_task)
            finally:
                session.close()


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_client_id_option = click.option(
    "--client-id", envvar="LYRICQUIZ_CLIENT_ID", default=None,
    help="Spotify application client id.")
_redirect_uri_option = click.option(
    "--redirect-uri", envvar="LYRICQUIZ_REDIRECT_URI", default=Settings.redirect_uri,
    show_default=True, help="Redirect URI registered for the Spotify application.")
_token_path_option = click.option(
    "--token-path", envvar="LYRICQUIZ_TOKEN_PATH", default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to keep Spotify tokens (default: ~/.lyricquiz/tokens.json).")
_timeout_option = click.option(
    "--timeout", "http_timeout", envvar="LYRICQUIZ_TIMEOUT", default=Settings.http_timeout,
    show_default=True, type=float, help="HTTP timeout in seconds.")


@click.group()
@click.option("-v", "--verbose", count=True, help="Log more (repeat for debug output).")
def main(verbose: int) -> None:
    """Guess your favourite songs from a snippet of their lyrics."""
    logging.basicConfig(
        level=_LOG_LEVELS[min(verbose, len(_LOG_LEVELS) - 1)],
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@_client_id_option
@_redirect_uri_option
@_token_path_option
@_timeout_option
def login(
    client_id: str | None, redirect_uri: str, token_path: Path | None, http_timeout: float
) -> None:
    """Log in to Spotify so top tracks can be used as the song list."""
    settings = Settings(
        spotify_client_id=client_id,
        redirect_uri=redirect_uri,
        token_path=token_path or default_token_path(),
        http_timeout=http_timeout,
    )
    try:
        auth = _make_auth(settings)
    except ConfigError as exc:
        _fail(exc)

    url, verifier = auth.start_login()
    click.echo("Open this URL in a browser and log in:\n")
    click.echo(f"  {url}\n")
    pasted = click.prompt("Paste the URL you were redirected to")

    try:
        auth.exchange_code(extract_code(pasted), verifier)
    except LyricQuizError as exc:
        _fail(exc)
    click.echo(f"Logged in. Tokens saved to {settings.token_path}")


@main.command()
@click.option("-f", "--songs-file", default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON list of songs to use instead of Spotify top tracks.")
@click.option("-n", "--questions", "questions_per_round", envvar="LYRICQUIZ_QUESTIONS",
              default=DEFAULT_QUESTIONS_PER_ROUND, show_default=True, type=int,
              help="Questions per round.")
@click.option("--delay", "feedback_delay", envvar="LYRICQUIZ_DELAY",
              default=DEFAULT_FEEDBACK_DELAY, show_default=True, type=float,
              help="Seconds to show answer feedback before the next question.")
@click.option("--limit", "top_tracks_limit", envvar="LYRICQUIZ_LIMIT",
              default=MAX_LIMIT, show_default=True, type=int,
              help="How many Spotify top tracks to fetch.")
@click.option("--lrclib-url", envvar="LYRICQUIZ_LRCLIB_URL", default=DEFAULT_BASE_URL,
              show_default=True, help="Base URL of the lrclib instance.")
@click.option("--user-agent", envvar="LYRICQUIZ_USER_AGENT", default=Settings.user_agent,
              show_default=True, help="User-Agent sent to lrclib.")
@click.option("--seed", default=None, type=int, help="Seed for a repeatable shuffle.")
@_client_id_option
@_redirect_uri_option
@_token_path_option
@_timeout_option
def play(
    songs_file: Path | None,
    questions_per_round: int,
    feedback_delay: float,
    top_tracks_limit: int,
    lrclib_url: str,
    user_agent: str,
    seed: int | None,
    client_id: str | None,
    redirect_uri: str,
    token_path: Path | None,
    http_timeout: float,
) -> None:
    """Play the lyric quiz.

    \b
    Songs come from --songs-file if given, otherwise from your Spotify
    top tracks (run `lyricquiz login` first).
    """
    settings = Settings(
        questions_per_round=questions_per_round,
        feedback_delay=feedback_delay,
        top_tracks_limit=top_tracks_limit,
        lrclib_base_url=lrclib_url,
        user_agent=user_agent,
        spotify_client_id=client_id,
        redirect_uri=redirect_uri,
        token_path=token_path or default_token_path(),
        http_timeout=http_timeout,
    )

    # --- Resolve songs ---
    try:
        settings.validate()
        if songs_file is not None:
            songs = load_songs_file(songs_file)
        else:
            songs = asyncio.run(fetch_top_tracks(settings))
    except LyricQuizError as exc:
        _fail(exc)

    if not songs:
        click.echo("Error: no songs to play with", err=True)
        sys.exit(1)

    # --- Play ---
    rng = random.Random(seed) if seed is not None else None
    asyncio.run(run_quiz(songs, settings, rng))
    click.echo("Thanks for playing!")
