"""Spotify authorization-code flow with PKCE, for a terminal app.

1. :meth:`SpotifyAuth.start_login` creates a random code verifier and the
   authorize URL carrying its S256 challenge.
2. The user opens the URL, logs in and is redirected to ``redirect_uri``
   with ``?code=...``; the CLI asks them to paste that URL back.
3. :meth:`SpotifyAuth.exchange_code` trades the code and verifier for an
   access/refresh token pair, saved by :class:`TokenStore` together with an
   absolute expiry timestamp.
4. :meth:`SpotifyAuth.get_access_token` returns the stored token, refreshing
   it first when it has expired.  A refresh answered with ``invalid_grant``
   clears the store and raises :class:`ReauthenticationRequired`.
"""

import base64
import hashlib
import json
import logging
import secrets
import string
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from urllib.parse import parse_qs, urlencode, urlparse

import httpx

from .exceptions import AuthError, FetchError, ReauthenticationRequired

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_SCOPE = "user-top-read"

_VERIFIER_ALPHABET = string.ascii_letters + string.digits


def generate_code_verifier(length: int = 64) -> str:
    return "".join(secrets.choice(_VERIFIER_ALPHABET) for _ in range(length))


def code_challenge(verifier: str) -> str:
    """Return the S256 challenge for *verifier*: unpadded base64url of its SHA-256."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def build_authorize_url(
    client_id: str, redirect_uri: str, challenge: str, scope: str = DEFAULT_SCOPE
) -> str:
    params = {
        "response_type": "code",
        "client_id": client_id,
        "scope": scope,
        "redirect_uri": redirect_uri,
        "code_challenge_method": "S256",
        "code_challenge": challenge,
        "show_dialog": "true",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def extract_code(pasted: str) -> str:
    """Pull the ``code`` parameter out of a pasted redirect URL.

    Anything that does not look like a URL with a code is returned stripped,
    so the bare code can be pasted too.
    """
    pasted = pasted.strip()
    codes = parse_qs(urlparse(pasted).query).get("code")
    return codes[0] if codes else pasted


@dataclass
class Tokens:
    access_token: str
    refresh_token: str
    expires_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TokenStore:
    """JSON file holding the current token pair."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Tokens | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return Tokens(
                access_token=data["access_token"],
                refresh_token=data["refresh_token"],
                expires_at=float(data["expires_at"]),
            )
        except (ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable token file %s", self.path)
            return None

    def save(self, tokens: Tokens) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(tokens)), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SpotifyAuth:
    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        store: TokenStore,
        *,
        timeout: float = 15.0,
        clock: Callable[[], float] = time.time,
        client: httpx.Client | None = None,
    ):
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.store = store
        self._clock = clock
        self._client = client or httpx.Client(timeout=timeout)

    def start_login(self) -> tuple[str, str]:
        """Return ``(authorize_url, code_verifier)`` for a new login."""
        verifier = generate_code_verifier()
        url = build_authorize_url(self.client_id, self.redirect_uri, code_challenge(verifier))
        return url, verifier

    def exchange_code(self, code: str, verifier: str) -> Tokens:
        if not code:
            raise AuthError("no authorization code provided")
        data = self._post_token_request({
            "client_id": self.client_id,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "code_verifier": verifier,
        })
        tokens = Tokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            expires_at=self._clock() + data["expires_in"],
        )
        self.store.save(tokens)
        return tokens

    def refresh(self, tokens: Tokens) -> Tokens:
        logger.info("Access token expired; refreshing")
        try:
            data = self._post_token_request({
                "grant_type": "refresh_token",
                "refresh_token": tokens.refresh_token,
                "client_id": self.client_id,
            })
        except ReauthenticationRequired:
            self.store.clear()
            raise
        refreshed = Tokens(
            access_token=data["access_token"],
            # Spotify may or may not rotate the refresh token
            refresh_token=data.get("refresh_token") or tokens.refresh_token,
            expires_at=self._clock() + data["expires_in"],
        )
        self.store.save(refreshed)
        return refreshed

    def get_access_token(self) -> str:
        """Return a usable bearer token, refreshing it if needed."""
        tokens = self.store.load()
        if tokens is None:
            raise AuthError("not logged in; run `lyricquiz login`")
        if tokens.is_expired(self._clock()):
            tokens = self.refresh(tokens)
        return tokens.access_token

    def _post_token_request(self, form: dict) -> dict:
        try:
            resp = self._client.post(TOKEN_URL, data=form)
        except httpx.RequestError as exc:
            raise FetchError(TOKEN_URL, 0) from exc
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if data.get("error") == "invalid_grant":
            raise ReauthenticationRequired(data.get("error_description") or "invalid_grant")
        if resp.status_code != 200:
            raise FetchError(TOKEN_URL, resp.status_code)
        return data
