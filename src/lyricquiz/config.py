from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigError
from .providers.lrclib import DEFAULT_BASE_URL
from .providers.spotify import MAX_LIMIT
from .session import DEFAULT_FEEDBACK_DELAY, DEFAULT_QUESTIONS_PER_ROUND


def default_token_path() -> Path:
    return Path.home() / ".lyricquiz" / "tokens.json"


@dataclass
class Settings:
    """Runtime settings, filled in by the CLI from options and LYRICQUIZ_* env vars."""

    questions_per_round: int = DEFAULT_QUESTIONS_PER_ROUND
    feedback_delay: float = DEFAULT_FEEDBACK_DELAY
    top_tracks_limit: int = MAX_LIMIT
    lrclib_base_url: str = DEFAULT_BASE_URL
    spotify_client_id: str | None = None
    redirect_uri: str = "http://127.0.0.1:8888/callback"
    token_path: Path = field(default_factory=default_token_path)
    http_timeout: float = 15.0
    user_agent: str = "lyricquiz/0.1"

    def validate(self) -> None:
        """Raise ConfigError if any value is out of range."""
        if self.questions_per_round < 1:
            raise ConfigError("questions per round must be at least 1")
        if self.feedback_delay < 0:
            raise ConfigError("feedback delay cannot be negative")
        if not 1 <= self.top_tracks_limit <= MAX_LIMIT:
            raise ConfigError(f"top tracks limit must be between 1 and {MAX_LIMIT}")
        if self.http_timeout <= 0:
            raise ConfigError("HTTP timeout must be positive")

    def require_client_id(self) -> str:
        if not self.spotify_client_id:
            raise ConfigError("a Spotify client id is required (--client-id or LYRICQUIZ_CLIENT_ID)")
        return self.spotify_client_id
