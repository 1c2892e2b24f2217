class LyricQuizError(Exception):
    """Base exception for lyricquiz."""


class FetchError(LyricQuizError):
    """Raised when an HTTP request fails.

    A status_code of 0 means the request never got a response.
    """

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP {status_code} fetching {url}")


class AuthError(LyricQuizError):
    """Raised when no usable access token is available."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Authorization failed: {reason}")


class ReauthenticationRequired(AuthError):
    """Raised when the refresh token was rejected and the user must log in again."""


class ConfigError(LyricQuizError):
    """Raised when a setting is missing or out of range."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid configuration: {reason}")
