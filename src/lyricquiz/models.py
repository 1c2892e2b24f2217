from dataclasses import dataclass, field
from enum import Enum, auto


@dataclass(frozen=True, eq=False)
class Song:
    """A candidate song for the quiz.

    Songs compare and hash by identity: two Song objects with identical fields
    are distinct entries in the pool and in the lyrics store.
    """

    title: str
    primary_artist_name: str
    album_name: str | None = None

    @property
    def label(self) -> str:
        """Answer text shown to the player, e.g. "Dark Star - Grateful Dead"."""
        return f"{self.title} - {self.primary_artist_name}"


@dataclass(frozen=True)
class Question:
    """One multiple-choice question built from a song's lyrics."""

    lyrics_full: str
    snippet: str
    correct_answer: str
    choices: tuple[str, ...]
    song: Song


class GamePhase(Enum):
    IDLE = auto()  # no songs handed over yet
    AWAITING_SONGS = auto()  # lyric fetches in flight, no question yet
    IN_ROUND = auto()  # a question is open for answers
    ROUND_LOCKED = auto()  # answer submitted, feedback is showing
    ROUND_ENDED = auto()  # no more questions this round
    FINISHED = auto()  # replay refused, caller should restart from scratch


@dataclass
class GameState:
    """Mutable per-game counters owned by a single GameSession."""

    song_pool: list[Song] = field(default_factory=list)
    current_index: int = 0
    current_round: int = 1
    score: int | None = None  # None until the first answer of a round
    answers_locked: bool = False
    replay_eligible: bool = False
    lyrics_available_count: int = 0
