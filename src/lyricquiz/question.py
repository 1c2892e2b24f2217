import random
from collections.abc import Sequence

from .choices import build_choices
from .excerpt import select_snippet
from .models import Question, Song


def prepare_question(
    lyrics: str,
    song: Song,
    pool: Sequence[Song | None],
    rng: random.Random | None = None,
) -> Question:
    """Build a Question for *song* from its *lyrics*, drawing wrong answers from *pool*."""
    rng = rng or random.Random()
    return Question(
        lyrics_full=lyrics,
        snippet=select_snippet(lyrics, song.title, rng),
        correct_answer=song.label,
        choices=tuple(build_choices(song, pool, rng)),
        song=song,
    )
