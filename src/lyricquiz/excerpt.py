"""Pick a short lyric excerpt to use as a question.

The excerpt is up to three lines ending on a randomly chosen line break.  A
candidate is accepted when it is long enough to be guessable and does not
give the answer away by containing the song title.  After ``MAX_ATTEMPTS``
rejected candidates the last one is used anyway, so the result is a
best-effort heuristic rather than a guarantee.
"""

import random
import re

MAX_ATTEMPTS = 5
MIN_SNIPPET_LENGTH = 20  # a candidate must be strictly longer than this
LINES_BEFORE = 3  # line breaks to reach back from the chosen one

_BLANK_RUN_RE = re.compile(r"\n{2,}")


def line_break_offsets(text: str) -> list[int]:
    """Return the position of every ``\\n`` in *text*, or ``[0]`` if there are none."""
    offsets = [i for i, ch in enumerate(text) if ch == "\n"]
    return offsets or [0]


def select_snippet(full_lyrics: str, song_title: str, rng: random.Random | None = None) -> str:
    """Return a spoiler-safe excerpt of *full_lyrics* for the song *song_title*."""
    rng = rng or random.Random()
    offsets = line_break_offsets(full_lyrics)
    title = song_title.lower()

    snippet = ""
    for _ in range(MAX_ATTEMPTS):
        index = rng.randrange(len(offsets))
        start = offsets[index - LINES_BEFORE] if index >= LINES_BEFORE else 0
        snippet = full_lyrics[start:offsets[index] + 1]
        if len(snippet) > MIN_SNIPPET_LENGTH and title not in snippet.lower():
            break

    return _tidy(snippet)


def _tidy(snippet: str) -> str:
    """Collapse blank-line runs and drop one leading and one trailing line break."""
    snippet = _BLANK_RUN_RE.sub("\n", snippet)
    if snippet.startswith("\n"):
        snippet = snippet[1:]
    if snippet.endswith("\n"):
        snippet = snippet[:-1]
    return snippet
