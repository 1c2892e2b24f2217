"""Build the shuffled answer list for a question."""

import random
from collections.abc import Sequence

from .models import Song

MAX_CHOICES = 4


def build_choices(
    correct_song: Song,
    candidate_pool: Sequence[Song | None],
    rng: random.Random | None = None,
) -> list[str]:
    """Return up to ``MAX_CHOICES`` labels with the correct one included exactly once.

    Wrong answers are drawn at random from *candidate_pool*.  The correct song
    is skipped, and so is any other Song with the same label (a single and its
    album cut, say).  ``None`` slots are skipped too.
    """
    rng = rng or random.Random()
    order = list(range(len(candidate_pool)))
    rng.shuffle(order)

    correct_label = correct_song.label
    labels = [correct_label]
    while order and len(labels) < MAX_CHOICES:
        candidate = candidate_pool[order.pop()]
        if candidate is None or candidate is correct_song or candidate.label == correct_label:
            continue
        labels.append(candidate.label)

    rng.shuffle(labels)
    return labels
