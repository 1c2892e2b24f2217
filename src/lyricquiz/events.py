"""Notifications a GameSession sends to its listeners.

A presentation layer subscribes with :meth:`GameSession.add_listener` and
turns these into whatever it renders: highlighted buttons, printed lines, etc.
"""

from dataclasses import dataclass

from .models import Question


@dataclass(frozen=True)
class QuestionReady:
    question: Question
    number: int  # 1-based position within the current round


@dataclass(frozen=True)
class AnswerFeedback:
    """Result of one answer.

    ``chosen_index`` is None when the label is not one of the offered choices.
    ``correct_index`` lets a UI highlight the right control after a miss.
    """

    chosen_label: str
    chosen_index: int | None
    correct_label: str
    correct_index: int
    is_correct: bool


@dataclass(frozen=True)
class FeedbackCleared:
    """Any highlight from the previous answer should be removed."""


@dataclass(frozen=True)
class RoundEnded:
    round_number: int
    score: int | None
    replay_eligible: bool


@dataclass(frozen=True)
class RestartRequested:
    """Replay was refused: the caller should discard the session and start over."""


GameEvent = QuestionReady | AnswerFeedback | FeedbackCleared | RoundEnded | RestartRequested
