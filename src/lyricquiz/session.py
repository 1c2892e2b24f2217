"""Round-by-round game state for one quiz.

A :class:`GameSession` owns everything that changes while a game runs: the
shuffled song pool, the lyrics fetched so far, the current question, the
score and the round counter.  It is driven by three commands
(:meth:`~GameSession.start_game`, :meth:`~GameSession.submit_answer`,
:meth:`~GameSession.replay`) and reports back through listener callbacks
that receive the dataclasses in :mod:`lyricquiz.events`.

Question numbering never resets: ``current_index`` keeps climbing across
rounds and the round boundary is ``questions_per_round * current_round``.
Question slots start at pool index 1, so the readiness check (which looks at
the first ``questions_per_round`` songs) and the questions asked are offset
by one.
"""

import asyncio
import logging
import random
from collections.abc import Callable, Iterable
from typing import Protocol

from .events import (
    AnswerFeedback,
    FeedbackCleared,
    GameEvent,
    QuestionReady,
    RestartRequested,
    RoundEnded,
)
from .ingest import LyricIngestionPipeline
from .models import GamePhase, GameState, Question, Song
from .providers.base import LyricsProvider
from .question import prepare_question

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS_PER_ROUND = 5
DEFAULT_FEEDBACK_DELAY = 0.8  # seconds between an answer and the next question


class Cancellable(Protocol):
    def cancel(self) -> None: ...


Listener = Callable[[GameEvent], None]
Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def _call_later(delay: float, callback: Callable[[], None]) -> Cancellable:
    return asyncio.get_running_loop().call_later(delay, callback)


class GameSession:
    """State machine for a single lyric quiz.

    *scheduler* runs the delayed advance after an answer; it defaults to
    ``loop.call_later`` on the running event loop.  Tests can pass their own
    and use :meth:`flush_pending_advance` to fire it immediately.
    """

    def __init__(
        self,
        lyrics_provider: LyricsProvider,
        *,
        questions_per_round: int = DEFAULT_QUESTIONS_PER_ROUND,
        feedback_delay: float = DEFAULT_FEEDBACK_DELAY,
        rng: random.Random | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.questions_per_round = questions_per_round
        self.feedback_delay = feedback_delay
        self.state = GameState()
        self.lyrics: dict[Song, str] = {}
        self.current_question: Question | None = None
        self.phase = GamePhase.IDLE
        self.started = False

        self._rng = rng or random.Random()
        self._scheduler = scheduler or _call_later
        self._pipeline = LyricIngestionPipeline(self, lyrics_provider)
        self._ingest_task: asyncio.Task | None = None
        self._pending_advance: Cancellable | None = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_game(self, songs: Iterable[Song]) -> asyncio.Task:
        """Shuffle *songs* into the pool and start fetching their lyrics.

        Must be called from a running event loop.  The returned task finishes
        once every fetch has resolved; the first question is set earlier, as
        soon as enough songs are ready.
        """
        if self._ingest_task is not None:
            logger.warning("start_game called twice; ignoring the second call")
            return self._ingest_task

        pool = list(songs)
        self._rng.shuffle(pool)
        self.state.song_pool = pool
        self.phase = GamePhase.AWAITING_SONGS
        logger.info(
            "Shuffled %d songs:\n%s",
            len(pool),
            "\n".join(f"{song.primary_artist_name}-{song.title}" for song in pool),
        )

        self._ingest_task = asyncio.get_running_loop().create_task(
            self._pipeline.ingest(list(pool))
        )
        return self._ingest_task

    def advance_question(self) -> Question | None:
        """Move to the next question, or end the round if there is none.

        Returns the new question, or None when the round ended.
        """
        self._cancel_pending_advance()
        state = self.state
        state.answers_locked = False
        self._emit(FeedbackCleared())

        next_index = state.current_index + 1
        song = state.song_pool[next_index] if next_index < len(state.song_pool) else None
        if song is None or next_index > self.questions_per_round * state.current_round:
            self.current_question = None
            state.replay_eligible = (
                (state.current_round + 1) * self.questions_per_round
                <= state.lyrics_available_count
            )
            self.phase = GamePhase.ROUND_ENDED
            logger.info(
                "No more questions in round %d (score %s, replay %s)",
                state.current_round,
                state.score,
                "possible" if state.replay_eligible else "not possible",
            )
            self._emit(RoundEnded(state.current_round, state.score, state.replay_eligible))
            return None

        state.current_index = next_index
        lyrics = self.lyrics.get(song, "")
        if not lyrics:
            logger.warning("No lyrics stored for %r; building a best-effort question", song.label)
        question = prepare_question(lyrics, song, state.song_pool, self._rng)
        self.current_question = question
        self.phase = GamePhase.IN_ROUND
        logger.debug("Prepared question: %s", question.correct_answer)

        number = next_index - self.questions_per_round * (state.current_round - 1)
        self._emit(QuestionReady(question, number))
        return question

    def submit_answer(self, chosen_label: str, control_index: int | None = None) -> AnswerFeedback | None:
        """Score *chosen_label* against the current question.

        Ignored (returns None) while answers are locked or when no question
        is open.  Otherwise locks answers and schedules the next question
        after ``feedback_delay`` seconds.
        """
        question = self.current_question
        state = self.state
        if question is None or state.answers_locked:
            logger.debug("Ignoring answer %r: no open question", chosen_label)
            return None

        state.answers_locked = True
        self.phase = GamePhase.ROUND_LOCKED
        if state.score is None:
            state.score = 0

        is_correct = chosen_label == question.correct_answer
        if is_correct:
            state.score += 1
        if control_index is None and chosen_label in question.choices:
            control_index = question.choices.index(chosen_label)
        logger.info("%s answer: %r", "Correct" if is_correct else "Wrong", chosen_label)

        feedback = AnswerFeedback(
            chosen_label=chosen_label,
            chosen_index=control_index,
            correct_label=question.correct_answer,
            correct_index=question.choices.index(question.correct_answer),
            is_correct=is_correct,
        )
        self._emit(feedback)
        self._pending_advance = self._scheduler(self.feedback_delay, self._run_pending_advance)
        return feedback

    def replay(self) -> bool:
        """Start the next round from the unused songs in the pool.

        When not enough songs are left, emits RestartRequested and returns
        False without touching the score or round counter.
        """
        if not self.state.replay_eligible:
            self.phase = GamePhase.FINISHED
            logger.info("Replay not possible; restart from scratch required")
            self._emit(RestartRequested())
            return False

        self.state.score = None
        self.state.current_round += 1
        self.advance_question()
        return True

    def flush_pending_advance(self) -> bool:
        """Run a scheduled advance right now. Returns False if none was pending."""
        if self._pending_advance is None:
            return False
        self.advance_question()
        return True

    def close(self) -> None:
        """Cancel the pending advance and any lyric fetches still in flight."""
        self._cancel_pending_advance()
        if self._ingest_task is not None and not self._ingest_task.done():
            self._ingest_task.cancel()

    # ------------------------------------------------------------------
    # Called by LyricIngestionPipeline
    # ------------------------------------------------------------------

    def store_lyrics(self, song: Song, lyrics: str) -> None:
        self.lyrics[song] = lyrics
        self.state.lyrics_available_count += 1

    def drop_song(self, song: Song) -> None:
        pool = self.state.song_pool
        for i, candidate in enumerate(pool):
            if candidate is song:
                del pool[i]
                logger.warning("Dropped %r from the pool", song.label)
                return

    def begin(self) -> None:
        """Set the first question. Only the first call has any effect."""
        if self.started:
            return
        self.started = True
        logger.info("Collected enough songs for questions")
        self.advance_question()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_pending_advance(self) -> None:
        self._pending_advance = None
        self.advance_question()

    def _cancel_pending_advance(self) -> None:
        if self._pending_advance is not None:
            self._pending_advance.cancel()
            self._pending_advance = None
