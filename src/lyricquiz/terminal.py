"""Play a GameSession in the terminal.

:class:`TerminalGame` is a session listener: events are queued as they
arrive and handled one at a time by :meth:`TerminalGame.play`.  Blocking
prompts run in a worker thread so lyric fetches keep resolving while the
player thinks.
"""

import asyncio
from collections.abc import Callable

import click

from .events import (
    AnswerFeedback,
    GameEvent,
    QuestionReady,
    RestartRequested,
    RoundEnded,
)
from .session import GameSession


def _ask_choice(count: int) -> int:
    return click.prompt("Your answer", type=click.IntRange(1, count))


def _ask_confirm(message: str) -> bool:
    return click.confirm(message, default=True)


class TerminalGame:
    """Drive one session from the terminal until the player stops or a restart is needed.

    *ask_choice* receives the number of choices and returns a 1-based pick;
    *ask_confirm* answers yes/no questions.  Both default to click prompts.
    """

    def __init__(
        self,
        session: GameSession,
        *,
        ask_choice: Callable[[int], int] = _ask_choice,
        ask_confirm: Callable[[str], bool] = _ask_confirm,
        echo: Callable[[str], None] = click.echo,
    ):
        self.session = session
        self.ask_choice = ask_choice
        self.ask_confirm = ask_confirm
        self.echo = echo
        self._events: asyncio.Queue[GameEvent] = asyncio.Queue()
        session.add_listener(self._events.put_nowait)

    async def play(self, ingest_task: asyncio.Task) -> bool:
        """Handle events until the game is over.

        Returns True when the player asked to start over with a fresh
        session, False when they are done (or the game could not start).
        """
        self.echo("Fetching lyrics...")
        while True:
            event = await self._next_event(ingest_task)
            if event is None:
                self.echo("Not enough songs with lyrics to start a game.")
                return False

            if isinstance(event, QuestionReady):
                await self._ask(event)
            elif isinstance(event, AnswerFeedback):
                self._show_feedback(event)
            elif isinstance(event, RoundEnded):
                self.echo(f"\nRound {event.round_number} over. Score: {event.score or 0}")
                if event.replay_eligible:
                    prompt = "Play another round?"
                else:
                    prompt = "No songs left for another round. Start over?"
                if not await asyncio.to_thread(self.ask_confirm, prompt):
                    return False
                self.session.replay()
            elif isinstance(event, RestartRequested):
                return True

    async def _next_event(self, ingest_task: asyncio.Task) -> GameEvent | None:
        """Wait for the next event, or return None if fetching ended without a game."""
        while True:
            if ingest_task.done() and not self.session.started and self._events.empty():
                return None
            getter = asyncio.ensure_future(self._events.get())
            waiters = {getter}
            if not ingest_task.done():
                waiters.add(ingest_task)
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                return getter.result()
            getter.cancel()

    async def _ask(self, event: QuestionReady) -> None:
        question = event.question
        self.echo(f"\nQuestion {event.number}:\n")
        self.echo(question.snippet)
        self.echo("")
        for i, choice in enumerate(question.choices, start=1):
            self.echo(f"  {i}. {choice}")
        pick = await asyncio.to_thread(self.ask_choice, len(question.choices))
        self.session.submit_answer(question.choices[pick - 1], pick - 1)

    def _show_feedback(self, feedback: AnswerFeedback) -> None:
        if feedback.is_correct:
            self.echo("Correct!")
        else:
            self.echo(f"Wrong! It was: {feedback.correct_label}")
