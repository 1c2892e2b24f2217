import asyncio
import random

from lyricquiz.models import Song
from lyricquiz.providers.base import LyricsProvider
from lyricquiz.session import GameSession
from lyricquiz.terminal import TerminalGame

LYRICS = (
    "Streetlights humming in the quiet rain\n"
    "Somebody singing from a passing train\n"
    "All of the windows painted gold and blue\n"
    "Every direction leading back to you\n"
)


class StaticProvider(LyricsProvider):
    def __init__(self, lyrics: str | None = LYRICS):
        self.lyrics = lyrics

    async def fetch_lyrics(self, song):
        return self.lyrics


def _songs(n: int) -> list[Song]:
    return [Song(title=f"Song {i}", primary_artist_name=f"Artist {i}") for i in range(n)]


def _play(songs, provider, *, confirms, pick_correct=True, questions_per_round=2):
    """Run a TerminalGame with scripted answers; returns (result, output, session)."""

    async def scenario():
        session = GameSession(
            provider,
            questions_per_round=questions_per_round,
            feedback_delay=0,
            rng=random.Random(9),
        )
        output: list[str] = []
        answers = iter(confirms)

        def ask_choice(count):
            question = session.current_question
            if pick_correct:
                return question.choices.index(question.correct_answer) + 1
            wrong = [c for c in question.choices if c != question.correct_answer]
            return question.choices.index(wrong[0]) + 1

        game = TerminalGame(
            session,
            ask_choice=ask_choice,
            ask_confirm=lambda message: next(answers),
            echo=output.append,
        )
        task = session.start_game(songs)
        result = await game.play(task)
        session.close()
        return result, output, session

    return asyncio.run(scenario())


def test_plays_one_round_and_stops():
    result, output, session = _play(_songs(4), StaticProvider(), confirms=[False])
    assert result is False
    assert output.count("Correct!") == 2
    assert session.state.score == 2
    assert "\nRound 1 over. Score: 2" in output


def test_prints_choices_numbered():
    _, output, _ = _play(_songs(4), StaticProvider(), confirms=[False])
    assert any(line.startswith("  1. ") for line in output)
    assert "\nQuestion 1:\n" in output
    assert "\nQuestion 2:\n" in output


def test_wrong_answers_show_correct_label():
    _, output, session = _play(_songs(4), StaticProvider(), confirms=[False], pick_correct=False)
    wrong_lines = [line for line in output if line.startswith("Wrong! It was: ")]
    assert len(wrong_lines) == 2
    assert all(" - Artist " in line for line in wrong_lines)
    assert session.state.score == 0


def test_replay_then_restart_request():
    # Round 1 uses pool slots 1-2; round 2 only has slot 3 before the pool runs out.
    result, output, session = _play(_songs(4), StaticProvider(), confirms=[True, True])
    assert result is True
    assert session.state.current_round == 2
    assert "\nRound 2 over. Score: 1" in output


def test_reports_when_game_cannot_start():
    result, output, session = _play(_songs(3), StaticProvider(""), confirms=[])
    assert result is False
    assert not session.started
    assert output[-1] == "Not enough songs with lyrics to start a game."
