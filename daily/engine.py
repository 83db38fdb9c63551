"""Pure guess/game state machine shared by every storage backend."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple, Union

MAX_ATTEMPTS = 6

STATUS_NOT_STARTED = "not_started"
STATUS_IN_PROGRESS = "in_progress"
STATUS_WON = "won"
STATUS_LOST = "lost"

TERMINAL_STATUSES = frozenset({STATUS_WON, STATUS_LOST})


@dataclass(frozen=True)
class GuessRecord:
    attempt_number: int
    guess_name: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class GameState:
    """Snapshot of one puzzle attempt.

    ``won`` is tri-state: ``None`` while undecided, ``True`` after a correct
    guess, ``False`` once the attempts ran out (or a store closed the game out).
    """

    guesses: Tuple[GuessRecord, ...] = field(default_factory=tuple)
    won: Optional[bool] = None

    @property
    def attempts_used(self) -> int:
        return len(self.guesses)

    @property
    def guess_names(self) -> list[str]:
        return [guess.guess_name for guess in self.guesses]

    @property
    def status(self) -> str:
        if self.won is True:
            return STATUS_WON
        if self.won is False or self.attempts_used >= MAX_ATTEMPTS:
            return STATUS_LOST
        if self.guesses:
            return STATUS_IN_PROGRESS
        return STATUS_NOT_STARTED

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "won": self.won,
            "isFinished": self.is_finished,
            "attemptsUsed": self.attempts_used,
            "maxAttempts": MAX_ATTEMPTS,
            "guesses": self.guess_names,
            "hintLevel": hint_level(self),
            "showImage": show_image(self),
        }


def normalize_name(name: Optional[str]) -> str:
    # Lower-casing is the only normalization; whitespace is significant.
    return (name or "").lower()


def submit_guess(state: GameState, guess_name: str, answer_name: str) -> Tuple[GameState, bool]:
    """Apply one guess and return ``(next_state, is_correct)``.

    Guessing on a finished game is a no-op that returns the same state, which
    absorbs double submissions from the browser.
    """
    if state.is_finished:
        return state, False

    attempt_number = state.attempts_used + 1
    guess = GuessRecord(
        attempt_number=attempt_number,
        guess_name=guess_name,
        created_at=datetime.now(timezone.utc),
    )
    is_correct = normalize_name(guess_name) == normalize_name(answer_name)

    won: Optional[bool] = None
    if is_correct:
        won = True
    elif attempt_number >= MAX_ATTEMPTS:
        won = False

    return replace(state, guesses=state.guesses + (guess,), won=won), is_correct


def hint_level(state: GameState) -> int:
    if state.status == STATUS_WON:
        return MAX_ATTEMPTS
    return min(state.attempts_used, MAX_ATTEMPTS - 1)


def show_image(state: GameState) -> bool:
    return state.attempts_used >= MAX_ATTEMPTS - 1 or state.status == STATUS_WON


def state_from_guesses(
    guesses: Iterable[Union[GuessRecord, str]],
    won: Optional[bool] = None,
    answer_name: Optional[str] = None,
) -> GameState:
    """Rebuild a state from persisted rows (records or bare names).

    When ``answer_name`` is given and the stored outcome is still undecided, a
    correct guess in the log marks the game won, so a lost close-out write
    cannot reopen a solved puzzle.
    """
    records: list[GuessRecord] = []
    for index, item in enumerate(guesses, start=1):
        if isinstance(item, GuessRecord):
            records.append(item)
        else:
            records.append(GuessRecord(attempt_number=index, guess_name=str(item)))
    records.sort(key=lambda guess: guess.attempt_number)
    records = records[:MAX_ATTEMPTS]
    if won is None and answer_name is not None:
        target = normalize_name(answer_name)
        for index, record in enumerate(records):
            if normalize_name(record.guess_name) == target:
                records = records[: index + 1]
                won = True
                break
    return GameState(guesses=tuple(records), won=won)
