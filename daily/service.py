"""Gameplay orchestration: storage backends load/save, the engine decides."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from flask import current_app, has_app_context

from pokedex import PokedexError, get_pokedex_service

from . import engine
from .dates import today_iso
from .engine import MAX_ATTEMPTS, GameState
from .hints import revealed_hints
from .local_store import LocalGameRecord, LocalGameStore
from .stats import UserStats, compute_stats
from .store import GameRecord, PuzzleRecord, RecordStore, RecordStoreError, get_record_store

MAX_GUESS_LENGTH = 80


class DailyServiceError(Exception):
    """Raised when a gameplay operation cannot proceed."""

    def __init__(self, message: str, status_code: int = 400, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {"error": message}


@dataclass(frozen=True)
class Player:
    user_id: Optional[str] = None
    device_id: Optional[str] = None

    @property
    def is_signed_in(self) -> bool:
        return bool(self.user_id)


@dataclass(frozen=True)
class GuessOutcome:
    state: GameState
    is_correct: bool
    accepted: bool
    saved: bool
    answer_name: str

    def to_dict(self) -> dict:
        payload = self.state.to_dict()
        payload.update(
            {
                "isCorrect": self.is_correct,
                "accepted": self.accepted,
                "saved": self.saved,
            }
        )
        if self.state.is_finished:
            payload["answer"] = self.answer_name
        return payload


def get_today_puzzle(store: RecordStore, day: Optional[str] = None) -> PuzzleRecord:
    day = day or today_iso()
    try:
        puzzle = store.get_puzzle_for_date(day)
    except RecordStoreError as exc:
        raise DailyServiceError(
            "Puzzle data is unavailable right now.",
            status_code=503,
            payload={"error": "data_unavailable"},
        ) from exc
    if puzzle is None:
        raise DailyServiceError(
            "No puzzle available today.",
            status_code=404,
            payload={"error": "puzzle_not_found", "date": day},
        )
    return puzzle


def load_game_state(player: Player, puzzle: PuzzleRecord, store: Optional[RecordStore] = None) -> GameState:
    if player.is_signed_in:
        store = store or get_record_store()
        try:
            game = store.get_or_create_game(player.user_id, puzzle.id)
        except RecordStoreError as exc:
            raise DailyServiceError(
                "Your game could not be loaded.",
                status_code=503,
                payload={"error": "data_unavailable"},
            ) from exc
        return _signed_in_state(game, puzzle, store)

    record = _load_or_init_device_record(player, puzzle)
    return _state_from_device_record(record)


def submit_daily_guess(player: Player, guess_name: str, day: Optional[str] = None) -> GuessOutcome:
    guess_name = validate_guess(guess_name)
    store = get_record_store()
    puzzle = get_today_puzzle(store, day)

    if player.is_signed_in:
        return _submit_signed_in(player, puzzle, guess_name, store)
    return _submit_anonymous(player, puzzle, guess_name)


def validate_guess(guess_name: Optional[str]) -> str:
    if guess_name is None or not guess_name.strip():
        raise DailyServiceError("Pick a Pokémon to guess.", status_code=400, payload={"error": "missing_guess"})
    if len(guess_name) > MAX_GUESS_LENGTH:
        raise DailyServiceError("That guess is too long.", status_code=400, payload={"error": "guess_too_long"})
    return guess_name


def _submit_signed_in(player: Player, puzzle: PuzzleRecord, guess_name: str, store: RecordStore) -> GuessOutcome:
    try:
        game = store.get_or_create_game(player.user_id, puzzle.id)
    except RecordStoreError as exc:
        raise DailyServiceError(
            "Your game could not be loaded.",
            status_code=503,
            payload={"error": "data_unavailable"},
        ) from exc

    state = _signed_in_state(game, puzzle, store)
    next_state, is_correct = engine.submit_guess(state, guess_name, puzzle.answer_name)
    if next_state is state:
        return GuessOutcome(state, False, accepted=False, saved=True, answer_name=puzzle.answer_name)

    # The board has already advanced; a failed write is reported, never raised.
    saved = True
    try:
        store.append_guess(game.id, player.user_id, guess_name, next_state.attempts_used)
    except RecordStoreError as exc:
        saved = False
        _log_service_warning("saving guess", exc)

    if next_state.is_finished:
        try:
            store.finish_game(game.id, next_state.status == engine.STATUS_WON)
        except RecordStoreError as exc:
            saved = False
            _log_service_warning("finishing game", exc)

    return GuessOutcome(next_state, is_correct, accepted=True, saved=saved, answer_name=puzzle.answer_name)


def _signed_in_state(game: GameRecord, puzzle: PuzzleRecord, store: RecordStore) -> GameState:
    """Rebuild the board and close out a game whose finish write was lost."""
    state = engine.state_from_guesses(
        game.guesses,
        won=game.won if game.is_finished else None,
        answer_name=puzzle.answer_name,
    )
    if state.is_finished and not game.is_finished:
        try:
            store.finish_game(game.id, state.status == engine.STATUS_WON)
        except RecordStoreError as exc:
            _log_service_warning("closing out game", exc)
    return state


def _submit_anonymous(player: Player, puzzle: PuzzleRecord, guess_name: str) -> GuessOutcome:
    record = _load_or_init_device_record(player, puzzle)
    state = _state_from_device_record(record)
    next_state, is_correct = engine.submit_guess(state, guess_name, puzzle.answer_name)
    if next_state is state:
        return GuessOutcome(state, False, accepted=False, saved=True, answer_name=puzzle.answer_name)

    updated = LocalGameRecord(
        date=puzzle.available_on,
        answer_name=puzzle.answer_name,
        won=next_state.status == engine.STATUS_WON,
        guess_count=next_state.attempts_used,
        is_finished=next_state.is_finished,
        guess_names=next_state.guess_names,
    )
    saved = True
    try:
        LocalGameStore(player.device_id).save_record(updated)
    except RecordStoreError as exc:
        saved = False
        _log_service_warning("saving device record", exc)

    return GuessOutcome(next_state, is_correct, accepted=True, saved=saved, answer_name=puzzle.answer_name)


def _load_or_init_device_record(player: Player, puzzle: PuzzleRecord) -> LocalGameRecord:
    if not player.device_id:
        raise DailyServiceError("Missing device session.", status_code=400, payload={"error": "missing_device"})

    local = LocalGameStore(player.device_id)
    try:
        record = local.get_record(puzzle.available_on)
    except RecordStoreError as exc:
        raise DailyServiceError(
            "Your game could not be loaded.",
            status_code=503,
            payload={"error": "data_unavailable"},
        ) from exc
    if record is not None:
        return record

    record = LocalGameRecord(date=puzzle.available_on, answer_name=puzzle.answer_name)
    try:
        local.save_record(record)
    except RecordStoreError as exc:
        _log_service_warning("initialising device record", exc)
    return record


def _state_from_device_record(record: LocalGameRecord) -> GameState:
    return engine.state_from_guesses(
        record.guess_names,
        won=record.won if record.is_finished else None,
        answer_name=record.answer_name,
    )


def get_player_stats(player: Player) -> UserStats:
    return compute_stats((row["date"], row["won"]) for row in _finished_results(player))


def get_player_history(player: Player) -> List[Dict[str, Any]]:
    """Rows for the history page, newest first, each padded to six tiles."""
    rows: List[Dict[str, Any]] = []
    for entry in _history_entries(player):
        guess_count = min(int(entry.get("guess_count") or 0), MAX_ATTEMPTS)
        won = bool(entry.get("won"))
        tiles = ["wrong"] * guess_count
        if won and tiles:
            tiles[-1] = "correct"
        tiles.extend(["empty"] * (MAX_ATTEMPTS - guess_count))
        rows.append(
            {
                "date": entry["date"],
                "label": _format_day_label(entry["date"]),
                "won": won,
                "is_finished": bool(entry.get("is_finished")),
                "guess_count": guess_count,
                "answer_name": entry.get("answer_name") or "",
                "tiles": tiles,
            }
        )
    rows.sort(key=lambda row: row["date"], reverse=True)
    return rows


def _finished_results(player: Player) -> List[Dict[str, Any]]:
    if player.is_signed_in:
        try:
            return get_record_store().get_finished_games_with_dates(player.user_id)
        except RecordStoreError as exc:
            _log_service_warning("loading finished games", exc)
            return []
    return [
        {"date": entry["date"], "won": entry["won"]}
        for entry in _history_entries(player)
        if entry["is_finished"]
    ]


def _history_entries(player: Player) -> List[Dict[str, Any]]:
    if player.is_signed_in:
        try:
            return get_record_store().list_games_with_dates(player.user_id)
        except RecordStoreError as exc:
            _log_service_warning("loading game history", exc)
            return []
    if not player.device_id:
        return []
    try:
        records = LocalGameStore(player.device_id).get_records()
    except RecordStoreError as exc:
        _log_service_warning("loading device history", exc)
        return []
    return [
        {
            "date": record.date,
            "won": record.won,
            "is_finished": record.is_finished,
            "guess_count": record.guess_count,
            "answer_name": record.answer_name,
        }
        for record in records
    ]


def build_board(state: GameState, answer_name: str) -> Dict[str, Any]:
    """Everything the game template needs for one board."""
    species = None
    metadata_error = None
    try:
        species = get_pokedex_service().resolve_species_metadata(answer_name)
    except PokedexError as exc:
        _log_service_warning(f"loading metadata for {answer_name!r}", exc)
        metadata_error = "Pokémon data is unavailable right now."

    level = engine.hint_level(state)
    return {
        "state": state,
        "hint_level": level,
        "hints": revealed_hints(level, species),
        "show_image": engine.show_image(state),
        "species": species,
        "metadata_error": metadata_error,
        "answer_name": answer_name if state.is_finished else None,
        "max_attempts": MAX_ATTEMPTS,
    }


def build_daily_view(player: Player, day: Optional[str] = None) -> Dict[str, Any]:
    store = get_record_store()
    puzzle = get_today_puzzle(store, day)
    state = load_game_state(player, puzzle, store)
    board = build_board(state, puzzle.answer_name)
    board.update(
        {
            "puzzle_date": puzzle.available_on,
            "stats": get_player_stats(player),
        }
    )
    return board


def start_unlimited_game() -> Dict[str, Any]:
    answer = get_pokedex_service().random_species_name()
    return {"answer": answer, "guesses": [], "won": None}


def submit_unlimited_guess(game: Dict[str, Any], guess_name: str) -> tuple[Dict[str, Any], GuessOutcome]:
    guess_name = validate_guess(guess_name)
    state = unlimited_state(game)
    next_state, is_correct = engine.submit_guess(state, guess_name, game["answer"])
    updated = {
        "answer": game["answer"],
        "guesses": next_state.guess_names,
        "won": next_state.won,
    }
    outcome = GuessOutcome(
        next_state,
        is_correct,
        accepted=next_state is not state,
        saved=True,
        answer_name=game["answer"],
    )
    return updated, outcome


def unlimited_state(game: Dict[str, Any]) -> GameState:
    return engine.state_from_guesses(
        game.get("guesses") or [],
        won=game.get("won"),
        answer_name=game.get("answer"),
    )


def _format_day_label(day: str) -> str:
    try:
        parsed = date.fromisoformat(day)
    except (TypeError, ValueError):
        return day
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def _log_service_warning(action: str, exc: Exception) -> None:
    if not has_app_context():
        return
    logger = getattr(current_app, "logger", None)
    if logger:
        logger.warning("Daily game error while %s: %s", action, exc)
