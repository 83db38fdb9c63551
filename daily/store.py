"""Record store for puzzles, games and guesses (Supabase first, SQL fallback)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import DailyPokemon, Game, Guess

from .engine import GuessRecord

PUZZLE_TABLE = "daily_pokemon"
GAMES_TABLE = "games"
GUESSES_TABLE = "guesses"


class RecordStoreError(Exception):
    """Raised when the backing store cannot read or persist a record."""


@dataclass(frozen=True)
class PuzzleRecord:
    id: str
    available_on: str
    answer_name: str


@dataclass(frozen=True)
class GameRecord:
    id: str
    user_id: str
    puzzle_id: str
    guesses: List[GuessRecord] = field(default_factory=list)
    won: Optional[bool] = None
    is_finished: bool = False


class RecordStore:
    """Operations the gameplay service needs from a persistent store."""

    name = "abstract"

    def get_puzzle_for_date(self, day: str) -> Optional[PuzzleRecord]:
        raise NotImplementedError

    def get_game(self, user_id: str, puzzle_id: str) -> Optional[GameRecord]:
        raise NotImplementedError

    def create_game(self, user_id: str, puzzle_id: str) -> GameRecord:
        """Atomic get-or-create keyed on (user_id, puzzle_id)."""
        raise NotImplementedError

    def get_or_create_game(self, user_id: str, puzzle_id: str) -> GameRecord:
        return self.create_game(user_id, puzzle_id)

    def append_guess(self, game_id: str, user_id: str, guess_name: str, attempt_number: int) -> None:
        raise NotImplementedError

    def finish_game(self, game_id: str, won: bool) -> None:
        raise NotImplementedError

    def get_finished_games_with_dates(self, user_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def list_games_with_dates(self, user_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError


class SqlRecordStore(RecordStore):
    name = "sql"

    def get_puzzle_for_date(self, day: str) -> Optional[PuzzleRecord]:
        available_on = _parse_date(day)
        if available_on is None:
            return None
        try:
            row = DailyPokemon.query.filter_by(available_on=available_on).first()
        except SQLAlchemyError as exc:
            raise RecordStoreError(f"puzzle lookup failed: {exc}") from exc
        if not row:
            return None
        return PuzzleRecord(id=row.id, available_on=row.available_on.isoformat(), answer_name=row.pokemon_name)

    def get_game(self, user_id: str, puzzle_id: str) -> Optional[GameRecord]:
        try:
            row = Game.query.filter_by(user_id=user_id, daily_pokemon_id=puzzle_id).first()
        except SQLAlchemyError as exc:
            raise RecordStoreError(f"game lookup failed: {exc}") from exc
        return _game_record_from_row(row) if row else None

    def create_game(self, user_id: str, puzzle_id: str) -> GameRecord:
        existing = self.get_game(user_id, puzzle_id)
        if existing:
            return existing

        db.session.add(Game(user_id=user_id, daily_pokemon_id=puzzle_id))
        try:
            db.session.commit()
        except IntegrityError:
            # Another request created the row first; the unique constraint wins.
            db.session.rollback()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise RecordStoreError(f"game creation failed: {exc}") from exc

        game = self.get_game(user_id, puzzle_id)
        if game is None:
            raise RecordStoreError("game missing after creation")
        return game

    def append_guess(self, game_id: str, user_id: str, guess_name: str, attempt_number: int) -> None:
        db.session.add(
            Guess(
                game_id=game_id,
                user_id=user_id,
                guess_name=guess_name,
                attempt_number=attempt_number,
            )
        )
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise RecordStoreError(f"guess insert failed: {exc}") from exc

    def finish_game(self, game_id: str, won: bool) -> None:
        try:
            row = db.session.get(Game, game_id)
            if row is None:
                raise RecordStoreError(f"game {game_id} not found")
            row.won = bool(won)
            row.is_finished = True
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise RecordStoreError(f"finishing game failed: {exc}") from exc

    def get_finished_games_with_dates(self, user_id: str) -> List[Dict[str, Any]]:
        return [
            {"date": row["date"], "won": row["won"]}
            for row in self.list_games_with_dates(user_id)
            if row["is_finished"]
        ]

    def list_games_with_dates(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            rows = (
                db.session.query(Game, DailyPokemon)
                .join(DailyPokemon, Game.daily_pokemon_id == DailyPokemon.id)
                .filter(Game.user_id == user_id)
                .all()
            )
        except SQLAlchemyError as exc:
            raise RecordStoreError(f"game history lookup failed: {exc}") from exc

        return [
            {
                "date": puzzle.available_on.isoformat(),
                "won": game.won is True,
                "is_finished": bool(game.is_finished),
                "guess_count": len(game.guesses),
                "answer_name": puzzle.pokemon_name,
            }
            for game, puzzle in rows
        ]


class SupabaseRecordStore(RecordStore):
    name = "supabase"

    def __init__(self, client) -> None:
        self.client = client

    def get_puzzle_for_date(self, day: str) -> Optional[PuzzleRecord]:
        rows = self._execute(
            "fetching daily puzzle",
            self.client.table(PUZZLE_TABLE).select("*").eq("available_on", day).limit(1),
        )
        if not rows:
            return None
        row = rows[0]
        return PuzzleRecord(
            id=str(row.get("id")),
            available_on=str(row.get("available_on")),
            answer_name=row.get("pokemon_name") or "",
        )

    def get_game(self, user_id: str, puzzle_id: str) -> Optional[GameRecord]:
        rows = self._execute(
            "fetching game",
            self.client.table(GAMES_TABLE)
            .select("*, guesses(*)")
            .eq("user_id", user_id)
            .eq("daily_pokemon_id", puzzle_id)
            .limit(1),
        )
        return _game_record_from_dict(rows[0]) if rows else None

    def create_game(self, user_id: str, puzzle_id: str) -> GameRecord:
        self._execute(
            "creating game",
            self.client.table(GAMES_TABLE).upsert(
                {"user_id": user_id, "daily_pokemon_id": puzzle_id},
                on_conflict="user_id,daily_pokemon_id",
                ignore_duplicates=True,
            ),
        )
        game = self.get_game(user_id, puzzle_id)
        if game is None:
            raise RecordStoreError("game missing after upsert")
        return game

    def append_guess(self, game_id: str, user_id: str, guess_name: str, attempt_number: int) -> None:
        self._execute(
            "inserting guess",
            self.client.table(GUESSES_TABLE).insert(
                {
                    "game_id": game_id,
                    "user_id": user_id,
                    "guess_name": guess_name,
                    "attempt_number": attempt_number,
                },
                returning="minimal",
            ),
        )

    def finish_game(self, game_id: str, won: bool) -> None:
        self._execute(
            "finishing game",
            self.client.table(GAMES_TABLE).update({"won": bool(won), "is_finished": True}).eq("id", game_id),
        )

    def get_finished_games_with_dates(self, user_id: str) -> List[Dict[str, Any]]:
        return [
            {"date": row["date"], "won": row["won"]}
            for row in self.list_games_with_dates(user_id)
            if row["is_finished"]
        ]

    def list_games_with_dates(self, user_id: str) -> List[Dict[str, Any]]:
        rows = self._execute(
            "fetching game history",
            self.client.table(GAMES_TABLE)
            .select("won, is_finished, guesses(attempt_number), daily_pokemon:daily_pokemon_id(available_on, pokemon_name)")
            .eq("user_id", user_id),
        )
        history: List[Dict[str, Any]] = []
        for row in rows:
            puzzle = row.get("daily_pokemon") or {}
            available_on = puzzle.get("available_on")
            if not available_on:
                continue
            history.append(
                {
                    "date": str(available_on),
                    "won": row.get("won") is True,
                    "is_finished": bool(row.get("is_finished")),
                    "guess_count": len(row.get("guesses") or []),
                    "answer_name": puzzle.get("pokemon_name") or "",
                }
            )
        return history

    def _execute(self, action: str, query) -> List[Dict[str, Any]]:
        try:
            resp = query.execute()
        except Exception as exc:  # supabase/postgrest raise several unrelated types
            _log_store_warning(action, exc)
            raise RecordStoreError(f"Supabase error while {action}: {exc}") from exc
        return getattr(resp, "data", None) or []


def get_record_store() -> RecordStore:
    """Pick Supabase when the app has a client configured, else the SQL store."""
    client = _get_supabase_client()
    if client:
        return SupabaseRecordStore(client)
    return SqlRecordStore()


def _get_supabase_client():
    if not has_app_context():
        return None
    if not current_app.config.get("USE_SUPABASE"):
        return None
    client = current_app.config.get("SUPABASE_CLIENT")
    return client if client else None


def _game_record_from_row(row: Game) -> GameRecord:
    guesses = [
        GuessRecord(
            attempt_number=guess.attempt_number,
            guess_name=guess.guess_name,
            created_at=guess.created_at,
        )
        for guess in sorted(row.guesses, key=lambda g: g.attempt_number)
    ]
    return GameRecord(
        id=row.id,
        user_id=row.user_id,
        puzzle_id=row.daily_pokemon_id,
        guesses=guesses,
        won=row.won,
        is_finished=bool(row.is_finished),
    )


def _game_record_from_dict(row: Dict[str, Any]) -> GameRecord:
    guesses = [
        GuessRecord(
            attempt_number=int(entry.get("attempt_number") or 0),
            guess_name=entry.get("guess_name") or "",
            created_at=_parse_datetime(entry.get("created_at")),
        )
        for entry in row.get("guesses") or []
    ]
    guesses.sort(key=lambda g: g.attempt_number)
    return GameRecord(
        id=str(row.get("id")),
        user_id=str(row.get("user_id")),
        puzzle_id=str(row.get("daily_pokemon_id")),
        guesses=guesses,
        won=row.get("won"),
        is_finished=bool(row.get("is_finished")),
    )


def _parse_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(str(value))
        except (TypeError, ValueError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _log_store_warning(action: str, exc: Exception) -> None:
    if not has_app_context():
        return
    logger = getattr(current_app, "logger", None)
    if logger:
        logger.warning("Record store error while %s: %s", action, exc)
