"""Database models for the daily puzzle, games and guesses (SQL record store)."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import func

from extensions import db


def _new_id() -> str:
    return str(uuid.uuid4())


class DailyPokemon(db.Model):
    """One target Pokémon per calendar day (UTC); written only by the seeder."""

    __tablename__ = "daily_pokemon"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    available_on = db.Column(db.Date, nullable=False, unique=True, index=True)
    pokemon_name = db.Column(db.String(80), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - helper for shell debugging
        return f"<DailyPokemon {self.available_on} {self.pokemon_name!r}>"


class Game(db.Model):
    """A player's attempt at a single daily puzzle (unique per user/puzzle)."""

    __tablename__ = "games"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    daily_pokemon_id = db.Column(
        db.String(36),
        db.ForeignKey("daily_pokemon.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    won = db.Column(db.Boolean, nullable=True)
    is_finished = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), nullable=False)

    daily_pokemon = db.relationship("DailyPokemon")
    guesses = db.relationship(
        "Guess",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="Guess.attempt_number",
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "daily_pokemon_id", name="uq_games_user_puzzle"),
    )

    def __repr__(self) -> str:  # pragma: no cover - helper for shell debugging
        return f"<Game id={self.id} user={self.user_id} won={self.won!r}>"


class Guess(db.Model):
    """A single attempt; attempt_number is dense and 1-based within a game."""

    __tablename__ = "guesses"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    game_id = db.Column(
        db.String(36),
        db.ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.String(36), nullable=False, index=True)
    guess_name = db.Column(db.String(80), nullable=False)
    attempt_number = db.Column(db.Integer, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    game = db.relationship("Game", back_populates="guesses")

    __table_args__ = (
        db.UniqueConstraint("game_id", "attempt_number", name="uq_guesses_game_attempt"),
    )
