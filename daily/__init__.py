"""Daily Pokémon puzzle: game engine, stores and web routes."""

from .routes import create_daily_blueprint

__all__ = ["create_daily_blueprint"]
