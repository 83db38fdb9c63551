"""
Shared fixtures: an app on in-memory SQLite with PokéAPI replaced by a fake.
"""

from datetime import date

import pytest

from app import create_app
from daily.dates import today_iso
from extensions import db
from models import DailyPokemon
from pokedex import PokedexError, SpeciesMetadata
from pokedex.service import EXTENSION_KEY

SPECIES = {
    "pikachu": SpeciesMetadata(
        name="pikachu",
        types=["electric"],
        generation_name="generation-i",
        evolution_stage=2,
        artwork_url="https://img.example/pikachu.png",
    ),
    "charizard": SpeciesMetadata(
        name="charizard",
        types=["fire", "flying"],
        generation_name="generation-i",
        evolution_stage=3,
        artwork_url="https://img.example/charizard.png",
    ),
}


class FakePokedex:
    def __init__(self):
        self.down = False

    def resolve_species_metadata(self, name):
        if self.down:
            raise PokedexError("PokéAPI is down")
        try:
            return SPECIES[name.lower()]
        except KeyError:
            raise PokedexError("not found", status_code=404, payload={"error": "pokemon_not_found"})

    def search_species(self, query, limit=10):
        if not query or not query.strip():
            return []
        names = ["pikachu", "pichu", "raichu", "charizard", "charmander"]
        return [{"name": n} for n in names if query.lower() in n][:limit]

    def random_species_name(self, rng=None):
        if self.down:
            raise PokedexError("PokéAPI is down")
        return "charizard"


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "USE_SUPABASE": False,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
        }
    )
    app.extensions[EXTENSION_KEY] = FakePokedex()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def pokedex(app):
    return app.extensions[EXTENSION_KEY]


@pytest.fixture
def seed_puzzle(app):
    def _seed(name="pikachu", day=None):
        with app.app_context():
            row = DailyPokemon(available_on=date.fromisoformat(day or today_iso()), pokemon_name=name)
            db.session.add(row)
            db.session.commit()
            return row.id

    return _seed
