"""PokéAPI lookups (species metadata, evolution stage, name search)."""

from .client import PokeApiClient, PokedexError
from .service import (
    PokedexService,
    SpeciesListCache,
    SpeciesMetadata,
    get_pokedex_service,
    init_pokedex,
    resolve_evolution_stage,
)

__all__ = [
    "PokeApiClient",
    "PokedexError",
    "PokedexService",
    "SpeciesListCache",
    "SpeciesMetadata",
    "get_pokedex_service",
    "init_pokedex",
    "resolve_evolution_stage",
]
