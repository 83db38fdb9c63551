"""Species metadata lookup with process-wide caches owned by the app."""

from __future__ import annotations

import random
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from flask import current_app, has_app_context

from .client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS, PokeApiClient, PokedexError

EXTENSION_KEY = "pokedex"
SEARCH_LIMIT = 10
SPECIES_LIST_LIMIT = 100000
DEFAULT_POOL_SIZE = 1025


@dataclass(frozen=True)
class SpeciesMetadata:
    name: str
    types: List[str] = field(default_factory=list)
    generation_name: Optional[str] = None
    evolution_stage: Optional[int] = 1
    artwork_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name[:1].upper() + self.name[1:]


def resolve_evolution_stage(chain_root: Optional[Dict[str, Any]], species_name: str) -> int:
    """Breadth-first search of an evolution chain; stage is 1 + depth.

    Every branch is searched, so siblings (e.g. Eevee's evolutions) all get a
    stage. A species missing from its own chain falls back to stage 1.
    """
    if not chain_root:
        return 1

    target = (species_name or "").lower()
    queue = deque([(chain_root, 1)])
    while queue:
        node, stage = queue.popleft()
        name = ((node.get("species") or {}).get("name") or "").lower()
        if name == target:
            return stage
        for child in node.get("evolves_to") or []:
            queue.append((child, stage + 1))
    return 1


class SpeciesListCache:
    """Get-or-populate holder for the full species name list.

    The loader runs at most once per populate; concurrent callers wait on the
    lock instead of racing duplicate fetches.
    """

    def __init__(self, loader: Callable[[], List[Dict[str, Any]]]) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._items: Optional[List[Dict[str, Any]]] = None

    @property
    def populated(self) -> bool:
        return self._items is not None

    def get(self) -> List[Dict[str, Any]]:
        items = self._items
        if items is not None:
            return items
        with self._lock:
            if self._items is None:
                self._items = list(self._loader())
            return self._items

    def clear(self) -> None:
        with self._lock:
            self._items = None


class PokedexService:
    def __init__(self, client: PokeApiClient, pool_size: int = DEFAULT_POOL_SIZE) -> None:
        self.client = client
        self.pool_size = pool_size
        self.species_list = SpeciesListCache(lambda: client.list_pokemon(limit=SPECIES_LIST_LIMIT))
        self._metadata: Dict[str, SpeciesMetadata] = {}
        self._metadata_lock = threading.Lock()

    def search_species(self, query: str, limit: int = SEARCH_LIMIT) -> List[Dict[str, str]]:
        if not query or not query.strip():
            return []

        lower = query.lower()
        matches: List[Dict[str, str]] = []
        for entry in self.species_list.get():
            name = entry.get("name") or ""
            if lower in name.lower():
                matches.append({"name": name})
                if len(matches) >= limit:
                    break
        return matches

    def resolve_species_metadata(self, name: str) -> SpeciesMetadata:
        key = (name or "").strip().lower()
        if not key:
            raise PokedexError("Pokémon name is required", status_code=400, payload={"error": "missing_name"})

        cached = self._metadata.get(key)
        if cached:
            return cached

        pokemon = self.client.get_pokemon(key)
        species_ref = (pokemon.get("species") or {}).get("name") or key
        species = self.client.get_species(species_ref)

        stage: Optional[int] = 1
        chain_url = (species.get("evolution_chain") or {}).get("url")
        if chain_url:
            try:
                chain = self.client.get_json(chain_url)
            except PokedexError as exc:
                # The other hints still render; the stage shows as unknown.
                _log_pokedex_warning(f"loading evolution chain for {species_ref!r}", exc)
                stage = None
            else:
                stage = resolve_evolution_stage(chain.get("chain"), species_ref)

        metadata = SpeciesMetadata(
            name=pokemon.get("name") or key,
            types=_ordered_types(pokemon.get("types") or []),
            generation_name=(species.get("generation") or {}).get("name"),
            evolution_stage=stage,
            artwork_url=_artwork_url(pokemon.get("sprites") or {}),
        )
        if stage is not None:
            with self._metadata_lock:
                self._metadata[key] = metadata
        return metadata

    def random_species_name(self, rng: Optional[random.Random] = None) -> str:
        pick = (rng or random).randint(1, self.pool_size)
        return self.client.get_pokemon(pick).get("name") or str(pick)


def init_pokedex(app) -> PokedexService:
    client = PokeApiClient(
        base_url=app.config.get("POKEAPI_BASE_URL", DEFAULT_BASE_URL),
        timeout=_coerce_timeout(app.config.get("POKEAPI_TIMEOUT_SECONDS")),
    )
    service = PokedexService(client, pool_size=int(app.config.get("UNLIMITED_POOL_SIZE", DEFAULT_POOL_SIZE)))
    app.extensions[EXTENSION_KEY] = service
    return service


def get_pokedex_service() -> PokedexService:
    service = current_app.extensions.get(EXTENSION_KEY)
    if service is None:
        service = init_pokedex(current_app)
    return service


def _ordered_types(raw_types: List[Dict[str, Any]]) -> List[str]:
    ordered = sorted(raw_types, key=lambda entry: entry.get("slot") or 0)
    names = []
    for entry in ordered:
        name = (entry.get("type") or {}).get("name")
        if name:
            names.append(name)
    return names


def _artwork_url(sprites: Dict[str, Any]) -> Optional[str]:
    artwork = ((sprites.get("other") or {}).get("official-artwork") or {}).get("front_default")
    return artwork or sprites.get("front_default")


def _coerce_timeout(value: Any) -> float:
    try:
        return max(1.0, float(value))
    except (TypeError, ValueError):
        return float(DEFAULT_TIMEOUT_SECONDS)


def _log_pokedex_warning(action: str, exc: Exception) -> None:
    if not has_app_context():
        return
    logger = getattr(current_app, "logger", None)
    if logger:
        logger.warning("PokéAPI error while %s: %s", action, exc)
