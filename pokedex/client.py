"""Thin requests wrapper around the public PokéAPI."""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

import requests

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"
DEFAULT_TIMEOUT_SECONDS = 10


class PokedexError(Exception):
    """Raised when PokéAPI cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int = 502, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {"error": "pokedex_unavailable"}


class PokeApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_pokemon(self, name_or_id: Union[str, int]) -> Dict[str, Any]:
        return self.get_json(f"{self.base_url}/pokemon/{_slug(name_or_id)}")

    def get_species(self, name_or_id: Union[str, int]) -> Dict[str, Any]:
        return self.get_json(f"{self.base_url}/pokemon-species/{_slug(name_or_id)}")

    def list_pokemon(self, limit: int = 100000, offset: int = 0) -> list[Dict[str, Any]]:
        payload = self.get_json(
            f"{self.base_url}/pokemon",
            params={"limit": limit, "offset": offset},
        )
        return payload.get("results") or []

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PokedexError(f"PokéAPI request failed: {exc}") from exc

        if resp.status_code == 404:
            raise PokedexError(
                f"PokéAPI has no resource at {url}",
                status_code=404,
                payload={"error": "pokemon_not_found"},
            )
        if resp.status_code >= 400:
            raise PokedexError(f"PokéAPI returned {resp.status_code} for {url}")

        try:
            return resp.json()
        except ValueError as exc:
            raise PokedexError(f"PokéAPI returned invalid JSON for {url}") from exc


def _slug(value: Union[str, int]) -> str:
    return str(value).strip().lower()
