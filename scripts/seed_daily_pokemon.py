#!/usr/bin/env python
"""
Seed upcoming days of the daily puzzle with shuffled Pokémon.

Usage:
    python scripts/seed_daily_pokemon.py [--days 365] [--local]

Environment variables (Supabase mode):
    SUPABASE_URL
    SUPABASE_KEY       (service role key; bypasses row level security)

Without Supabase credentials, or with --local, rows go into the SQL database
configured for the app.
"""

from __future__ import annotations

import argparse
import os
import random
from datetime import date, timedelta
from typing import Dict, List, Optional

from supabase import create_client

from app import create_app
from daily.dates import today_iso
from extensions import db
from models import DailyPokemon
from pokedex import PokeApiClient, PokedexError

SPECIES_LIMIT = 1025
DEFAULT_DAYS = 365


def build_schedule(
    names: List[str],
    days: int,
    start: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, str]]:
    """Shuffle ``names`` and assign one per day from ``start``; wraps when days exceed names."""
    if not names:
        raise ValueError("no Pokémon names to schedule")
    shuffled = list(names)
    (rng or random).shuffle(shuffled)
    first_day = date.fromisoformat(start or today_iso())
    return [
        {
            "available_on": (first_day + timedelta(days=offset)).isoformat(),
            "pokemon_name": shuffled[offset % len(shuffled)],
        }
        for offset in range(days)
    ]


def fetch_species_names(client: PokeApiClient) -> List[str]:
    return [entry["name"] for entry in client.list_pokemon(limit=SPECIES_LIMIT) if entry.get("name")]


def seed_supabase(entries: List[Dict[str, str]], url: str, key: str) -> None:
    client = create_client(url, key)
    client.table("daily_pokemon").upsert(entries, on_conflict="available_on").execute()


def seed_local(entries: List[Dict[str, str]]) -> int:
    """Upsert into the SQL table; returns how many rows were written."""
    written = 0
    for entry in entries:
        available_on = date.fromisoformat(entry["available_on"])
        row = DailyPokemon.query.filter_by(available_on=available_on).first()
        if row is None:
            db.session.add(DailyPokemon(available_on=available_on, pokemon_name=entry["pokemon_name"]))
        else:
            row.pokemon_name = entry["pokemon_name"]
        written += 1
    db.session.commit()
    return written


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the daily Pokémon schedule.")
    parser.add_argument("--days", type=int, default=DEFAULT_DAYS, help="number of days to schedule")
    parser.add_argument("--local", action="store_true", help="write to the SQL database instead of Supabase")
    args = parser.parse_args(argv)
    if args.days < 1:
        raise SystemExit("--days must be at least 1.")

    print("🔍 Fetching Pokémon list from PokéAPI...")
    try:
        names = fetch_species_names(PokeApiClient())
    except PokedexError as exc:
        raise SystemExit(f"⚠️ Could not fetch Pokémon list: {exc}") from exc
    print(f"➡️ Retrieved {len(names)} Pokémon.")

    print(f"🗓️ Preparing {args.days} days of puzzles...")
    entries = build_schedule(names, args.days)

    supabase_url = os.environ.get("SUPABASE_URL")
    supabase_key = os.environ.get("SUPABASE_KEY")
    if not args.local and supabase_url and supabase_key:
        try:
            seed_supabase(entries, supabase_url, supabase_key)
        except Exception as exc:
            raise SystemExit(f"⚠️ Error seeding Supabase: {exc}") from exc
        print(f"✅ {len(entries)} days of Pokédexdle are ready in Supabase.")
        return

    if not args.local:
        print("ℹ️ No Supabase credentials found; seeding the local database.")
    app = create_app({"USE_SUPABASE": False})
    with app.app_context():
        written = seed_local(entries)
    print(f"✅ {written} days of Pokédexdle are ready locally.")


if __name__ == "__main__":
    main()
