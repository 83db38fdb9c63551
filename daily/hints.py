"""Hint tiers revealed as wrong guesses accumulate."""

from __future__ import annotations

from typing import Optional

PLACEHOLDER = "???"

HINT_LABELS = ("Type", "Secondary Type", "Evolution Stage", "Generation")

ROMAN_VALUES = {
    "i": 1,
    "v": 5,
    "x": 10,
    "l": 50,
    "c": 100,
    "d": 500,
    "m": 1000,
}


def roman_to_int(numeral: str) -> int:
    """Decode a Roman numeral, subtracting a symbol that precedes a larger one."""
    symbols = (numeral or "").strip().lower()
    if not symbols:
        raise ValueError("Empty Roman numeral")

    total = 0
    for index, symbol in enumerate(symbols):
        try:
            value = ROMAN_VALUES[symbol]
        except KeyError:
            raise ValueError(f"Invalid Roman numeral symbol {symbol!r} in {numeral!r}") from None
        following = ROMAN_VALUES.get(symbols[index + 1]) if index + 1 < len(symbols) else None
        if following is not None and value < following:
            total -= value
        else:
            total += value
    return total


def generation_number(generation_name: Optional[str]) -> Optional[int]:
    """Return the ordinal for PokéAPI names like ``generation-iii`` (or bare ``iii``)."""
    if not generation_name:
        return None
    suffix = str(generation_name).strip().rsplit("-", 1)[-1]
    try:
        return roman_to_int(suffix)
    except ValueError:
        return None


def revealed_hints(level: int, species) -> list[str]:
    """Render all four hint rows, unlocked tiers first-to-last by ``level``.

    Locked tiers keep a placeholder so the hint row never changes length.
    """
    types = list(getattr(species, "types", None) or [])
    stage = getattr(species, "evolution_stage", None)
    generation = generation_number(getattr(species, "generation_name", None))

    unlocked = [
        types[0] if types else "unknown",
        types[1] if len(types) > 1 else "None",
        stage if stage else "?",
        generation,
    ]

    hints: list[str] = []
    for tier, (label, value) in enumerate(zip(HINT_LABELS, unlocked), start=1):
        if level < tier or value is None:
            value = PLACEHOLDER
        hints.append(f"{label}: {value}")
    return hints
