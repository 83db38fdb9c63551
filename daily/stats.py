"""Reduce per-day win/loss history into streak statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Tuple

from .dates import to_utc_day_number


@dataclass(frozen=True)
class UserStats:
    total_games: int = 0
    total_wins: int = 0
    current_streak: int = 0
    best_streak: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        return {
            "totalGames": data["total_games"],
            "totalWins": data["total_wins"],
            "currentStreak": data["current_streak"],
            "bestStreak": data["best_streak"],
        }


def collapse_by_date(entries: Iterable[Tuple[str, bool]]) -> dict[str, bool]:
    """One result per date; a day counts as won if any entry for it is a win."""
    by_date: dict[str, bool] = {}
    for day, won in entries:
        if not day:
            continue
        by_date[day] = by_date.get(day, False) or won is True
    return by_date


def compute_stats(entries: Iterable[Tuple[str, bool]]) -> UserStats:
    """Compute totals and streaks from ``(YYYY-MM-DD, won)`` pairs.

    Dates that fail to parse are treated as absent: they neither break a streak
    nor count towards the totals.
    """
    by_date = collapse_by_date(entries)

    total_games = 0
    total_wins = 0
    best_streak = 0
    streak = 0
    prev_day: Optional[int] = None

    for day, won in sorted(by_date.items(), key=lambda item: item[0]):
        day_number = to_utc_day_number(day)
        if day_number is None:
            continue

        total_games += 1
        if won:
            total_wins += 1
            if prev_day is not None and day_number == prev_day + 1:
                streak += 1
            else:
                streak = 1
            best_streak = max(best_streak, streak)
        else:
            streak = 0
        prev_day = day_number

    # After the last valid day, ``streak`` is 0 if that day was lost.
    return UserStats(
        total_games=total_games,
        total_wins=total_wins,
        current_streak=streak,
        best_streak=best_streak,
    )
