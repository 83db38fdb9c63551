"""
Streak and aggregate statistics.
"""

from daily.stats import UserStats, collapse_by_date, compute_stats


def test_empty_history():
    assert compute_stats([]) == UserStats(0, 0, 0, 0)


def test_recomputing_gives_identical_result():
    entries = [("2024-01-03", True), ("2024-01-01", True), ("2024-01-02", False), ("2024-01-04", True)]
    assert compute_stats(entries) == compute_stats(entries)
    assert compute_stats(entries) == compute_stats(list(reversed(entries)))


def test_gap_breaks_streak():
    stats = compute_stats([("2024-01-01", True), ("2024-01-02", True), ("2024-01-04", True)])
    assert stats.best_streak == 2
    assert stats.current_streak == 1
    assert stats.total_games == 3
    assert stats.total_wins == 3


def test_loss_resets_current_streak():
    stats = compute_stats([("2024-01-01", True), ("2024-01-02", True), ("2024-01-03", False)])
    assert stats.best_streak == 2
    assert stats.current_streak == 0
    assert stats.total_wins == 2


def test_win_after_loss_on_next_day_starts_new_streak():
    stats = compute_stats([("2024-01-01", True), ("2024-01-02", False), ("2024-01-03", True)])
    assert stats.current_streak == 1
    assert stats.best_streak == 1


def test_malformed_date_is_treated_as_absent():
    with_bad = compute_stats([("2024-01-01", True), ("bad-date", True), ("2024-01-02", True)])
    without = compute_stats([("2024-01-01", True), ("2024-01-02", True)])
    assert with_bad == without
    assert with_bad.current_streak == 2


def test_streak_spans_month_boundary():
    stats = compute_stats([("2024-01-31", True), ("2024-02-01", True)])
    assert stats.current_streak == 2


def test_duplicate_dates_collapse_to_one_result():
    assert collapse_by_date([("2024-01-01", False), ("2024-01-01", True)]) == {"2024-01-01": True}
    stats = compute_stats([("2024-01-01", False), ("2024-01-01", True)])
    assert stats.total_games == 1
    assert stats.total_wins == 1


def test_to_dict_keys():
    payload = UserStats(3, 2, 1, 2).to_dict()
    assert payload == {"totalGames": 3, "totalWins": 2, "currentStreak": 1, "bestStreak": 2}
