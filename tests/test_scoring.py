"""Tests for the pure scoring functions."""

from types import SimpleNamespace

import pytest

from pickem.utils.scoring import (
    CORRECT,
    INCORRECT,
    PENDING,
    TIE,
    compute_week_score,
    count_scorable_games,
    effective_winner,
    pick_verdict,
    resolve_winner,
    tiebreaker_abs_error,
    tiebreaker_actual,
)


def game(event_key="g", home=None, away=None, decided=None, winner=None):
    if decided is None:
        decided = home is not None and away is not None
    if winner is None:
        winner = resolve_winner(home, away)
    return SimpleNamespace(
        event_key=event_key,
        final_score_home=home,
        final_score_away=away,
        decided=decided,
        winner=winner,
    )


SCENARIO = [game("g1", 24, 20), game("g2", 10, 17), game("g3", 14, 14)]


# ---------------------------------------------------------------------------
# Winner resolution
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "home,away,expected",
    [
        (20, 17, "home"),
        (17, 20, "away"),
        (21, 21, "tie"),
        (0, 0, "tie"),
        (None, 10, None),
        (10, None, None),
        (None, None, None),
    ],
)
def test_resolve_winner(home, away, expected):
    assert resolve_winner(home, away) == expected


def test_resolve_winner_is_total_over_small_grid():
    for h in range(0, 6):
        for a in range(0, 6):
            result = resolve_winner(h, a)
            assert (result == "home") == (h > a)
            assert (result == "away") == (a > h)
            assert (result == "tie") == (h == a)


def test_effective_winner_prefers_scores_over_stored_winner():
    g = game(home=20, away=17, winner="away")
    assert effective_winner(g) == "home"


def test_effective_winner_uses_override_without_scores():
    g = game(decided=True, winner="away")
    assert effective_winner(g) == "away"


# ---------------------------------------------------------------------------
# Pick verdicts
# ---------------------------------------------------------------------------


def test_pick_verdict_decided_game():
    g = game(home=20, away=17)
    assert pick_verdict("home", g) == CORRECT
    assert pick_verdict("away", g) == INCORRECT


def test_pick_verdict_tie_regardless_of_pick():
    g = game(home=21, away=21)
    assert pick_verdict("home", g) == TIE
    assert pick_verdict("away", g) == TIE
    assert pick_verdict(None, g) == TIE


def test_pick_verdict_undecided_is_pending():
    g = game()
    assert pick_verdict("home", g) == PENDING
    assert pick_verdict(None, g) == PENDING


def test_pick_verdict_no_pick_on_decided_game_is_pending():
    assert pick_verdict(None, game(home=20, away=17)) == PENDING
    assert pick_verdict("", game(home=20, away=17)) == PENDING


def test_pick_verdict_missing_game_is_pending():
    assert pick_verdict("home", None) == PENDING


# ---------------------------------------------------------------------------
# Tiebreaker
# ---------------------------------------------------------------------------


def test_tiebreaker_actual_differential():
    assert tiebreaker_actual(game(home=27, away=20)) == 7
    assert tiebreaker_actual(game(home=20, away=27)) == -7


def test_tiebreaker_actual_missing_scores():
    assert tiebreaker_actual(game(home=27)) is None
    assert tiebreaker_actual(game(decided=True, winner="home")) is None
    assert tiebreaker_actual(None) is None


def test_tiebreaker_abs_error():
    assert tiebreaker_abs_error(10, 7) == 3
    assert tiebreaker_abs_error(-4, 7) == 11
    assert tiebreaker_abs_error(None, 7) is None
    assert tiebreaker_abs_error(10, None) is None


# ---------------------------------------------------------------------------
# Week score aggregation
# ---------------------------------------------------------------------------


def test_compute_week_score_end_to_end_scenario():
    result = compute_week_score({"g1": "home", "g2": "home", "g3": "away"}, SCENARIO)
    assert result.correct == 1
    assert result.points == 1
    assert result.total == 2


def test_compute_week_score_points_scaling():
    result = compute_week_score({"g1": "home", "g2": "away"}, SCENARIO, points_per_correct=3)
    assert result.correct == 2
    assert result.points == 6


def test_compute_week_score_none_points_means_one():
    result = compute_week_score({"g1": "home"}, SCENARIO, points_per_correct=None)
    assert result.points == 1


def test_compute_week_score_skips_unknown_and_undecided_games():
    games = SCENARIO + [game("g4")]
    result = compute_week_score({"g4": "home", "nope": "away", "g1": "home"}, games)
    assert result.correct == 1
    assert result.total == 2


def test_compute_week_score_without_picks_keeps_week_total():
    result = compute_week_score({}, SCENARIO)
    assert result == (0, 2, 0, None, None, None)
    assert compute_week_score(None, SCENARIO).total == 2


def test_compute_week_score_tiebreaker_fields():
    result = compute_week_score(
        {"g1": "home"}, SCENARIO, tiebreaker_event_key="g1", tiebreaker_prediction=10
    )
    assert result.tiebreaker_prediction == 10
    assert result.tiebreaker_actual == 4
    assert result.tiebreaker_abs_error == 6


def test_compute_week_score_winner_override_scores_without_tiebreaker():
    games = [game("g1", decided=True, winner="away")]
    result = compute_week_score(
        {"g1": "away"}, games, tiebreaker_event_key="g1", tiebreaker_prediction=3
    )
    assert result.correct == 1
    assert result.total == 1
    assert result.tiebreaker_actual is None
    assert result.tiebreaker_abs_error is None


def test_compute_week_score_is_deterministic():
    picks = {"g1": "home", "g2": "away", "g3": "home"}
    first = compute_week_score(picks, SCENARIO, 2, "g2", 5)
    second = compute_week_score(picks, SCENARIO, 2, "g2", 5)
    assert first == second


def test_count_scorable_games_excludes_ties_and_undecided():
    assert count_scorable_games(SCENARIO + [game("g4")]) == 2
    assert count_scorable_games([]) == 0
