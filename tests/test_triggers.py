"""Tests for the trigger entry points: game writes, polling and weekly advance."""

from unittest.mock import MagicMock, patch

from pickem.models import League, SeasonLeaderboardEntry
from pickem.services.results_sync import ResultsSync
from pickem.services.triggers import (
    advance_final_weeks,
    on_game_written,
    run_results_cycle,
    sync_and_recompute,
)


def provider_record(event_id, home, away, home_score, away_score, commence="2025-09-06T19:30:00Z"):
    return {
        "id": event_id,
        "commence_time": commence,
        "completed": True,
        "home_team": home,
        "away_team": away,
        "scores": [
            {"name": home, "score": str(home_score)},
            {"name": away, "score": str(away_score)},
        ],
    }


def fake_sync(records):
    client = MagicMock()
    client.list_scores.return_value = records
    return ResultsSync(client), client


@patch("pickem.socketio_handlers.broadcast_leaderboard_updated")
@patch("pickem.socketio_handlers.broadcast_week_scored")
def test_on_game_written_recomputes_and_publishes(mock_week, mock_board, store, scenario_week):
    result = on_game_written(store, "lg1", "2025-W01")

    assert result.finalized is True
    assert store.session.query(SeasonLeaderboardEntry).count() == 2

    mock_week.assert_called_once()
    league_id, week_id, scores = mock_week.call_args.args
    assert (league_id, week_id) == ("lg1", "2025-W01")
    assert {s["user_id"] for s in scores} == {"alice", "bob"}

    board = mock_board.call_args.args[1]
    assert [row["user_id"] for row in board] == ["bob", "alice"]
    assert board[0]["rank"] == 1


def test_sync_and_recompute_applies_results(store, league, make_week, make_pick):
    from .conftest import utc

    week = make_week(
        "lg1",
        "2025-W01",
        games=[
            {"event_key": "local-1", "home": "Ohio State", "away": "Michigan", "start_time": utc(2025, 9, 6, 19, 30)},
            {"event_key": "local-2", "home": "Texas", "away": "Oklahoma", "start_time": utc(2025, 9, 6, 23, 0)},
        ],
    )
    make_pick(week, "alice", {"local-1": "home", "local-2": "home"})
    results_sync, _ = fake_sync([provider_record("p1", "Ohio State", "Michigan", 24, 20)])

    updated, result = sync_and_recompute(store, league, "2025-W01", results_sync=results_sync)

    assert updated == ["local-1"]
    game = store.get_game(week, "local-1")
    assert (game.final_score_home, game.final_score_away, game.winner, game.decided) == (24, 20, "home", True)
    assert result.finalized is False
    assert {s.user_id: s.correct for s in store.list_week_scores(week)}["alice"] == 1


def test_sync_does_not_overwrite_decided_games(store, league, make_week):
    from .conftest import utc

    week = make_week(
        "lg1",
        "2025-W01",
        games=[
            {
                "event_key": "p1",
                "home": "Ohio State",
                "away": "Michigan",
                "start_time": utc(2025, 9, 6, 19, 30),
                "home_score": 10,
                "away_score": 7,
            },
            {"event_key": "p2", "home": "Texas", "away": "Oklahoma"},
        ],
    )
    results_sync, client = fake_sync([provider_record("p1", "Ohio State", "Michigan", 99, 0)])

    updated, _ = sync_and_recompute(store, league, "2025-W01", results_sync=results_sync)

    assert updated == []
    game = store.get_game(week, "p1")
    assert (game.final_score_home, game.final_score_away) == (10, 7)


def test_run_results_cycle_isolates_league_failures(store, league, scenario_week, make_week):
    store.session.add(League(id="broken", name="Broken", current_week_id="2099-W01"))
    league.current_week_id = "2025-W01"
    store.commit()
    results_sync, _ = fake_sync([])

    stats = run_results_cycle(store, results_sync=results_sync)

    # "broken" points at a week that does not exist
    assert stats["failed"] == 1
    assert stats["leagues"] == 1
    assert scenario_week.status == "final"


def test_run_results_cycle_skips_leagues_without_current_week(store, league):
    results_sync, client = fake_sync([])
    stats = run_results_cycle(store, results_sync=results_sync)

    assert stats == {"leagues": 0, "failed": 0, "games_updated": 0}
    client.list_scores.assert_not_called()


def test_advance_final_weeks(store, league, scenario_week, make_week):
    make_week("lg1", "2025-W02")
    store.session.add(League(id="idle", name="Idle"))
    store.commit()

    # Finalize W01 without letting recomputation move the pointer
    scenario_week.finalize()
    league.current_week_id = "2025-W01"
    store.commit()

    assert advance_final_weeks(store) == {"lg1": "2025-W02"}
    assert league.current_week_id == "2025-W02"
    assert advance_final_weeks(store) == {}
