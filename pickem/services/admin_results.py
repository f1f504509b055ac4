"""
Admin-side result entry

Manual scores, winner-only overrides, simulated finals and game resets. Each
write is committed and audited, then runs the same recomputation as every
other trigger.
"""

import logging
import random

from pickem.exceptions import WeekFinalizedError
from pickem.models import AdminAction
from pickem.services.triggers import on_game_written

logger = logging.getLogger(__name__)

SIMULATED_SCORE_RANGE = (10, 40)


def _validate_score(value, side):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{side} score must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{side} score must not be negative, got {value}")
    return value


def set_game_result(store, league_id, week_id, event_key, home_score, away_score, actor=None):
    """Record final scores for one game and recompute"""
    home_score = _validate_score(home_score, "Home")
    away_score = _validate_score(away_score, "Away")

    week = store.get_week(league_id, week_id)
    game = store.get_game(week, event_key)
    game.set_result(home_score, away_score)
    AdminAction.log_result_entry(actor, league_id, week_id, game, session=store.session)
    store.commit()

    logger.info(
        f"Result entered for {league_id}/{week_id} {event_key}: "
        f"{game.away} {away_score} @ {game.home} {home_score}"
    )
    return game, on_game_written(store, league_id, week_id)


def set_winner_only(store, league_id, week_id, event_key, winner, actor=None):
    """Mark a game decided with a winner but no scores and recompute"""
    week = store.get_week(league_id, week_id)
    game = store.get_game(week, event_key)
    game.set_winner_only(winner)
    AdminAction.log_result_entry(actor, league_id, week_id, game, session=store.session)
    store.commit()

    logger.info(f"Winner override for {league_id}/{week_id} {event_key}: {winner}")
    return game, on_game_written(store, league_id, week_id)


def simulate_finals(store, league_id, week_id, actor=None, rng=None):
    """
    Fill every undecided game with plausible random scores and recompute

    Equal random scores produce a decided tie.

    Returns:
        (number of games changed, WeekRecomputeResult or None)
    """
    rng = rng or random.Random()
    low, high = SIMULATED_SCORE_RANGE

    week = store.get_week(league_id, week_id)
    changed = []
    for game in store.list_undecided_games(week):
        game.set_result(rng.randint(low, high), rng.randint(low, high))
        changed.append(game.event_key)

    if not changed:
        logger.info(f"All games already decided in {league_id}/{week_id}")
        return 0, None

    AdminAction.log_action(
        league_id=league_id,
        action_type="simulate_finals",
        description=f"Simulated finals for {len(changed)} games",
        actor=actor,
        week_id=week_id,
        action_metadata={"event_keys": changed},
        session=store.session,
    )
    store.commit()
    return len(changed), on_game_written(store, league_id, week_id)


def reset_week_games(store, league_id, week_id, actor=None):
    """
    Remove every game from an open week and recompute

    Final weeks are never reopened.
    """
    week = store.get_week(league_id, week_id)
    if week.is_final:
        raise WeekFinalizedError(
            f"Week {league_id}/{week_id} is final; its games cannot be reset"
        )

    removed = store.delete_games(week)
    week.tiebreaker_event_key = None
    AdminAction.log_action(
        league_id=league_id,
        action_type="reset_games",
        description=f"Removed {removed} games",
        actor=actor,
        week_id=week_id,
        action_metadata={"removed": removed},
        session=store.session,
    )
    store.commit()

    logger.info(f"Reset {removed} games in {league_id}/{week_id}")
    return removed, on_game_written(store, league_id, week_id)
