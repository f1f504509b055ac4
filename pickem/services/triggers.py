"""
Entry points that chain the core procedures

Scheduled polling, the weekly advance, game writes and admin actions all end
up here, so every path runs the same sequence: results sync (polling only),
week recomputation, season aggregation, then cache invalidation and a
realtime notification.
"""

import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from pickem.services.recompute import advance_league, recompute_season, recompute_week
from pickem.services.results_sync import ResultsSync

logger = logging.getLogger(__name__)


def publish_scores(league_id, week_id, scores=None, leaderboard=None):
    """Invalidate cached reads and notify subscribers after a recomputation"""
    from pickem.socketio_handlers import broadcast_leaderboard_updated, broadcast_week_scored
    from pickem.utils.cache_utils import invalidate_league_cache

    invalidate_league_cache("leaderboard", league_id)
    broadcast_week_scored(
        league_id,
        week_id,
        [score.to_dict() for score in scores] if scores is not None else None,
    )
    if leaderboard is not None:
        broadcast_leaderboard_updated(
            league_id,
            [entry.to_dict(rank=idx) for idx, entry in enumerate(leaderboard, start=1)],
        )


def recompute_and_publish(store, league_id, week_id, now=None):
    """
    Week recomputation, season aggregation, then notification

    Returns:
        WeekRecomputeResult of the week recomputation
    """
    result = recompute_week(store, league_id, week_id, now=now)
    leaderboard = recompute_season(store, league_id)
    scores = store.list_week_scores(store.get_week(league_id, week_id))
    publish_scores(league_id, week_id, scores=scores, leaderboard=leaderboard)
    return result


def on_game_written(store, league_id, week_id, now=None):
    """Recompute after a committed game result write"""
    logger.debug(f"Game write in {league_id}/{week_id}, recomputing")
    return recompute_and_publish(store, league_id, week_id, now=now)


def sync_and_recompute(store, league, week_id, results_sync=None, use_event_ids=False, now=None):
    """
    Pull provider results for one week, then recompute it

    Returns:
        (updated event keys, WeekRecomputeResult)
    """
    results_sync = results_sync or ResultsSync.from_config(current_app.config)
    sport_key = league.sport_key or current_app.config.get("ODDS_SPORT_KEY")

    week = store.get_week(league.id, week_id)
    updated = results_sync.sync_week(store, week, sport_key, use_event_ids=use_event_ids)
    if updated:
        store.commit()

    # Rescored even without new results; picks and members may have changed
    result = recompute_and_publish(store, league.id, week_id, now=now)
    return updated, result


def run_results_cycle(store, results_sync=None, now=None):
    """
    One polling pass over every league with a current week

    Each league is isolated: a failure is logged and rolled back and the
    remaining leagues are still processed.

    Returns:
        dict with leagues processed, failed and games updated
    """
    results_sync = results_sync or ResultsSync.from_config(current_app.config)
    stats = {"leagues": 0, "failed": 0, "games_updated": 0}

    for league in store.list_leagues():
        if not league.current_week_id:
            continue

        league_id = league.id
        week_id = league.current_week_id
        try:
            updated, _ = sync_and_recompute(
                store, league, week_id, results_sync=results_sync, now=now
            )
            stats["leagues"] += 1
            stats["games_updated"] += len(updated)
        except SQLAlchemyError as e:
            store.rollback()
            stats["failed"] += 1
            logger.error(f"Database error polling {league_id}/{week_id}: {e}", exc_info=True)
        except Exception as e:
            store.rollback()
            stats["failed"] += 1
            logger.error(f"Error polling {league_id}/{week_id}: {e}", exc_info=True)

    logger.info(
        f"Results cycle complete: {stats['leagues']} leagues, "
        f"{stats['games_updated']} games updated, {stats['failed']} failed"
    )
    return stats


def advance_final_weeks(store, now=None):
    """
    Weekly pass: move every league whose current week is final to the next one

    Returns:
        dict of league id -> new current week id for leagues that moved
    """
    advanced = {}
    for league in store.list_leagues():
        league_id = league.id
        try:
            new_week_id = advance_league(store, league_id, now=now)
        except Exception as e:
            store.rollback()
            logger.error(f"Error advancing league {league_id}: {e}", exc_info=True)
            continue
        if new_week_id:
            advanced[league_id] = new_week_id

    logger.info(f"Weekly advance complete: {len(advanced)} leagues advanced")
    return advanced
