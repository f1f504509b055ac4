"""
Recomputation procedures

Idempotent full overwrites of derived data: per-week scores, the week's
status, the league's week pointer, and the season leaderboard. Running any of
them twice over unchanged input leaves storage unchanged.
"""

import logging
from collections import namedtuple
from datetime import datetime, timezone

from pickem.utils.logging_config import league_logger
from pickem.utils.scoring import compute_week_score

logger = logging.getLogger(__name__)

WeekRecomputeResult = namedtuple(
    "WeekRecomputeResult",
    ["league_id", "week_id", "scored_users", "finalized", "advanced_to"],
)


def _advance_after(store, league, week, now):
    """Move the league pointer past a final week; never moves it backwards"""
    if not week.is_final:
        return None

    week_ids = store.list_week_ids(league.id)
    if week.week_id not in week_ids:
        return None
    idx = week_ids.index(week.week_id)
    if idx + 1 >= len(week_ids):
        return None

    next_id = week_ids[idx + 1]
    if league.current_week_id and league.current_week_id >= next_id:
        return None

    store.set_current_week(league, next_id, now)
    return next_id


def recompute_week(store, league_id, week_id, now=None, commit=True):
    """
    Score every member for one league-week and persist the results

    Scores the union of active members and anyone who has submitted picks,
    finalizes the week once every game is decided, and advances the league
    to the next week when this one is final.

    Returns:
        WeekRecomputeResult
    """
    log = league_logger(__name__, league_id, week_id)
    now = now or datetime.now(timezone.utc)

    league = store.get_league(league_id)
    week = store.get_week(league_id, week_id)

    games = store.list_games(week)
    picks = store.list_picks(week)
    user_ids = sorted(set(store.list_active_member_ids(league_id)) | set(picks))

    try:
        for user_id in user_ids:
            pick = picks.get(user_id)
            result = compute_week_score(
                pick.selections if pick is not None else {},
                games,
                points_per_correct=league.points_per_correct,
                tiebreaker_event_key=week.tiebreaker_event_key,
                tiebreaker_prediction=pick.tiebreaker if pick is not None else None,
            )
            store.upsert_week_score(week, user_id, result)

        removed = store.delete_stale_week_scores(week, user_ids)
        if removed:
            log.info(f"Removed {removed} stale week scores")

        finalized = False
        if games and all(game.decided for game in games):
            finalized = week.finalize(now)
            if finalized:
                log.info("Week finalized")

        advanced_to = _advance_after(store, league, week, now)
        if advanced_to:
            log.info(f"League advanced to {advanced_to}")

        if commit:
            store.commit()
    except Exception:
        store.rollback()
        raise

    log.info(f"Scored {len(user_ids)} users over {len(games)} games")
    return WeekRecomputeResult(league_id, week_id, len(user_ids), finalized, advanced_to)


def aggregate_season(weeks_with_scores):
    """
    Sum per-week scores into season totals

    Args:
        weeks_with_scores: iterable of WeekScore lists, one per final week

    Returns:
        dict of user id -> totals dict
    """
    totals = {}
    for scores in weeks_with_scores:
        for score in scores:
            entry = totals.setdefault(
                score.user_id,
                {
                    "correct": 0,
                    "total": 0,
                    "points": 0,
                    "weeks_counted": 0,
                    "tiebreaker_abs_error_total": 0,
                    "tiebreaker_weeks": 0,
                },
            )
            entry["correct"] += score.correct or 0
            entry["total"] += score.total or 0
            entry["points"] += score.points or 0
            entry["weeks_counted"] += 1
            if score.tiebreaker_abs_error is not None:
                entry["tiebreaker_abs_error_total"] += score.tiebreaker_abs_error
                entry["tiebreaker_weeks"] += 1
    return totals


def recompute_season(store, league_id, commit=True):
    """
    Rebuild the season leaderboard from every final week of a league

    Returns:
        leaderboard entries in ranking order
    """
    store.get_league(league_id)
    final_weeks = store.list_final_weeks(league_id)

    try:
        totals = aggregate_season(store.list_week_scores(week) for week in final_weeks)
        store.replace_leaderboard(league_id, totals)
        if commit:
            store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info(
        f"Season leaderboard for {league_id}: {len(totals)} users over {len(final_weeks)} final weeks"
    )
    return store.list_leaderboard(league_id)


def advance_league(store, league_id, now=None, commit=True):
    """
    Move a league whose current week is final on to the next week

    Returns:
        the new current week id, or None when nothing changed
    """
    league = store.get_league(league_id)
    if not league.current_week_id:
        return None

    week = store.get_week(league_id, league.current_week_id)
    advanced_to = _advance_after(store, league, week, now or datetime.now(timezone.utc))
    if advanced_to:
        logger.info(f"Advanced league {league_id} from {week.week_id} to {advanced_to}")
        if commit:
            store.commit()
    return advanced_to
