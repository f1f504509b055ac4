from functools import wraps

from flask import current_app, jsonify, request

from pickem.routes.api import bp
from pickem.services.storage import LeagueStore
from pickem.utils.cache_utils import cached_league_query
from pickem.utils.scoring import pick_verdict
from pickem.utils.weeks import default_week_id


def add_security_headers(f):
    """Add security headers to API responses"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = f(*args, **kwargs)
        if hasattr(response, "headers"):
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Cache-Control"] = (
                "no-store, no-cache, must-revalidate, max-age=0"
            )
        return response

    return decorated_function


@cached_league_query("leaderboard")
def get_league_leaderboard(league_id):
    """Ranked season leaderboard as plain dicts"""
    store = LeagueStore()
    entries = store.list_leaderboard(store.get_league(league_id).id)
    return [entry.to_dict(rank=idx) for idx, entry in enumerate(entries, start=1)]


@bp.route("/leagues/<league_id>")
def league_detail(league_id):
    """League settings plus its weeks and the week to show by default"""
    store = LeagueStore()
    league = store.get_league(league_id)
    weeks = store.list_weeks(league_id)

    data = league.to_dict()
    data["members"] = [member.to_dict() for member in store.list_members(league_id)]
    data["weeks"] = [week.to_dict() for week in weeks]
    data["default_week_id"] = default_week_id(league, weeks)
    return jsonify(data)


@bp.route("/leagues/<league_id>/leaderboard")
def league_leaderboard(league_id):
    """Get the season leaderboard for a league"""
    return jsonify({"league_id": league_id, "leaderboard": get_league_leaderboard(league_id)})


@bp.route("/leagues/<league_id>/weeks/<week_id>/scores")
@add_security_headers
def week_scores(league_id, week_id):
    """Per-user scores for one week, best first"""
    store = LeagueStore()
    week = store.get_week(league_id, week_id)
    scores = sorted(
        store.list_week_scores(week),
        key=lambda s: (
            -s.points,
            -s.correct,
            s.tiebreaker_abs_error if s.tiebreaker_abs_error is not None else float("inf"),
            s.user_id,
        ),
    )
    return jsonify(
        {
            "week": week.to_dict(),
            "scores": [score.to_dict() for score in scores],
        }
    )


@bp.route("/leagues/<league_id>/weeks/<week_id>/games")
@add_security_headers
def week_games(league_id, week_id):
    """Games for a week; with ?user_id= each game carries that user's verdict"""
    store = LeagueStore()
    week = store.get_week(league_id, week_id)
    games = store.list_games(week)

    user_id = request.args.get("user_id")
    selections = {}
    if user_id:
        pick = store.list_picks(week).get(user_id)
        selections = pick.selections if pick is not None else {}

    data = []
    for game in games:
        item = game.to_dict()
        if user_id:
            choice = selections.get(game.event_key)
            item["pick"] = choice
            item["verdict"] = pick_verdict(choice, game)
        data.append(item)

    return jsonify({"week": week.to_dict(), "games": data})


@bp.route("/leagues/<league_id>/weeks/<week_id>/consensus")
def week_consensus(league_id, week_id):
    """Pick counts per side for every game in a week"""
    store = LeagueStore()
    week = store.get_week(league_id, week_id)
    pickers = sum(1 for pick in store.list_picks(week).values() if pick is not None)

    return jsonify(
        {
            "week": week.to_dict(),
            "games": [
                game.to_dict(include_picks_count=True) for game in store.list_games(week)
            ],
            "pickers": pickers,
        }
    )


@bp.route("/leagues/<league_id>/weeks/<week_id>/incomplete")
@add_security_headers
def week_incomplete_picks(league_id, week_id):
    """Active members whose picks for the week are missing or incomplete"""
    store = LeagueStore()
    week = store.get_week(league_id, week_id)
    picks = store.list_picks(week)
    games_per_week = current_app.config.get("GAMES_PER_WEEK", 6)

    incomplete = []
    for user_id in sorted(store.list_active_member_ids(league_id)):
        pick = picks.get(user_id)
        if pick is None:
            incomplete.append({"user_id": user_id, "selections": 0, "has_tiebreaker": False})
        elif not pick.is_complete(games_per_week):
            incomplete.append(
                {
                    "user_id": user_id,
                    "selections": len(pick.selections),
                    "has_tiebreaker": pick.tiebreaker is not None,
                }
            )

    return jsonify(
        {
            "league_id": league_id,
            "week_id": week_id,
            "games_per_week": games_per_week,
            "incomplete": incomplete,
        }
    )
