import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request

from pickem import limiter
from pickem.models import AdminAction
from pickem.routes.admin import bp
from pickem.services import admin_results
from pickem.services.recompute import advance_league
from pickem.services.scheduler_service import scheduler_service
from pickem.services.storage import LeagueStore
from pickem.services.triggers import recompute_and_publish, sync_and_recompute

logger = logging.getLogger(__name__)


def admin_token_required(f):
    """Require the X-Admin-Token header to match ADMIN_API_TOKEN"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("ADMIN_API_TOKEN")
        if not expected:
            logger.warning(f"Admin request to {request.path} with ADMIN_API_TOKEN unset")
            return jsonify({"error": "Admin API is disabled"}), 403

        provided = request.headers.get("X-Admin-Token", "")
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            logger.warning(
                f"Rejected admin request to {request.path} from {request.remote_addr}"
            )
            return jsonify({"error": "Access forbidden"}), 403

        return f(*args, **kwargs)

    return decorated_function


def _actor():
    return request.headers.get("X-Admin-Actor") or "admin"


def _recompute_payload(result):
    if result is None:
        return None
    return {
        "scored_users": result.scored_users,
        "finalized": result.finalized,
        "advanced_to": result.advanced_to,
    }


@bp.route("/leagues/<league_id>/weeks/<week_id>/recompute", methods=["POST"])
@limiter.limit("30 per minute")
@admin_token_required
def recompute(league_id, week_id):
    """Rescore a week and rebuild the season leaderboard"""
    store = LeagueStore()
    result = recompute_and_publish(store, league_id, week_id)

    AdminAction.log_action(
        league_id=league_id,
        action_type="recompute_week",
        description=f"Recomputed {week_id}",
        actor=_actor(),
        week_id=week_id,
        action_metadata=_recompute_payload(result),
        session=store.session,
    )
    store.commit()

    return jsonify({"success": True, "recompute": _recompute_payload(result)})


@bp.route("/leagues/<league_id>/weeks/<week_id>/sync-results", methods=["POST"])
@limiter.limit("10 per minute")
@admin_token_required
def sync_results(league_id, week_id):
    """Pull provider results for a week, then recompute"""
    store = LeagueStore()
    league = store.get_league(league_id)
    updated, result = sync_and_recompute(store, league, week_id, use_event_ids=True)

    AdminAction.log_action(
        league_id=league_id,
        action_type="sync_results",
        description=f"Synced provider results for {week_id}: {len(updated)} games updated",
        actor=_actor(),
        week_id=week_id,
        action_metadata={"updated": updated},
        session=store.session,
    )
    store.commit()

    return jsonify(
        {"success": True, "updated": updated, "recompute": _recompute_payload(result)}
    )


@bp.route("/leagues/<league_id>/weeks/<week_id>/simulate-finals", methods=["POST"])
@limiter.limit("10 per minute")
@admin_token_required
def simulate_finals(league_id, week_id):
    """Fill undecided games with random final scores"""
    store = LeagueStore()
    changed, result = admin_results.simulate_finals(
        store, league_id, week_id, actor=_actor()
    )
    return jsonify(
        {"success": True, "changed": changed, "recompute": _recompute_payload(result)}
    )


@bp.route(
    "/leagues/<league_id>/weeks/<week_id>/games/<path:event_key>/result",
    methods=["POST"],
)
@limiter.limit("60 per minute")
@admin_token_required
def set_result(league_id, week_id, event_key):
    """Enter final scores, or a winner alone, for one game"""
    data = request.get_json(silent=True) or {}
    store = LeagueStore()

    home_score = data.get("home_score")
    away_score = data.get("away_score")
    winner = data.get("winner")

    try:
        if home_score is not None or away_score is not None:
            game, result = admin_results.set_game_result(
                store, league_id, week_id, event_key, home_score, away_score, actor=_actor()
            )
        elif winner is not None:
            game, result = admin_results.set_winner_only(
                store, league_id, week_id, event_key, winner, actor=_actor()
            )
        else:
            return jsonify({"error": "Provide home_score and away_score, or winner"}), 400
    except ValueError as e:
        store.rollback()
        return jsonify({"error": str(e)}), 400

    return jsonify(
        {"success": True, "game": game.to_dict(), "recompute": _recompute_payload(result)}
    )


@bp.route("/leagues/<league_id>/weeks/<week_id>/reset-games", methods=["POST"])
@limiter.limit("10 per minute")
@admin_token_required
def reset_games(league_id, week_id):
    """Delete every game of an open week"""
    store = LeagueStore()
    removed, result = admin_results.reset_week_games(
        store, league_id, week_id, actor=_actor()
    )
    return jsonify(
        {"success": True, "removed": removed, "recompute": _recompute_payload(result)}
    )


@bp.route("/leagues/<league_id>/advance", methods=["POST"])
@limiter.limit("10 per minute")
@admin_token_required
def advance(league_id):
    """Move the league past its current week if that week is final"""
    store = LeagueStore()
    previous = store.get_league(league_id).current_week_id
    new_week_id = advance_league(store, league_id)

    if new_week_id:
        AdminAction.log_action(
            league_id=league_id,
            action_type="advance_week",
            description=f"Advanced from {previous} to {new_week_id}",
            actor=_actor(),
            week_id=previous,
            action_metadata={"from": previous, "to": new_week_id},
            session=store.session,
        )
        store.commit()

    return jsonify(
        {
            "success": True,
            "advanced": bool(new_week_id),
            "current_week_id": new_week_id or previous,
        }
    )


@bp.route("/leagues/<league_id>/actions")
@admin_token_required
def admin_actions(league_id):
    """Recent admin actions for a league"""
    store = LeagueStore()
    store.get_league(league_id)
    limit = min(request.args.get("limit", 50, type=int), 500)
    actions = (
        store.session.query(AdminAction)
        .filter(AdminAction.league_id == league_id)
        .order_by(AdminAction.created_at.desc(), AdminAction.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify({"actions": [action.to_dict() for action in actions]})


@bp.route("/scheduler")
@admin_token_required
def scheduler_status():
    """Get scheduler status and job list"""
    return jsonify(scheduler_service.get_status())


@bp.route("/scheduler/run/<job_id>", methods=["POST"])
@limiter.limit("5 per minute")
@admin_token_required
def scheduler_run(job_id):
    """Run a scheduled job immediately"""
    success, message = scheduler_service.force_sync(
        job_id, app=current_app._get_current_object()
    )
    status = 200 if success else 400
    return jsonify({"success": success, "message": message}), status
