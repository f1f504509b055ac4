"""
SocketIO Event Handlers for Real-time Updates

Clients join a per-league room on the /scores namespace and receive a
notification whenever a week is rescored or the season leaderboard changes.
"""

import logging
from datetime import datetime, timezone

from flask import request
from flask_socketio import emit, join_room, leave_room

from pickem import socketio

logger = logging.getLogger(__name__)

NAMESPACE = "/scores"

# Track connected clients and their subscriptions
connected_clients = {}


def league_room(league_id):
    return f"league_{league_id}"


@socketio.on("connect", namespace=NAMESPACE)
def on_connect():
    """Handle client connection to scores namespace"""
    client_id = request.sid
    connected_clients[client_id] = {"subscriptions": set()}
    logger.info(f"Client connected to {NAMESPACE}: {client_id}")


@socketio.on("disconnect", namespace=NAMESPACE)
def on_disconnect():
    """Handle client disconnection from scores namespace"""
    client_id = request.sid
    if connected_clients.pop(client_id, None) is not None:
        logger.info(f"Client disconnected from {NAMESPACE}: {client_id}")


@socketio.on("subscribe_league", namespace=NAMESPACE)
def on_subscribe_league(data):
    """Subscribe to score updates for a league"""
    client_id = request.sid
    league_id = (data or {}).get("league_id")
    if not league_id:
        emit("error", {"error": "league_id is required"})
        return

    room_name = league_room(league_id)
    subscriptions = connected_clients.setdefault(client_id, {"subscriptions": set()})[
        "subscriptions"
    ]

    # Skip if already subscribed (avoid duplicate joins/emits)
    if room_name in subscriptions:
        return

    subscriptions.add(room_name)
    join_room(room_name)
    emit("subscribed", {"league_id": league_id})

    logger.debug(f"Client {client_id} subscribed to league {league_id}")


@socketio.on("unsubscribe_league", namespace=NAMESPACE)
def on_unsubscribe_league(data):
    """Unsubscribe from a league's updates"""
    client_id = request.sid
    league_id = (data or {}).get("league_id")
    if not league_id:
        return

    room_name = league_room(league_id)
    if client_id in connected_clients:
        connected_clients[client_id]["subscriptions"].discard(room_name)
    leave_room(room_name)

    logger.debug(f"Client {client_id} unsubscribed from league {league_id}")


# Broadcast functions (called after recomputation)
def broadcast_week_scored(league_id, week_id, scores=None):
    """Tell a league's subscribers that a week has been rescored"""
    try:
        payload = {
            "league_id": league_id,
            "week_id": week_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if scores is not None:
            payload["scores"] = scores

        socketio.emit("week_scored", payload, room=league_room(league_id), namespace=NAMESPACE)
        logger.debug(f"Broadcasted week_scored for {league_id}/{week_id}")

    except Exception as e:
        # Scores are already committed; a failed push only delays clients
        logger.error(f"Error broadcasting week_scored: {e}")


def broadcast_leaderboard_updated(league_id, leaderboard):
    """Push the rebuilt season leaderboard to a league's subscribers"""
    try:
        socketio.emit(
            "leaderboard_updated",
            {"league_id": league_id, "leaderboard": leaderboard},
            room=league_room(league_id),
            namespace=NAMESPACE,
        )
        logger.debug(f"Broadcasted leaderboard_updated for {league_id}")

    except Exception as e:
        logger.error(f"Error broadcasting leaderboard update: {e}")


def get_connection_stats():
    """Get detailed connection statistics"""
    return {
        "total_connections": len(connected_clients),
        "total_subscriptions": sum(
            len(c["subscriptions"]) for c in connected_clients.values()
        ),
    }
