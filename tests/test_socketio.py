"""Tests for the /scores realtime namespace."""

import pytest

from pickem import socketio
from pickem.socketio_handlers import (
    NAMESPACE,
    broadcast_leaderboard_updated,
    broadcast_week_scored,
    get_connection_stats,
)


@pytest.fixture()
def ws(app):
    client = socketio.test_client(app, namespace=NAMESPACE)
    yield client
    if client.is_connected(NAMESPACE):
        client.disconnect(namespace=NAMESPACE)


def names(received):
    return [message["name"] for message in received]


def test_subscribe_league(ws):
    assert ws.is_connected(NAMESPACE)

    ws.emit("subscribe_league", {"league_id": "lg1"}, namespace=NAMESPACE)
    received = ws.get_received(NAMESPACE)

    assert names(received) == ["subscribed"]
    assert received[0]["args"][0] == {"league_id": "lg1"}
    assert get_connection_stats()["total_subscriptions"] >= 1


def test_subscribe_twice_is_ignored(ws):
    ws.emit("subscribe_league", {"league_id": "lg1"}, namespace=NAMESPACE)
    ws.emit("subscribe_league", {"league_id": "lg1"}, namespace=NAMESPACE)
    assert names(ws.get_received(NAMESPACE)) == ["subscribed"]


def test_subscribe_requires_league_id(ws):
    ws.emit("subscribe_league", {}, namespace=NAMESPACE)
    received = ws.get_received(NAMESPACE)
    assert names(received) == ["error"]


def test_broadcasts_reach_only_league_subscribers(app, ws):
    other = socketio.test_client(app, namespace=NAMESPACE)
    other.emit("subscribe_league", {"league_id": "lg2"}, namespace=NAMESPACE)
    other.get_received(NAMESPACE)

    ws.emit("subscribe_league", {"league_id": "lg1"}, namespace=NAMESPACE)
    ws.get_received(NAMESPACE)

    broadcast_week_scored("lg1", "2025-W01", scores=[{"user_id": "alice", "points": 1}])
    broadcast_leaderboard_updated("lg1", [{"user_id": "alice", "rank": 1}])

    received = ws.get_received(NAMESPACE)
    assert names(received) == ["week_scored", "leaderboard_updated"]
    payload = received[0]["args"][0]
    assert payload["week_id"] == "2025-W01"
    assert payload["scores"][0]["user_id"] == "alice"
    assert received[1]["args"][0]["leaderboard"][0]["rank"] == 1

    assert other.get_received(NAMESPACE) == []
    other.disconnect(namespace=NAMESPACE)


def test_unsubscribe_stops_updates(ws):
    ws.emit("subscribe_league", {"league_id": "lg1"}, namespace=NAMESPACE)
    ws.emit("unsubscribe_league", {"league_id": "lg1"}, namespace=NAMESPACE)
    ws.get_received(NAMESPACE)

    broadcast_week_scored("lg1", "2025-W01")
    assert ws.get_received(NAMESPACE) == []
