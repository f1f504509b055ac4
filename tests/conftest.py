# tests/conftest.py
from datetime import datetime, timezone

import pytest

from pickem import create_app
from pickem import db as _db
from pickem.models import Game, League, LeagueMember, UserPick, Week
from pickem.services.storage import LeagueStore

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}


@pytest.fixture()
def app():
    # Each app gets its own in-memory SQLite engine, so tests never share rows
    app = create_app("testing")
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def store(app):
    return LeagueStore(_db.session)


@pytest.fixture()
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture()
def league(store):
    """League "lg1" with active members alice and bob and inactive carol"""
    lg = League(id="lg1", name="Test League", points_per_correct=1)
    store.session.add(lg)
    store.session.add_all(
        [
            LeagueMember(league_id="lg1", user_id="alice"),
            LeagueMember(league_id="lg1", user_id="bob"),
            LeagueMember(league_id="lg1", user_id="carol", is_active=False),
        ]
    )
    store.commit()
    return lg


@pytest.fixture()
def make_week(store):
    """
    Factory creating a week with games

    games: iterable of dicts with event_key, home, away and optionally
    start_time, home_score, away_score, winner
    """

    def _make_week(league_id, week_id, games=(), tiebreaker_event_key=None, deadline=None):
        week = Week(
            league_id=league_id,
            week_id=week_id,
            tiebreaker_event_key=tiebreaker_event_key,
            deadline=deadline,
        )
        store.session.add(week)
        store.flush()

        for data in games:
            game = Game(
                week_pk=week.id,
                event_key=data["event_key"],
                home=data.get("home", "Home"),
                away=data.get("away", "Away"),
                start_time=data.get("start_time"),
            )
            if "home_score" in data or "away_score" in data:
                game.set_result(data.get("home_score"), data.get("away_score"))
            elif data.get("winner"):
                game.set_winner_only(data["winner"])
            store.session.add(game)

        store.commit()
        return week

    return _make_week


@pytest.fixture()
def make_pick(store):
    def _make_pick(week, user_id, selections, tiebreaker=None):
        pick = UserPick(
            week_pk=week.id, user_id=user_id, selections=selections, tiebreaker=tiebreaker
        )
        store.session.add(pick)
        store.commit()
        return pick

    return _make_pick


@pytest.fixture()
def scenario_week(league, make_week, make_pick):
    """
    g1: home wins 24-20, g2: away wins 17-10, g3: tie 14-14

    alice picks g1 home, g2 home, g3 away (1 correct)
    bob picks g1 home, g2 away (2 correct)
    """
    week = make_week(
        "lg1",
        "2025-W01",
        games=[
            {"event_key": "g1", "home": "Ohio State", "away": "Michigan", "home_score": 24, "away_score": 20},
            {"event_key": "g2", "home": "Texas", "away": "Oklahoma", "home_score": 10, "away_score": 17},
            {"event_key": "g3", "home": "Oregon", "away": "USC", "home_score": 14, "away_score": 14},
        ],
        tiebreaker_event_key="g1",
    )
    make_pick(week, "alice", {"g1": "home", "g2": "home", "g3": "away"}, tiebreaker=10)
    make_pick(week, "bob", {"g1": "home", "g2": "away"}, tiebreaker=3)
    return week


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)
