from datetime import datetime

import pytz

from pickem.utils.timezone_utils import (
    convert_to_utc,
    get_league_timezone,
    parse_iso_datetime,
    utc_date_string,
)

from .conftest import utc


def test_league_timezone_falls_back(app):
    app.config["DEFAULT_LEAGUE_TIMEZONE"] = "America/Chicago"
    assert get_league_timezone().zone == "America/Chicago"
    assert get_league_timezone("Not/AZone") is pytz.UTC


def test_convert_naive_league_time_to_utc(app):
    # 19:30 Eastern during daylight time is 23:30 UTC
    assert convert_to_utc(datetime(2025, 9, 6, 19, 30), "America/New_York") == utc(2025, 9, 6, 23, 30)
    assert convert_to_utc(None) is None


def test_parse_iso_datetime():
    assert parse_iso_datetime("2025-09-06T23:30:00Z") == utc(2025, 9, 6, 23, 30)
    assert parse_iso_datetime("2025-09-06T23:30:00") == utc(2025, 9, 6, 23, 30)
    assert parse_iso_datetime("not a date") is None
    assert parse_iso_datetime(None) is None


def test_utc_date_string_uses_utc_day():
    # Late Saturday evening Pacific is already Sunday in UTC
    assert utc_date_string("2025-09-06T20:00:00-07:00") == "2025-09-07"
    assert utc_date_string("") == ""


def test_kickoff_and_deadline_columns_keep_timezone():
    from pickem.models import Game, Week

    # A naive TIMESTAMP on PostgreSQL would shift UTC values by the session zone
    assert Game.__table__.c.start_time.type.timezone is True
    assert Week.__table__.c.deadline.type.timezone is True


def test_stored_kickoff_keeps_utc_match_day(store, league, make_week):
    kickoff = convert_to_utc(datetime(2025, 9, 6, 21, 30), "America/New_York")
    week = make_week("lg1", "2025-W01", games=[{"event_key": "late", "start_time": kickoff}])

    game = store.list_games(week)[0]
    assert utc_date_string(game.start_time) == "2025-09-07"
