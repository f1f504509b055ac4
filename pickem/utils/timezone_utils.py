"""
Timezone utility functions for the Pick'em league
"""

from datetime import datetime, timezone

import pytz
from flask import current_app


def get_league_timezone(timezone_name=None):
    """Get a league's timezone, falling back to the configured default"""
    if not timezone_name:
        timezone_name = current_app.config.get("DEFAULT_LEAGUE_TIMEZONE", "UTC")
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def convert_to_utc(dt, timezone_name=None):
    """Convert a datetime to UTC"""
    if dt is None:
        return None

    # If datetime is naive, assume it's in the league timezone
    if dt.tzinfo is None:
        league_tz = get_league_timezone(timezone_name)
        dt = league_tz.localize(dt)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value):
    """Parse an ISO-8601 string (with optional trailing Z) into an aware UTC datetime"""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_date_string(value):
    """Calendar day in UTC ("YYYY-MM-DD") for a datetime or ISO string, "" if unknown"""
    dt = parse_iso_datetime(value)
    return dt.strftime("%Y-%m-%d") if dt else ""
