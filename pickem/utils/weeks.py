"""
Week id helpers. Week ids look like "2025-W01" and sort chronologically as strings.
"""

import re
from datetime import datetime, timezone

WEEK_ID_RE = re.compile(r"^(\d{4})-W(\d{2})$")


def fallback_week_id(now=None):
    """Week id used when nothing better is known"""
    now = now or datetime.now(timezone.utc)
    return f"{now.year}-W01"


def is_valid_week_id(week_id):
    return bool(week_id and WEEK_ID_RE.match(week_id))


def format_week_label(week_id):
    """Display label: "2025-W01" -> "Week 1 (2025)" (other ids pass through)"""
    match = WEEK_ID_RE.match(week_id or "")
    if not match:
        return week_id
    year, number = match.groups()
    return f"Week {int(number)} ({year})"


def _aware(dt):
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def default_week_id(league, weeks, now=None):
    """
    Pick a sensible week to show for a league.

    Order of preference: the league's current week, the week with the nearest
    upcoming deadline, the week with the most recent past deadline, the first
    week, and finally the fallback id.
    """
    if league is not None and league.current_week_id:
        return league.current_week_id

    if not weeks:
        return fallback_week_id(now)

    now = now or datetime.now(timezone.utc)
    with_deadline = [w for w in weeks if w.deadline is not None]

    upcoming = sorted(
        (w for w in with_deadline if _aware(w.deadline) >= now),
        key=lambda w: _aware(w.deadline),
    )
    if upcoming:
        return upcoming[0].week_id

    past = sorted(
        (w for w in with_deadline if _aware(w.deadline) < now),
        key=lambda w: _aware(w.deadline),
        reverse=True,
    )
    if past:
        return past[0].week_id

    return weeks[0].week_id
