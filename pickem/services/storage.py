"""
Storage access for the scoring core

Every recomputation, sync and admin procedure receives a LeagueStore
explicitly instead of reaching for a module-level session, so the same code
runs inside a request, a scheduler job, the CLI, or a test.
"""

import logging

from pickem.exceptions import GameNotFound, LeagueNotFound, WeekNotFound
from pickem.models import (
    Game,
    League,
    LeagueMember,
    SeasonLeaderboardEntry,
    UserPick,
    Week,
    WeekScore,
)

logger = logging.getLogger(__name__)


class LeagueStore:
    """Thin repository over a SQLAlchemy session"""

    def __init__(self, session=None):
        if session is None:
            from pickem import db

            session = db.session
        self.session = session

    # Leagues

    def get_league(self, league_id):
        league = self.session.get(League, league_id)
        if league is None:
            raise LeagueNotFound(f"League {league_id!r} not found")
        return league

    def list_leagues(self):
        return self.session.query(League).order_by(League.id).all()

    def list_members(self, league_id, active_only=True):
        query = self.session.query(LeagueMember).filter(LeagueMember.league_id == league_id)
        if active_only:
            query = query.filter(LeagueMember.is_active.is_(True))
        return query.order_by(LeagueMember.user_id).all()

    def list_active_member_ids(self, league_id):
        return [member.user_id for member in self.list_members(league_id)]

    def set_current_week(self, league, week_id, now=None):
        league.current_week_id = week_id
        league.last_advanced_at = now

    # Weeks

    def get_week(self, league_id, week_id):
        week = (
            self.session.query(Week)
            .filter(Week.league_id == league_id, Week.week_id == week_id)
            .first()
        )
        if week is None:
            raise WeekNotFound(f"Week {week_id!r} not found in league {league_id!r}")
        return week

    def list_weeks(self, league_id):
        return (
            self.session.query(Week)
            .filter(Week.league_id == league_id)
            .order_by(Week.week_id)
            .all()
        )

    def list_week_ids(self, league_id):
        return [week.week_id for week in self.list_weeks(league_id)]

    def list_final_weeks(self, league_id):
        return (
            self.session.query(Week)
            .filter(Week.league_id == league_id, Week.status == "final")
            .order_by(Week.week_id)
            .all()
        )

    # Games

    def list_games(self, week):
        return (
            self.session.query(Game)
            .filter(Game.week_pk == week.id)
            .order_by(Game.start_time, Game.event_key)
            .all()
        )

    def list_undecided_games(self, week):
        return [game for game in self.list_games(week) if not game.decided]

    def get_game(self, week, event_key):
        game = (
            self.session.query(Game)
            .filter(Game.week_pk == week.id, Game.event_key == event_key)
            .first()
        )
        if game is None:
            raise GameNotFound(
                f"Game {event_key!r} not found in week {week.league_id}/{week.week_id}"
            )
        return game

    def add_game(self, week, event_key, home, away, start_time=None):
        game = Game(
            week_pk=week.id,
            event_key=event_key,
            home=home,
            away=away,
            start_time=start_time,
        )
        self.session.add(game)
        return game

    def delete_games(self, week):
        """Delete every game of a week; returns the number removed"""
        count = 0
        for game in self.list_games(week):
            self.session.delete(game)
            count += 1
        return count

    def apply_game_results(self, week, updates):
        """
        Apply matcher updates to undecided games only

        Args:
            week: Week row
            updates: iterable of (event_key, home_score, away_score)

        Returns:
            list of event keys that were updated
        """
        games = {game.event_key: game for game in self.list_games(week)}
        applied = []
        for event_key, home_score, away_score in updates:
            game = games.get(event_key)
            if game is None or game.decided:
                continue
            game.set_result(home_score, away_score)
            applied.append(event_key)
        return applied

    # Picks

    def list_picks(self, week):
        """
        Picks for a week, keyed by user id

        Rows that fail the read-side shape check are quarantined: they are
        logged and left out, so their author scores as if they made no picks.
        """
        picks = {}
        rows = self.session.query(UserPick).filter(UserPick.week_pk == week.id).all()
        for row in rows:
            if not row.is_well_formed():
                logger.warning(
                    f"Quarantined malformed picks for user {row.user_id} "
                    f"in {week.league_id}/{week.week_id}"
                )
                picks.setdefault(row.user_id, None)
                continue
            picks[row.user_id] = row
        return picks

    # Scores

    def upsert_week_score(self, week, user_id, result):
        """Overwrite the WeekScore row for (week, user) with a WeekScoreResult"""
        row = (
            self.session.query(WeekScore)
            .filter(WeekScore.week_pk == week.id, WeekScore.user_id == user_id)
            .first()
        )
        if row is None:
            row = WeekScore(week_pk=week.id, user_id=user_id)
            self.session.add(row)

        row.correct = result.correct
        row.total = result.total
        row.points = result.points
        row.tiebreaker_prediction = result.tiebreaker_prediction
        row.tiebreaker_actual = result.tiebreaker_actual
        row.tiebreaker_abs_error = result.tiebreaker_abs_error
        return row

    def delete_stale_week_scores(self, week, user_ids):
        """Drop WeekScore rows for users no longer scored in this week"""
        keep = set(user_ids)
        removed = 0
        for row in self.list_week_scores(week):
            if row.user_id not in keep:
                self.session.delete(row)
                removed += 1
        return removed

    def list_week_scores(self, week):
        return (
            self.session.query(WeekScore)
            .filter(WeekScore.week_pk == week.id)
            .order_by(WeekScore.user_id)
            .all()
        )

    def list_leaderboard(self, league_id):
        entries = (
            self.session.query(SeasonLeaderboardEntry)
            .filter(SeasonLeaderboardEntry.league_id == league_id)
            .all()
        )
        return sorted(entries, key=lambda entry: entry.sort_key())

    def replace_leaderboard(self, league_id, totals):
        """
        Overwrite the season leaderboard for a league

        Args:
            totals: mapping of user id -> dict with correct, total, points,
                weeks_counted, tiebreaker_abs_error_total and tiebreaker_weeks

        Entries for users missing from totals are deleted.
        """
        existing = {
            entry.user_id: entry
            for entry in self.session.query(SeasonLeaderboardEntry)
            .filter(SeasonLeaderboardEntry.league_id == league_id)
            .all()
        }

        for user_id, entry in existing.items():
            if user_id not in totals:
                self.session.delete(entry)

        for user_id, values in totals.items():
            entry = existing.get(user_id)
            if entry is None:
                entry = SeasonLeaderboardEntry(league_id=league_id, user_id=user_id)
                self.session.add(entry)
            for field, value in values.items():
                # Only touch changed columns so onupdate fires on real changes
                if getattr(entry, field) != value:
                    setattr(entry, field, value)

    # Transactions

    def flush(self):
        self.session.flush()

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
