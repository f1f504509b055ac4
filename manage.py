#!/usr/bin/env python3
"""
Pick'em League Management CLI

Command-line management for leagues, weeks, games and scoring.
"""

import logging
import os
import random

# One-off commands must not start the background scheduler
os.environ.setdefault("SCHEDULER_ENABLED", "False")

import click  # noqa: E402
from flask.cli import with_appcontext  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlalchemy.exc import IntegrityError, SQLAlchemyError  # noqa: E402

from pickem import create_app, db  # noqa: E402
from pickem.exceptions import ScoringError  # noqa: E402
from pickem.models import Game, League, LeagueMember, Week  # noqa: E402
from pickem.services import admin_results  # noqa: E402
from pickem.services.recompute import advance_league, recompute_season  # noqa: E402
from pickem.services.storage import LeagueStore  # noqa: E402
from pickem.services.triggers import (  # noqa: E402
    recompute_and_publish,
    run_results_cycle,
    sync_and_recompute,
)
from pickem.utils.timezone_utils import convert_to_utc  # noqa: E402
from pickem.utils.weeks import format_week_label, is_valid_week_id  # noqa: E402

app = create_app()


@click.group()
def cli():
    """Pick'em League Management CLI"""
    pass


# League Management Commands
@cli.group()
def league():
    """League management commands"""
    pass


@league.command()
@click.argument("league_id")
@click.argument("name")
@click.option("--points-per-correct", type=int, default=None, help="Points per correct pick")
@click.option("--sport-key", help="Results provider sport key")
@click.option("--timezone", "tz_name", help="IANA timezone (default from config)")
@with_appcontext
def create(league_id, name, points_per_correct, sport_key, tz_name):
    """Create a new league"""
    try:
        if points_per_correct is None:
            points_per_correct = app.config.get("DEFAULT_POINTS_PER_CORRECT", 1)

        new_league = League(
            id=league_id,
            name=name,
            points_per_correct=points_per_correct,
            sport_key=sport_key,
            timezone=tz_name or app.config.get("DEFAULT_LEAGUE_TIMEZONE"),
        )
        db.session.add(new_league)
        db.session.commit()
        click.echo(f"✅ Created league {league_id} ({name})")

    except IntegrityError as e:
        db.session.rollback()
        click.echo(f"❌ League {league_id} already exists!")
        logging.error(f"League creation failed - integrity error: {e}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error creating league: {str(e)}")
        logging.error(f"League creation failed - SQL error: {e}")


@league.command("list")
@with_appcontext
def list_leagues():
    """List all leagues"""
    leagues = LeagueStore().list_leagues()
    if not leagues:
        click.echo("No leagues found.")
        return

    for lg in leagues:
        current = lg.current_week_id or "-"
        click.echo(
            f"{lg.id}: {lg.name} (current week {current}, "
            f"{lg.points_per_correct} pts/correct, {lg.members.count()} members)"
        )


@league.command()
@click.argument("league_id")
@click.argument("user_id")
@click.option("--display-name", help="Display name")
@click.option("--admin", is_flag=True, help="Make the member a league admin")
@with_appcontext
def add_member(league_id, user_id, display_name, admin):
    """Add a member to a league"""
    try:
        LeagueStore().get_league(league_id)
        member = LeagueMember(
            league_id=league_id,
            user_id=user_id,
            display_name=display_name,
            is_admin=admin,
        )
        db.session.add(member)
        db.session.commit()
        click.echo(f"✅ Added {user_id} to {league_id}")

    except ScoringError as e:
        click.echo(f"❌ {e}")
    except IntegrityError:
        db.session.rollback()
        click.echo(f"❌ {user_id} is already a member of {league_id}")


@league.command()
@click.argument("league_id")
@click.argument("user_id")
@with_appcontext
def remove_member(league_id, user_id):
    """Deactivate a member; their past scores stay on the leaderboard"""
    member = LeagueMember.query.filter_by(league_id=league_id, user_id=user_id).first()
    if member is None or not member.is_active:
        click.echo(f"❌ {user_id} is not an active member of {league_id}")
        return

    member.deactivate()
    db.session.commit()
    click.echo(f"✅ Deactivated {user_id} in {league_id}")


# Week Management Commands
@cli.group()
def week():
    """Week and game management commands"""
    pass


@week.command("create")
@click.argument("league_id")
@click.argument("week_id")
@click.option(
    "--deadline",
    type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]),
    help="Pick deadline in the league timezone",
)
@click.option("--current", is_flag=True, help="Make this the league's current week")
@with_appcontext
def create_week(league_id, week_id, deadline, current):
    """Create a week (ids look like 2025-W01)"""
    if not is_valid_week_id(week_id):
        click.echo(f"❌ Invalid week id {week_id!r}, expected YYYY-Www")
        return

    try:
        store = LeagueStore()
        lg = store.get_league(league_id)
        new_week = Week(
            league_id=league_id,
            week_id=week_id,
            deadline=convert_to_utc(deadline, lg.timezone) if deadline else None,
        )
        db.session.add(new_week)
        if current:
            lg.current_week_id = week_id
        db.session.commit()
        click.echo(f"✅ Created {format_week_label(week_id)} in {league_id}")

    except ScoringError as e:
        click.echo(f"❌ {e}")
    except IntegrityError:
        db.session.rollback()
        click.echo(f"❌ Week {week_id} already exists in {league_id}")


@week.command("list")
@click.argument("league_id")
@with_appcontext
def list_weeks(league_id):
    """List a league's weeks"""
    store = LeagueStore()
    try:
        lg = store.get_league(league_id)
    except ScoringError as e:
        click.echo(f"❌ {e}")
        return

    for wk in store.list_weeks(league_id):
        games = store.list_games(wk)
        decided = sum(1 for g in games if g.decided)
        marker = " <- current" if wk.week_id == lg.current_week_id else ""
        click.echo(
            f"{wk.week_id} {format_week_label(wk.week_id)}: {wk.status}, "
            f"{decided}/{len(games)} decided{marker}"
        )


@week.command()
@click.argument("league_id")
@click.argument("week_id")
@click.argument("event_key")
@click.argument("away")
@click.argument("home")
@click.option(
    "--start-time",
    type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]),
    help="Kickoff in the league timezone",
)
@click.option("--tiebreaker", is_flag=True, help="Use this game as the week's tiebreaker")
@with_appcontext
def add_game(league_id, week_id, event_key, away, home, start_time, tiebreaker):
    """Add a game (AWAY @ HOME) to a week"""
    try:
        store = LeagueStore()
        lg = store.get_league(league_id)
        wk = store.get_week(league_id, week_id)
        if wk.is_final:
            click.echo(f"❌ Week {week_id} is final")
            return

        store.add_game(
            wk,
            event_key,
            home,
            away,
            start_time=convert_to_utc(start_time, lg.timezone) if start_time else None,
        )
        if tiebreaker:
            wk.tiebreaker_event_key = event_key
        store.commit()
        click.echo(f"✅ Added {away} @ {home} ({event_key}) to {week_id}")

    except ScoringError as e:
        click.echo(f"❌ {e}")
    except IntegrityError:
        db.session.rollback()
        click.echo(f"❌ Game {event_key} already exists in {week_id}")


@week.command()
@click.argument("league_id")
@click.argument("week_id")
@with_appcontext
def reset_games(league_id, week_id):
    """⚠️  Delete every game of an open week"""
    if not click.confirm(f"This will delete all games in {league_id}/{week_id}. Continue?"):
        click.echo("Cancelled.")
        return

    try:
        removed, _ = admin_results.reset_week_games(
            LeagueStore(), league_id, week_id, actor="cli"
        )
        click.echo(f"✅ Removed {removed} games from {week_id}")
    except ScoringError as e:
        click.echo(f"❌ {e}")


# Scoring Commands
@cli.group()
def score():
    """Scoring and results commands"""
    pass


@score.command()
@click.argument("league_id")
@click.argument("week_id")
@with_appcontext
def recompute(league_id, week_id):
    """Recompute a week's scores and the season leaderboard"""
    try:
        result = recompute_and_publish(LeagueStore(), league_id, week_id)
        click.echo(
            f"✅ Scored {result.scored_users} users in {week_id}"
            + (" (finalized)" if result.finalized else "")
            + (f", advanced to {result.advanced_to}" if result.advanced_to else "")
        )
    except ScoringError as e:
        click.echo(f"❌ {e}")


@score.command()
@click.argument("league_id")
@with_appcontext
def season(league_id):
    """Rebuild and print the season leaderboard"""
    try:
        entries = recompute_season(LeagueStore(), league_id)
    except ScoringError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(f"🏆 Season leaderboard for {league_id}")
    click.echo("=" * 40)
    for rank, entry in enumerate(entries, start=1):
        click.echo(
            f"{rank:>3}. {entry.user_id:<20} {entry.points:>4} pts "
            f"{entry.correct}/{entry.total} (tb err {entry.tiebreaker_abs_error_total})"
        )


@score.command()
@click.argument("league_id", required=False)
@click.option("--week", "week_id", help="Week to sync (default: league current week)")
@with_appcontext
def sync(league_id, week_id):
    """Pull provider results and recompute (all leagues if none given)"""
    store = LeagueStore()
    if not league_id:
        stats = run_results_cycle(store)
        click.echo(
            f"✅ {stats['leagues']} leagues synced, {stats['games_updated']} games updated, "
            f"{stats['failed']} failed"
        )
        return

    try:
        lg = store.get_league(league_id)
        week_id = week_id or lg.current_week_id
        if not week_id:
            click.echo(f"❌ League {league_id} has no current week; pass --week")
            return
        updated, _ = sync_and_recompute(store, lg, week_id, use_event_ids=True)
        click.echo(f"✅ Updated {len(updated)} games in {week_id}")
    except ScoringError as e:
        click.echo(f"❌ {e}")


@score.command()
@click.argument("league_id")
@click.argument("week_id")
@click.option("--seed", type=int, help="Random seed for repeatable scores")
@with_appcontext
def simulate(league_id, week_id, seed):
    """Fill undecided games with random final scores"""
    try:
        changed, _ = admin_results.simulate_finals(
            LeagueStore(), league_id, week_id, actor="cli", rng=random.Random(seed)
        )
        if changed:
            click.echo(f"✅ Simulated finals for {changed} games")
        else:
            click.echo("All games already decided.")
    except ScoringError as e:
        click.echo(f"❌ {e}")


@score.command()
@click.argument("league_id")
@with_appcontext
def advance(league_id):
    """Advance a league past its current week if that week is final"""
    try:
        new_week_id = advance_league(LeagueStore(), league_id)
    except ScoringError as e:
        click.echo(f"❌ {e}")
        return

    if new_week_id:
        click.echo(f"✅ {league_id} advanced to {new_week_id}")
    else:
        click.echo(f"⚠️  {league_id} not advanced (current week not final or no next week)")


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command()
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


@db_cmd.command()
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error resetting database: {str(e)}")


# Info Commands
@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏈 Pick'em League Status")
    click.echo("=" * 40)

    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    if app.config.get("ODDS_API_KEY"):
        click.echo("✅ Results provider: API key configured")
    else:
        click.echo("⚠️  Results provider: ODDS_API_KEY not set")

    store = LeagueStore()
    for lg in store.list_leagues():
        click.echo(f"🏆 {lg.id}: current week {lg.current_week_id or '-'}")
        if lg.current_week_id:
            wk = Week.query.filter_by(league_id=lg.id, week_id=lg.current_week_id).first()
            if wk:
                total = wk.games.count()
                decided = wk.games.filter(Game.decided.is_(True)).count()
                click.echo(f"   🏈 Games: {decided}/{total} decided ({wk.status})")


if __name__ == "__main__":
    with app.app_context():
        cli()
