"""
Pick'em Results Scheduler Service

Runs the two background triggers with APScheduler: a short-interval results
poll (provider sync, week recomputation, season aggregation) and the weekly
advance of leagues whose current week has gone final.
"""

import atexit
import logging
from datetime import datetime, timezone

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from pickem import db
from pickem.services.results_sync import ResultsSync
from pickem.services.storage import LeagueStore
from pickem.services.triggers import advance_final_weeks, run_results_cycle

logger = logging.getLogger(__name__)

POLL_JOB_ID = "poll_results"
ADVANCE_JOB_ID = "advance_weeks"


class SchedulerService:
    """Owns the BackgroundScheduler and the bookkeeping of job runs"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.results_sync = None
        self.is_running = False
        self.sync_stats = {
            "last_sync": None,
            "total_syncs": 0,
            "successful_syncs": 0,
            "failed_syncs": 0,
            "last_error": None,
            "games_updated": 0,
        }

        if app:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")
        self.results_sync = ResultsSync.from_config(app.config)
        atexit.register(self.stop)

        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        if self.is_running:
            return

        self.scheduler.remove_all_jobs()
        self._add_core_jobs()
        self.scheduler.start()
        self.is_running = True
        logger.info("Scheduler started")

    def stop(self):
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")
        self.is_running = False
        logger.info("Scheduler stopped")

    def _advance_timezone(self):
        # Weekly advance runs on the league calendar, not UTC
        name = self.app.config.get("DEFAULT_LEAGUE_TIMEZONE", "America/New_York")
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            logger.warning(f"Unknown DEFAULT_LEAGUE_TIMEZONE {name!r}, advancing on UTC")
            return pytz.UTC

    def _add_core_jobs(self):
        config = self.app.config

        self.scheduler.add_job(
            func=self._poll_results,
            trigger=IntervalTrigger(minutes=config.get("RESULTS_POLL_MINUTES", 3)),
            id=POLL_JOB_ID,
            name="Poll Results And Recompute",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )
        self.scheduler.add_job(
            func=self._advance_weeks,
            trigger=CronTrigger(
                day_of_week=config.get("WEEK_ADVANCE_DAY", "sun"),
                hour=config.get("WEEK_ADVANCE_HOUR", 9),
                minute=0,
                timezone=self._advance_timezone(),
            ),
            id=ADVANCE_JOB_ID,
            name="Advance Final Weeks",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )
        logger.info(f"Scheduled {POLL_JOB_ID} and {ADVANCE_JOB_ID}")

    def _run_job(self, job_id, body):
        """
        Run one job body in a fresh app context and record the outcome

        body(store) returns (error message or None, games updated).
        """
        with self.app.app_context():
            try:
                error, games_updated = body(LeagueStore(db.session))
            except Exception as e:
                db.session.rollback()
                logger.error(f"Error in {job_id}: {e}", exc_info=True)
                error, games_updated = str(e), 0

        self.sync_stats["last_sync"] = datetime.now(timezone.utc)
        self.sync_stats["total_syncs"] += 1
        if error:
            self.sync_stats["failed_syncs"] += 1
        else:
            self.sync_stats["successful_syncs"] += 1
            self.sync_stats["games_updated"] += games_updated
        self.sync_stats["last_error"] = error

    def _poll_results(self):
        def body(store):
            stats = run_results_cycle(store, results_sync=self.results_sync)
            if stats["failed"]:
                return f"{stats['failed']} leagues failed during results poll", 0
            return None, stats["games_updated"]

        self._run_job(POLL_JOB_ID, body)

    def _advance_weeks(self):
        def body(store):
            advance_final_weeks(store)
            return None, 0

        self._run_job(ADVANCE_JOB_ID, body)

    def get_status(self):
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                # Jobs added before start() have no next run time yet
                next_run = getattr(job, "next_run_time", None)
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        stats = dict(self.sync_stats)
        if stats["last_sync"]:
            stats["last_sync"] = stats["last_sync"].isoformat()

        return {"is_running": self.is_running, "jobs": jobs, "stats": stats}

    def force_sync(self, job_id, app=None):
        """Run one of the scheduled jobs now, in the calling thread"""
        if app is not None and self.app is None:
            self.app = app
            self.results_sync = ResultsSync.from_config(app.config)

        if self.app is None:
            return False, "Scheduler is not initialized"

        jobs = {POLL_JOB_ID: self._poll_results, ADVANCE_JOB_ID: self._advance_weeks}
        if job_id not in jobs:
            return False, f"Unknown job: {job_id}"

        jobs[job_id]()
        if self.sync_stats["last_error"]:
            return False, f"Manual {job_id} failed: {self.sync_stats['last_error']}"
        return True, f"Manual {job_id} completed"


scheduler_service = SchedulerService()
