"""
NFL Pick'em Automatic Sync Scheduler Service

Fires the sync gatekeepers on their cadences with APScheduler: odds hourly,
scores daily at 1 AM Eastern, schedules weekly on Tuesday morning. The
gatekeepers decide whether anything actually needs syncing.
"""

import atexit
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from pickem import db
from pickem.services.gatekeepers import run_odds_sync, run_schedule_sync, run_score_sync

logger = logging.getLogger(__name__)

SYNC_JOBS = {
    "odds": run_odds_sync,
    "schedule": run_schedule_sync,
    "scores": run_score_sync,
}


class SchedulerService:
    """Manages automatic background scheduling for NFL data syncing"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False
        self.sync_stats = self._empty_stats()

        if app:
            self.init_app(app)

    @staticmethod
    def _empty_stats():
        return {
            "last_sync": None,
            "total_syncs": 0,
            "successful_syncs": 0,
            "skipped_syncs": 0,
            "failed_syncs": 0,
            "last_error": None,
            "weeks_synced": 0,
        }

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(
            daemon=True, timezone=app.config.get("TIMEZONE", "America/New_York")
        )

        atexit.register(self.shutdown)

        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        """Add core scheduled jobs"""
        tz = self.scheduler.timezone

        # Hourly odds (the gatekeeper enforces its own one-hour floor)
        self.scheduler.add_job(
            func=self._run_job,
            args=["odds"],
            trigger=CronTrigger(minute=0, timezone=tz),
            id="hourly_odds_sync",
            name="Hourly Odds Sync",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )

        # Daily scores (1 AM Eastern)
        self.scheduler.add_job(
            func=self._run_job,
            args=["scores"],
            trigger=CronTrigger(hour=1, minute=0, timezone=tz),
            id="daily_score_sync",
            name="Daily Score Sync",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )

        # Weekly schedule update (Tuesday 6 AM)
        self.scheduler.add_job(
            func=self._run_job,
            args=["schedule"],
            trigger=CronTrigger(day_of_week="tue", hour=6, minute=0, timezone=tz),
            id="weekly_schedule_sync",
            name="Weekly Schedule Sync",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )

        logger.info("Core scheduled jobs added")

    def _run_job(self, sync_type):
        """Run one gatekeeper inside an app context and record the outcome"""
        with self.app.app_context():
            try:
                result = SYNC_JOBS[sync_type]()
                self._update_stats(result)
                logger.info(f"{sync_type} sync: {result.get('message')}")
                return result

            except Exception as e:
                db.session.rollback()
                self._update_stats(None, error=str(e))
                logger.error(f"Error in {sync_type} sync: {e}", exc_info=True)
                return {"success": False, "error": str(e)}

    def _update_stats(self, result, error=None):
        """Update sync statistics"""
        self.sync_stats["last_sync"] = datetime.now(timezone.utc)
        self.sync_stats["total_syncs"] += 1

        if result is None:
            self.sync_stats["failed_syncs"] += 1
            self.sync_stats["last_error"] = error
            return

        if result.get("synced"):
            self.sync_stats["successful_syncs"] += 1
            self.sync_stats["weeks_synced"] += result.get("syncedWeeks", 0)
        else:
            self.sync_stats["skipped_syncs"] += 1

        errors = result.get("errors")
        self.sync_stats["last_error"] = errors[-1] if errors else None

    def get_status(self):
        """Get scheduler status information"""
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                next_run = getattr(job, "next_run_time", None)
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        return {"is_running": self.is_running, "jobs": jobs, "stats": self.sync_stats}

    def force_sync(self, sync_type="odds"):
        """Manually trigger a sync"""
        if sync_type not in SYNC_JOBS:
            raise ValueError(f"Unknown sync type: {sync_type}")

        result = self._run_job(sync_type)
        if result.get("success"):
            return True, result.get("message") or f"Manual {sync_type} sync completed"
        return False, f"Manual sync failed: {result.get('error')}"


# Global scheduler instance
scheduler_service = SchedulerService()
