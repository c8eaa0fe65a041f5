"""
Sync gatekeepers: decide whether a refresh from the provider is due now and
run it.

Each runner returns the response payload sent back to the trigger:
``{"success": bool, "message": str, "synced": bool, "syncedWeeks": int,
"errors": [str]}``. A skipped sync is a success.

Cadence is enforced by whoever fires the trigger (cron, APScheduler), except
for odds, whose trigger fires more often than the odds should be refreshed.
"""

import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from pickem import db
from pickem.models import Game, GameStatus
from pickem.services.dispatcher import SyncDispatcher
from pickem.services.season_service import get_season_info
from pickem.services.sync_status import SyncKind, get_sync_timestamp, has_games_in_window
from pickem.utils.clock import get_clock

logger = logging.getLogger(__name__)


def get_provider():
    return current_app.extensions["pickem_provider"]


def get_dispatcher(clock=None, provider=None):
    return SyncDispatcher(provider or get_provider(), clock or get_clock())


def skipped(message):
    return {"success": True, "message": message, "synced": False}


def summary(message, synced_weeks, errors):
    payload = {"success": True, "message": message, "synced": True, "syncedWeeks": synced_weeks}
    if errors:
        payload["errors"] = errors
    return payload


def has_active_games(season, week, now):
    """Live or scheduled games of the week kicking off within the score window"""
    window = timedelta(hours=current_app.config.get("SCORE_SYNC_WINDOW_HOURS", 4))
    return has_games_in_window(
        season, week, now, window, statuses=[GameStatus.LIVE, GameStatus.SCHEDULED]
    )


def has_games_scheduled_far_out(season, now):
    """Scheduled games kicking off beyond the schedule horizon"""
    horizon = timedelta(days=current_app.config.get("SCHEDULE_SYNC_HORIZON_DAYS", 12))
    return (
        Game.query.filter(
            Game.season == str(season),
            Game.status == GameStatus.SCHEDULED,
            Game.start_time >= now + horizon,
        ).first()
        is not None
    )


def run_score_sync(clock=None, provider=None):
    """Daily: sync the current week when it has games around now"""
    clock = clock or get_clock()
    now = clock.now()

    try:
        info = get_season_info(now)
        active = has_active_games(info.season, info.current_week, now)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[score sync] Could not check for active games: {e}")
        return skipped("Could not check for active games, skipping score sync")

    if not active:
        logger.info(
            f"[score sync] No active games for {info.season} week {info.current_week} - skipping"
        )
        return skipped(f"No active games for week {info.current_week}")

    logger.info(f"[score sync] Syncing {info.season} week {info.current_week}")
    result = get_dispatcher(clock, provider).dispatch(
        info.season, info.current_week, scores=True, schedules=True, odds=True
    )
    logger.info(f"[score sync] Completed for week {info.current_week}: {result}")

    payload = dict(result)
    payload["message"] = f"Score sync completed for week {info.current_week}"
    payload["syncedWeeks"] = 1 if result.get("synced") else 0
    return payload


def run_schedule_sync(clock=None, provider=None):
    """Weekly: resync every regular season week while far-out games exist"""
    clock = clock or get_clock()
    now = clock.now()
    total_weeks = current_app.config.get("REGULAR_SEASON_WEEKS", 18)

    try:
        info = get_season_info(now)
        far_out = has_games_scheduled_far_out(info.season, now)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[schedule sync] Could not check for far-out games: {e}")
        return skipped("Could not check for far-out games, skipping schedule sync")

    if not far_out:
        logger.info("[schedule sync] No games scheduled beyond the horizon - skipping")
        return skipped("No far-out games found, skipping schedule sync")

    logger.info(f"[schedule sync] Syncing schedules for season {info.season}")
    synced_weeks, errors = get_dispatcher(clock, provider).dispatch_weeks(
        info.season,
        range(1, total_weeks + 1),
        schedules=True,
        delay=current_app.config.get("SCHEDULE_SYNC_WEEK_DELAY", 0.5),
    )

    message = f"Schedule sync completed: {synced_weeks}/{total_weeks} weeks synced"
    logger.info(f"[schedule sync] {message}")
    return summary(message, synced_weeks, errors)


def run_odds_sync(clock=None, provider=None):
    """Hourly: refresh odds for the current and next week at most once an hour"""
    clock = clock or get_clock()
    now = clock.now()
    interval = timedelta(minutes=current_app.config.get("ODDS_SYNC_INTERVAL_MINUTES", 60))
    total_weeks = current_app.config.get("REGULAR_SEASON_WEEKS", 18)

    try:
        info = get_season_info(now)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[odds sync] Could not resolve the current week: {e}")
        return skipped("Could not resolve the current week, skipping odds sync")

    try:
        last_sync = get_sync_timestamp(SyncKind.ODDS, info.season, info.current_week)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[odds sync] Could not read last odds sync, syncing anyway: {e}")
        last_sync = None

    if last_sync:
        age = now - last_sync.synced_at
        if age < interval:
            logger.info(
                f"[odds sync] Odds for week {info.current_week} synced "
                f"{round(age.total_seconds() / 60)} minutes ago - skipping"
            )
            return skipped("Odds synced recently, skipping")

    weeks = [info.current_week]
    if info.current_week < total_weeks:
        weeks.append(info.current_week + 1)

    logger.info(f"[odds sync] Syncing odds for {info.season} weeks {weeks}")
    synced_weeks, errors = get_dispatcher(clock, provider).dispatch_weeks(
        info.season, weeks, odds=True
    )

    message = f"Odds sync completed: {synced_weeks}/{len(weeks)} weeks synced"
    logger.info(f"[odds sync] {message}")
    return summary(message, synced_weeks, errors)


def run_week_sync(season=None, week=None, scores=True, schedules=True, odds=True,
                  clock=None, provider=None):
    """Dispatch one week, defaulting to the current season and week"""
    clock = clock or get_clock()
    now = clock.now()

    if not season or not week:
        info = get_season_info(now, season=season)
        season = season or info.season
        week = week or info.current_week

    return get_dispatcher(clock, provider).dispatch(
        season, week, scores=scores, schedules=schedules, odds=odds
    )


def run_manual_sync(season=None, week=None, clock=None, provider=None):
    """Unconditional sync of every data kind for one week"""
    clock = clock or get_clock()
    if not season or not week:
        info = get_season_info(clock.now(), season=season)
        season = info.season
        week = week or info.current_week

    result = run_week_sync(season, week, clock=clock, provider=provider)

    payload = dict(result)
    payload["message"] = f"Manual sync completed for week {week}"
    payload["season"] = str(season)
    payload["week"] = int(week)
    return payload
