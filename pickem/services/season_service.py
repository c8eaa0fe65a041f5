"""
Season and current-week resolution.

The current week is recomputed from the games table on every call: game
state changes between calls, so nothing is cached here.
"""

import logging
from collections import namedtuple

from flask import current_app

from pickem.models import Game, GameStatus
from pickem.utils.timezone_utils import EASTERN, next_weekly_cutover

logger = logging.getLogger(__name__)

SeasonInfo = namedtuple("SeasonInfo", ["season", "current_week"])


def current_season_year(now):
    """
    Season in progress at ``now`` as a string year.

    NFL_SEASON overrides the calendar. Otherwise January and February
    belong to the previous year's season.
    """
    configured = current_app.config.get("NFL_SEASON")
    if configured:
        return str(configured)

    local = now.astimezone(EASTERN)
    year = local.year if local.month >= 3 else local.year - 1
    return str(year)


def _regular_season_weeks():
    return current_app.config.get("REGULAR_SEASON_WEEKS", 18)


def _is_pending(game, now):
    return game.status != GameStatus.FINAL or game.start_time_utc > now


def resolve_current_week(season, now):
    """
    Authoritative current week for ``season`` at ``now``.

    - The lowest week holding a game that is not final, or that has not
      kicked off yet, is current.
    - When every loaded game is final, the week after the last one becomes
      current once the Tuesday noon ET cutover following that week's last
      kickoff has passed.
    - No games yet -> week 1. Final week of the season complete -> that week.
    """
    season = str(season)
    games = Game.get_games_for_season(season)

    if not games:
        return SeasonInfo(season=season, current_week=1)

    pending_weeks = [game.week for game in games if _is_pending(game, now)]
    if pending_weeks:
        return SeasonInfo(season=season, current_week=min(pending_weeks))

    last_week = max(game.week for game in games)
    if last_week >= _regular_season_weeks():
        return SeasonInfo(season=season, current_week=last_week)

    last_kickoff = max(game.start_time_utc for game in games if game.week == last_week)
    if now >= next_weekly_cutover(last_kickoff):
        return SeasonInfo(season=season, current_week=last_week + 1)

    return SeasonInfo(season=season, current_week=last_week)


def get_season_info(now, season=None):
    """SeasonInfo for the given or current season"""
    season = str(season) if season else current_season_year(now)
    info = resolve_current_week(season, now)
    logger.debug(f"Resolved season {info.season} week {info.current_week}")
    return info
