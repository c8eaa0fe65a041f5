import logging

from flask import current_app, jsonify, request

from pickem import db
from pickem.models import Game
from pickem.routes.api import bp
from pickem.services.gatekeepers import get_dispatcher
from pickem.services.season_service import get_season_info
from pickem.services.sync_status import should_sync_games
from pickem.utils.clock import get_clock

logger = logging.getLogger(__name__)


@bp.route("/season")
def season():
    """Current season and week"""
    info = get_season_info(get_clock().now(), season=request.args.get("season"))
    return jsonify(
        {"success": True, "season": info.season, "currentWeek": info.current_week}
    )


@bp.route("/games")
def games():
    """
    Games for a week (current week by default).

    Refreshes the week from the provider first when it is stale; a failed
    refresh still serves what is stored.
    """
    clock = get_clock()
    now = clock.now()

    week = request.args.get("week", type=int)
    info = get_season_info(now, season=request.args.get("season"))
    season = info.season
    if week is None:
        week = info.current_week

    if week < 1 or week > current_app.config.get("REGULAR_SEASON_WEEKS", 18):
        return jsonify({"success": False, "error": f"Week out of range: {week}"}), 400

    synced = False
    try:
        if should_sync_games(season, week, now):
            result = get_dispatcher(clock).dispatch(
                season, week, scores=True, schedules=True, odds=False
            )
            synced = result.get("synced", False)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Page-load sync failed for {season} week {week}: {e}")

    games = Game.get_games_for_week(season, week)
    return jsonify(
        {
            "success": True,
            "season": season,
            "week": week,
            "synced": synced,
            "games": [game.to_dict() for game in games],
        }
    )
