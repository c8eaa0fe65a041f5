import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request

from pickem import db, limiter
from pickem.routes.sync import bp
from pickem.services.gatekeepers import (
    get_provider,
    run_manual_sync,
    run_odds_sync,
    run_schedule_sync,
    run_score_sync,
    run_week_sync,
)
from pickem.utils.espn_client import ConfigurationError

logger = logging.getLogger(__name__)


def error_response(message, status):
    return jsonify({"success": False, "error": message}), status


def cron_secret_required(f):
    """Require ``Authorization: Bearer <CRON_SECRET>`` when a secret is configured"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        cron_secret = current_app.config.get("CRON_SECRET")
        if cron_secret:
            auth_header = request.headers.get("Authorization", "")
            if not hmac.compare_digest(auth_header, f"Bearer {cron_secret}"):
                logger.warning(f"Rejected unauthorized sync trigger on {request.path}")
                return error_response("Unauthorized", 401)
        return f(*args, **kwargs)

    return decorated_function


def sync_endpoint(name):
    """Check configuration and turn unexpected failures into a 500 payload"""

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                if not current_app.config.get("SQLALCHEMY_DATABASE_URI"):
                    raise ConfigurationError("Missing database configuration")
                get_provider().check_configuration()
            except ConfigurationError as e:
                logger.error(f"[{name}] {e}")
                return error_response(str(e), 500)

            try:
                return f(*args, **kwargs)
            except Exception as e:
                db.session.rollback()
                logger.error(f"[{name}] Error in sync: {e}", exc_info=True)
                return error_response(str(e) or "Unknown error", 500)

        return decorated_function

    return decorator


def _json_body():
    return request.get_json(silent=True) or {}


def _optional_week(value):
    if value in (None, ""):
        return None
    week = int(value)
    if week < 1 or week > current_app.config.get("REGULAR_SEASON_WEEKS", 18):
        raise ValueError(f"Week out of range: {week}")
    return week


@bp.route("/hourly-odds", methods=["GET"])
@cron_secret_required
@sync_endpoint("odds sync")
def hourly_odds():
    """Odds gatekeeper trigger"""
    return jsonify(run_odds_sync())


@bp.route("/weekly-schedule", methods=["GET"])
@cron_secret_required
@sync_endpoint("schedule sync")
def weekly_schedule():
    """Schedule gatekeeper trigger"""
    return jsonify(run_schedule_sync())


@bp.route("/daily-scores", methods=["GET"])
@cron_secret_required
@sync_endpoint("score sync")
def daily_scores():
    """Score gatekeeper trigger"""
    return jsonify(run_score_sync())


@bp.route("/manual", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("MANUAL_SYNC_RATE_LIMIT", "10 per minute"))
@sync_endpoint("manual sync")
def manual():
    """Sync scores, schedules and odds for one week right now"""
    data = _json_body()
    try:
        week = _optional_week(data.get("week"))
    except (TypeError, ValueError) as e:
        return error_response(str(e), 400)

    season = str(data["season"]) if data.get("season") else None
    return jsonify(run_manual_sync(season=season, week=week))


@bp.route("/games", methods=["POST"])
@sync_endpoint("week sync")
def games():
    """Dispatch primitive for one week"""
    data = _json_body()
    try:
        week = _optional_week(data.get("week"))
    except (TypeError, ValueError) as e:
        return error_response(str(e), 400)

    season = str(data["season"]) if data.get("season") else None
    result = run_week_sync(
        season=season,
        week=week,
        scores=data.get("syncScores") is not False,
        schedules=data.get("syncSchedules") is not False,
        odds=data.get("syncOdds") is not False,
    )
    return jsonify(result)
