"""
Normalize ESPN scoreboard payloads into plain game and team records
"""

import logging

from pickem.models.game import GameStatus
from pickem.utils.timezone_utils import parse_timestamp, resolve_eastern_time

logger = logging.getLogger(__name__)

# Prime time kickoffs are 8 PM ET or later
PRIME_TIME_HOUR = 20


def extract_events(data):
    """ESPN returns events under a few different envelopes"""
    if not data:
        return []
    if data.get("events"):
        return data["events"]
    content = data.get("content") or {}
    if (content.get("sbData") or {}).get("events"):
        return content["sbData"]["events"]
    return content.get("events") or []


def normalize_status(status_type):
    status_type = status_type or {}
    if status_type.get("completed"):
        return GameStatus.FINAL
    if status_type.get("state") == "in":
        return GameStatus.LIVE
    return GameStatus.SCHEDULED


def _parse_score(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_team(competitor_team):
    competitor_team = competitor_team or {}
    logos = competitor_team.get("logos") or []
    return {
        "espn_id": str(competitor_team.get("id", "")),
        "abbreviation": (competitor_team.get("abbreviation") or "").upper(),
        "name": competitor_team.get("name") or "",
        "display_name": competitor_team.get("displayName") or competitor_team.get("name"),
        "location": competitor_team.get("location"),
        "color": competitor_team.get("color"),
        "alternate_color": competitor_team.get("alternateColor"),
        "logo": competitor_team.get("logo") or (logos[0].get("href") if logos else None),
    }


def normalize_event(event, season=None, week=None):
    """
    Convert one scoreboard event into a game record.

    Returns None for events that cannot be used (missing competitors or an
    unparseable kickoff time).
    """
    competitions = event.get("competitions") or []
    if not competitions:
        return None
    competition = competitions[0]

    competitors = competition.get("competitors") or []
    home = next((c for c in competitors if c.get("homeAway") == "home"), None)
    away = next((c for c in competitors if c.get("homeAway") == "away"), None)
    if not home or not away:
        logger.warning(f"Missing team data for event {event.get('id')}")
        return None

    try:
        start_time = parse_timestamp(event.get("date") or competition.get("date"))
    except ValueError:
        logger.warning(f"Unparseable start time for event {event.get('id')}")
        return None
    if start_time is None:
        return None

    et = resolve_eastern_time(start_time)
    status = normalize_status((competition.get("status") or {}).get("type"))

    home_team = normalize_team(home.get("team"))
    away_team = normalize_team(away.get("team"))

    return {
        "espn_id": str(event.get("id", "")),
        "season": str((event.get("season") or {}).get("year") or season),
        "week": (event.get("week") or {}).get("number") or week,
        "home_team": home_team["abbreviation"],
        "away_team": away_team["abbreviation"],
        "start_time": start_time,
        "status": status,
        "home_score": _parse_score(home.get("score")),
        "away_score": _parse_score(away.get("score")),
        "is_snf": et.day_of_week == 0 and et.hour >= PRIME_TIME_HOUR,
        "is_mnf": et.day_of_week == 1 and et.hour >= PRIME_TIME_HOUR,
        "teams": [home_team, away_team],
    }


def normalize_scoreboard(data, season=None, week=None):
    games = []
    for event in extract_events(data):
        game = normalize_event(event, season=season, week=week)
        if game:
            games.append(game)
    return games


def normalize_odds(data):
    """
    Pick the first provider entry carrying a spread or over/under.

    Entries that only hold a ``$ref`` link are skipped. Returns None when no
    line is available.
    """
    spread = None
    over_under = None

    for item in (data or {}).get("items") or []:
        if "$ref" in item and item.get("spread") is None and item.get("overUnder") is None:
            continue

        if spread is None and item.get("spread") is not None:
            spread = float(item["spread"])
        if over_under is None and item.get("overUnder") is not None:
            over_under = float(item["overUnder"])

        if spread is not None and over_under is not None:
            break

    if spread is None and over_under is None:
        return None
    return {"spread": spread, "over_under": over_under}
