"""
Persisted sync markers and the page-load sync decision.

A SyncTimestamp records the last successful sync of one kind of data for a
(season, week). Markers live in the ``app_config`` table under
``last_<kind>_sync_<season>_<week>`` with an ISO-8601 value.
"""

import enum
import logging
from collections import namedtuple
from datetime import timedelta

from pickem import db
from pickem.models import AppConfig, Game, GameStatus
from pickem.utils.timezone_utils import ensure_utc, parse_timestamp

logger = logging.getLogger(__name__)

# Page-load cadence
ACTIVE_WINDOW = timedelta(hours=2)
ACTIVE_WINDOW_SYNC_INTERVAL = timedelta(minutes=5)
DEFAULT_SYNC_INTERVAL = timedelta(minutes=15)


class SyncKind(str, enum.Enum):
    GAMES = "games"
    ODDS = "odds"


SyncTimestamp = namedtuple("SyncTimestamp", ["kind", "season", "week", "synced_at"])


def sync_key(kind, season, week):
    return f"last_{SyncKind(kind).value}_sync_{season}_{week}"


def get_sync_timestamp(kind, season, week):
    """Read the marker; None means never synced (or unreadable)"""
    kind = SyncKind(kind)
    key = sync_key(kind, season, week)
    raw = AppConfig.get_value(key)
    if not raw:
        return None

    try:
        synced_at = parse_timestamp(raw)
    except ValueError:
        logger.error(f"Error parsing sync timestamp for {key}: {raw!r}")
        return None

    return SyncTimestamp(kind=kind, season=str(season), week=int(week), synced_at=synced_at)


def record_sync(kind, season, week, synced_at, commit=True):
    """
    Write the marker for a successful sync.

    Markers never move backwards; an older instant leaves the stored value
    in place. Returns the stored SyncTimestamp.
    """
    kind = SyncKind(kind)
    synced_at = ensure_utc(synced_at)
    existing = get_sync_timestamp(kind, season, week)

    if existing and existing.synced_at >= synced_at:
        return existing

    AppConfig.set_value(
        sync_key(kind, season, week),
        synced_at.isoformat(),
        description=f"Last {kind.value} sync time for season {season}, week {week}",
    )
    if commit:
        db.session.commit()

    return SyncTimestamp(kind=kind, season=str(season), week=int(week), synced_at=synced_at)


def is_sync_fresh(kind, season, week, now, max_age):
    """True when the last sync of ``kind`` is younger than ``max_age``"""
    timestamp = get_sync_timestamp(kind, season, week)
    if timestamp is None:
        return False
    return now - timestamp.synced_at < max_age


def has_games_changed_since(season, week, since):
    """Any game row of the week updated after ``since``"""
    return (
        Game.query.filter(
            Game.season == str(season),
            Game.week == week,
            Game.updated_at > ensure_utc(since),
        ).first()
        is not None
    )


def has_games_in_window(season, week, now, window, statuses=None):
    """Any game of the week with a kickoff within ``window`` of ``now``"""
    statuses = statuses or [GameStatus.SCHEDULED, GameStatus.LIVE]
    return (
        Game.query.filter(
            Game.season == str(season),
            Game.week == week,
            Game.status.in_(statuses),
            Game.start_time >= now - window,
            Game.start_time <= now + window,
        ).first()
        is not None
    )


def should_sync_games(season, week, now):
    """
    Decide whether a page load should refresh a week's games.

    1. Never synced -> sync
    2. Games changed since the last sync -> sync
    3. Games starting or in progress within 2 hours -> sync after 5 minutes
    4. Otherwise -> sync after 15 minutes
    """
    last_sync = get_sync_timestamp(SyncKind.GAMES, season, week)
    if last_sync is None:
        return True

    time_since_sync = now - last_sync.synced_at

    if has_games_changed_since(season, week, last_sync.synced_at):
        return True

    if has_games_in_window(season, week, now, ACTIVE_WINDOW):
        return time_since_sync > ACTIVE_WINDOW_SYNC_INTERVAL

    return time_since_sync > DEFAULT_SYNC_INTERVAL
