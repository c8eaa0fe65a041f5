"""
Timezone utility functions for the NFL Pick'em sync service

NFL weeks are defined on the Eastern Time wall clock: a week runs through
the following Tuesday at noon ET.
"""

from collections import namedtuple
from datetime import datetime, timedelta, timezone

import pytz
from flask import current_app, has_app_context

EASTERN = pytz.timezone("America/New_York")

# Tuesday 12:00 ET
CUTOVER_DAY_OF_WEEK = 2
CUTOVER_HOUR = 12

# day_of_week: 0 = Sunday ... 6 = Saturday
EasternTime = namedtuple("EasternTime", ["day_of_week", "hour", "minute"])


def get_app_timezone():
    """Get the application's configured timezone"""
    timezone_name = "America/New_York"
    if has_app_context():
        timezone_name = current_app.config.get("TIMEZONE", timezone_name)
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        return EASTERN


def ensure_utc(dt):
    """Return an aware UTC datetime; naive values are assumed to be UTC"""
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_timestamp(value):
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware UTC datetime"""
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def resolve_eastern_time(instant):
    """
    Calendar fields of ``instant`` as read on a wall clock in America/New_York.

    The zoned components come from the tz database (DST aware). They are then
    rebuilt as a synthetic UTC datetime purely to read the day of week.
    """
    local = ensure_utc(instant).astimezone(EASTERN)

    synthetic = datetime(
        local.year, local.month, local.day, local.hour, local.minute, tzinfo=timezone.utc
    )
    # isoweekday(): Monday=1 ... Sunday=7
    day_of_week = synthetic.isoweekday() % 7

    return EasternTime(day_of_week=day_of_week, hour=local.hour, minute=local.minute)


def is_past_weekly_cutover(et):
    """Has Tuesday noon ET passed in the current Sunday-to-Saturday week"""
    if et.day_of_week == CUTOVER_DAY_OF_WEEK:
        return et.hour >= CUTOVER_HOUR
    return et.day_of_week > CUTOVER_DAY_OF_WEEK


def next_weekly_cutover(instant):
    """First Tuesday 12:00 ET strictly after ``instant``, as UTC"""
    local = ensure_utc(instant).astimezone(EASTERN)

    # weekday(): Monday=0, Tuesday=1
    days_ahead = (1 - local.weekday()) % 7
    if days_ahead == 0 and is_past_weekly_cutover(resolve_eastern_time(instant)):
        days_ahead = 7

    cutover_date = local.date() + timedelta(days=days_ahead)
    cutover = EASTERN.localize(
        datetime(cutover_date.year, cutover_date.month, cutover_date.day, CUTOVER_HOUR)
    )
    return cutover.astimezone(timezone.utc)


def convert_to_app_timezone(dt):
    """Convert a datetime to the application's timezone"""
    if dt is None:
        return None

    return ensure_utc(dt).astimezone(get_app_timezone())


def format_game_time(dt, format_str="%a %m/%d at %I:%M %p"):
    """Format a game time in the application's timezone"""
    if dt is None:
        return "TBD"

    app_time = convert_to_app_timezone(dt)
    return app_time.strftime(format_str)
