"""
Time sources for sync decisions.

Decision logic never reads the system clock directly; it asks the clock
registered on the Flask app (``app.extensions["pickem_clock"]``).
"""

from datetime import datetime, timezone

from flask import current_app


class SystemClock:
    """Wall-clock time in UTC"""

    def now(self):
        return datetime.now(timezone.utc)

    def __repr__(self):
        return "<SystemClock>"


def get_clock():
    """Get the clock registered on the current app"""
    return current_app.extensions.get("pickem_clock") or SystemClock()
