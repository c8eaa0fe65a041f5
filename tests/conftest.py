"""Shared pytest fixtures for the NFL Pick'em sync tests."""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pickem import create_app, db  # noqa: E402
from pickem.models import Game, GameStatus  # noqa: E402
from pickem.utils.espn_client import UpstreamFetchError  # noqa: E402

UTC = timezone.utc

# Wednesday before week 1 of the 2025 season
DEFAULT_NOW = datetime(2025, 9, 3, 12, 0, tzinfo=UTC)

# Sunday 1 PM EDT of week 1; later weeks follow every seven days
WEEK_ONE_KICKOFF = datetime(2025, 9, 7, 17, 0, tzinfo=UTC)


def kickoff(week, hours=0):
    """Sunday early kickoff of a 2025 week, shifted by ``hours``"""
    return WEEK_ONE_KICKOFF + timedelta(days=7 * (week - 1), hours=hours)


class FixedClock:
    """Clock that only moves when told to"""

    def __init__(self, now=DEFAULT_NOW):
        self.current = now

    def now(self):
        return self.current

    def set(self, now):
        self.current = now

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
        return self.current


class FakeProvider:
    """
    In-memory sports data provider.

    ``schedule`` maps week -> list of game records, ``odds`` maps event id ->
    odds dict. Weeks in ``failing_weeks`` and event ids in ``failing_odds``
    raise UpstreamFetchError.
    """

    def __init__(self, schedule=None, odds=None, failing_weeks=None, failing_odds=None):
        self.schedule = schedule or {}
        self.odds = odds or {}
        self.failing_weeks = set(failing_weeks or [])
        self.failing_odds = set(failing_odds or [])
        self.calls = []

    def check_configuration(self):
        pass

    def _week(self, kind, season, week):
        self.calls.append((kind, str(season), int(week)))
        if int(week) in self.failing_weeks:
            raise UpstreamFetchError(f"HTTP 503 for week {week}")
        return [dict(record) for record in self.schedule.get(int(week), [])]

    def fetch_schedule(self, season, week):
        return self._week("schedule", season, week)

    def fetch_scores(self, season, week):
        return self._week("scores", season, week)

    def fetch_odds(self, event_id):
        self.calls.append(("odds", event_id))
        if event_id in self.failing_odds:
            raise UpstreamFetchError(f"HTTP 503 for {event_id}")
        return self.odds.get(event_id)

    def calls_of(self, kind):
        return [call for call in self.calls if call[0] == kind]


def team_record(abbreviation, espn_id):
    return {
        "espn_id": espn_id,
        "abbreviation": abbreviation,
        "name": abbreviation.title(),
        "display_name": f"{abbreviation} Football Team",
        "location": abbreviation,
        "color": "002244",
        "alternate_color": "c60c30",
        "logo": f"https://example.test/{abbreviation.lower()}.png",
    }


def game_record(espn_id, week, home, away, start_time, status=GameStatus.SCHEDULED,
                home_score=None, away_score=None, season="2025"):
    """Normalized provider record, shaped like ESPNClient.fetch_schedule output"""
    return {
        "espn_id": espn_id,
        "season": season,
        "week": week,
        "home_team": home,
        "away_team": away,
        "start_time": start_time,
        "status": status,
        "home_score": home_score,
        "away_score": away_score,
        "is_snf": False,
        "is_mnf": False,
        "teams": [team_record(home, f"t-{home}"), team_record(away, f"t-{away}")],
    }


def make_game(espn_id, week, start_time, status=GameStatus.SCHEDULED, home="KC", away="BUF",
              home_score=None, away_score=None, season="2025", spread=None,
              updated_at=datetime(2025, 8, 1, tzinfo=UTC)):
    """Insert a game row directly"""
    game = Game(
        espn_id=espn_id,
        season=season,
        week=week,
        home_team=home,
        away_team=away,
        start_time=start_time,
        status=status,
        home_score=home_score,
        away_score=away_score,
        spread=spread,
        created_at=updated_at,
        updated_at=updated_at,
    )
    db.session.add(game)
    db.session.commit()
    return game


def make_final_week(week, home="KC", away="BUF"):
    return make_game(
        f"final-{week}",
        week,
        kickoff(week),
        status=GameStatus.FINAL,
        home=home,
        away=away,
        home_score=24,
        away_score=17,
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def app(clock, provider):
    """Testing app with an in-memory database, fixed clock and fake provider"""
    app = create_app("testing")
    app.extensions["pickem_clock"] = clock
    app.extensions["pickem_provider"] = provider

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
