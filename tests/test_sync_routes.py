"""Tests for the /sync trigger endpoints."""
from datetime import timedelta

import pytest

from config import TestingConfig, config
from conftest import game_record, kickoff, make_game
from pickem import create_app, db
from pickem.models import Game
from pickem.services.sync_status import SyncKind, record_sync
from pickem.utils.espn_client import ESPNClient


@pytest.fixture
def secured(app):
    app.config["CRON_SECRET"] = "s3cret"
    return {"Authorization": "Bearer s3cret"}


class TestCronAuthorization:
    @pytest.mark.parametrize("path", ["/sync/hourly-odds", "/sync/weekly-schedule", "/sync/daily-scores"])
    def test_missing_token_is_rejected(self, client, secured, provider, path):
        response = client.get(path)

        assert response.status_code == 401
        assert response.get_json() == {"success": False, "error": "Unauthorized"}
        assert provider.calls == []

    def test_wrong_token_is_rejected(self, client, secured):
        response = client.get("/sync/daily-scores", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_valid_token_is_accepted(self, client, secured):
        response = client.get("/sync/daily-scores", headers=secured)

        assert response.status_code == 200
        assert response.get_json()["success"] is True

    def test_no_secret_configured_allows_calls(self, client):
        assert client.get("/sync/daily-scores").status_code == 200


class TestGatekeeperEndpoints:
    def test_hourly_odds_skip(self, client, app, clock):
        make_game("401", 1, kickoff(1))
        record_sync(SyncKind.ODDS, "2025", 1, clock.now() - timedelta(minutes=10))

        data = client.get("/sync/hourly-odds").get_json()

        assert data == {"success": True, "message": "Odds synced recently, skipping", "synced": False}

    def test_weekly_schedule_reports_failures(self, client, app, provider, clock):
        make_game("1001", 10, clock.now() + timedelta(days=30))
        provider.failing_weeks = {5, 12}

        response = client.get("/sync/weekly-schedule")
        data = response.get_json()

        assert response.status_code == 200
        assert data["success"] is True
        assert data["syncedWeeks"] == 16
        assert len(data["errors"]) == 2

    def test_daily_scores_skip(self, client):
        data = client.get("/sync/daily-scores").get_json()

        assert data["success"] is True
        assert data["synced"] is False

    def test_missing_provider_configuration(self, client, app, provider):
        app.extensions["pickem_provider"] = ESPNClient(api_base_url=None, core_api_url=None)

        response = client.get("/sync/daily-scores")

        assert response.status_code == 500
        data = response.get_json()
        assert data["success"] is False
        assert "NFL_API_BASE_URL" in data["error"]

    def test_unexpected_failure_is_500(self, client, app, provider, clock):
        make_game("401", 1, kickoff(1))
        clock.set(kickoff(1, hours=1))
        provider.failing_weeks = {1}

        response = client.get("/sync/daily-scores")

        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "HTTP 503 for week 1"}

    def test_trigger_requires_get(self, client):
        response = client.post("/sync/hourly-odds")

        assert response.status_code == 405
        assert response.get_json()["success"] is False


class TestManualSync:
    def test_syncs_requested_week(self, client, provider):
        provider.schedule = {3: [game_record("301", 3, "KC", "BUF", kickoff(3))]}

        response = client.post("/sync/manual", json={"season": 2025, "week": 3})
        data = response.get_json()

        assert response.status_code == 200
        assert data["success"] is True
        assert data["season"] == "2025"
        assert data["week"] == 3
        assert data["message"] == "Manual sync completed for week 3"
        assert Game.query.filter_by(espn_id="301").first() is not None

    def test_defaults_to_current_week(self, client):
        data = client.post("/sync/manual").get_json()

        assert data["season"] == "2025"
        assert data["week"] == 1

    @pytest.mark.parametrize("week", [0, 19, "abc"])
    def test_rejects_bad_week(self, client, provider, week):
        response = client.post("/sync/manual", json={"week": week})

        assert response.status_code == 400
        assert response.get_json()["success"] is False
        assert provider.calls == []

    def test_provider_failure_is_500(self, client, provider):
        provider.failing_weeks = {4}

        response = client.post("/sync/manual", json={"season": "2025", "week": 4})

        assert response.status_code == 500
        assert response.get_json()["success"] is False


class TestWeekDispatchEndpoint:
    def test_flags_default_to_true(self, client, provider):
        make_game("401", 1, kickoff(1))

        data = client.post("/sync/games", json={"season": "2025", "week": 1}).get_json()

        assert data["success"] is True
        assert provider.calls_of("schedule") == [("schedule", "2025", 1)]
        assert provider.calls_of("odds") == [("odds", "401")]

    def test_odds_can_be_turned_off(self, client, provider):
        make_game("401", 1, kickoff(1))

        client.post(
            "/sync/games",
            json={"season": "2025", "week": 1, "syncOdds": False, "syncSchedules": False},
        )

        assert provider.calls_of("odds") == []
        assert provider.calls_of("schedule") == []

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/sync/nothing-here")

        assert response.status_code == 404
        assert response.get_json() == {"success": False, "error": "Resource not found"}

    def test_failed_odds_do_not_fail_the_week(self, client, provider):
        provider.schedule = {
            1: [
                game_record("401", 1, "KC", "BUF", kickoff(1)),
                game_record("402", 1, "PHI", "DAL", kickoff(1, hours=3)),
            ]
        }
        provider.odds = {"401": {"spread": -3.5, "over_under": 48.0}}
        provider.failing_odds = {"402"}

        response = client.post("/sync/games", json={"season": "2025", "week": 1})
        data = response.get_json()

        assert response.status_code == 200
        assert data["success"] is True
        assert data["gamesSynced"] == 2
        assert data["oddsErrors"] == ["Game 402: HTTP 503 for 402"]
        assert Game.query.filter_by(espn_id="401").first().spread == -3.5


class RateLimitedConfig(TestingConfig):
    RATELIMIT_ENABLED = True


@pytest.fixture
def limited_client(clock, provider, monkeypatch):
    monkeypatch.setitem(config, "ratelimited", RateLimitedConfig)
    app = create_app("ratelimited")
    app.extensions["pickem_clock"] = clock
    app.extensions["pickem_provider"] = provider

    with app.app_context():
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def test_manual_sync_is_rate_limited(limited_client):
    for _ in range(10):
        assert limited_client.post("/sync/manual", json={"week": 1}).status_code == 200

    response = limited_client.post("/sync/manual", json={"week": 1})

    assert response.status_code == 429
    assert response.get_json() == {"success": False, "error": "Too many requests"}
