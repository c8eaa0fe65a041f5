"""Tests for season and current-week resolution."""
from datetime import datetime, timedelta, timezone

from conftest import kickoff, make_final_week, make_game
from pickem.models import GameStatus
from pickem.services.season_service import (
    current_season_year,
    get_season_info,
    resolve_current_week,
)

UTC = timezone.utc


class TestCurrentSeasonYear:
    def test_fall_is_same_year(self, app):
        assert current_season_year(datetime(2025, 9, 3, tzinfo=UTC)) == "2025"

    def test_january_belongs_to_previous_season(self, app):
        assert current_season_year(datetime(2026, 1, 10, tzinfo=UTC)) == "2025"

    def test_new_year_in_eastern_time(self, app):
        # Still Feb 28 in New York
        assert current_season_year(datetime(2026, 3, 1, 3, 0, tzinfo=UTC)) == "2025"

    def test_configured_season_wins(self, app):
        app.config["NFL_SEASON"] = "2024"
        assert current_season_year(datetime(2025, 9, 3, tzinfo=UTC)) == "2024"


class TestResolveCurrentWeek:
    def test_no_games_is_week_one(self, app):
        info = resolve_current_week("2025", kickoff(1))
        assert info.season == "2025"
        assert info.current_week == 1

    def test_first_unfinished_week_is_current(self, app):
        for week in (1, 2, 3):
            make_final_week(week)
        make_game("w4", 4, kickoff(4))

        info = resolve_current_week("2025", kickoff(4, hours=-48))
        assert info.current_week == 4

    def test_live_game_keeps_its_week_current(self, app):
        make_final_week(1)
        make_game("w2", 2, kickoff(2), status=GameStatus.LIVE)
        make_game("w3", 3, kickoff(3))

        assert resolve_current_week("2025", kickoff(2, hours=1)).current_week == 2

    def test_final_game_with_future_kickoff_is_pending(self, app):
        make_final_week(1)
        make_game("w2", 2, kickoff(2), status=GameStatus.FINAL, home_score=3, away_score=0)

        assert resolve_current_week("2025", kickoff(2, hours=-24)).current_week == 2

    def test_all_final_waits_for_tuesday_noon(self, app):
        make_final_week(1)
        make_final_week(2)
        make_final_week(3)
        # Monday night game of week 3: 20:15 EDT
        make_game(
            "mnf-3",
            3,
            kickoff(3) + timedelta(days=1, hours=7, minutes=15),
            status=GameStatus.FINAL,
            home="NYJ",
            away="MIA",
            home_score=10,
            away_score=13,
        )

        tuesday_noon = datetime(2025, 9, 23, 16, 0, tzinfo=UTC)
        before = resolve_current_week("2025", tuesday_noon - timedelta(minutes=1))
        after = resolve_current_week("2025", tuesday_noon)

        assert before.current_week == 3
        assert after.current_week == 4

    def test_cutover_across_dst_change(self, app):
        make_final_week(9)
        # Week 9 early game kicks off Nov 2, the day DST ends
        make_game(
            "late-9",
            9,
            datetime(2025, 11, 2, 18, 0, tzinfo=UTC),
            status=GameStatus.FINAL,
            home="DEN",
            away="HOU",
            home_score=1,
            away_score=0,
        )

        assert resolve_current_week(
            "2025", datetime(2025, 11, 4, 16, 59, tzinfo=UTC)
        ).current_week == 9
        assert resolve_current_week(
            "2025", datetime(2025, 11, 4, 17, 0, tzinfo=UTC)
        ).current_week == 10

    def test_complete_season_stays_on_final_week(self, app):
        make_final_week(17)
        make_final_week(18)

        info = resolve_current_week("2025", kickoff(18) + timedelta(days=30))
        assert info.current_week == 18

    def test_repeated_calls_agree(self, app):
        make_final_week(1)
        make_game("w2", 2, kickoff(2))
        now = kickoff(2, hours=-3)

        assert resolve_current_week("2025", now) == resolve_current_week("2025", now)

    def test_other_seasons_are_ignored(self, app):
        make_game("old", 5, kickoff(5) - timedelta(days=365), season="2024")
        assert resolve_current_week("2025", kickoff(1)).current_week == 1


class TestGetSeasonInfo:
    def test_uses_clock_season(self, app, clock):
        make_game("w1", 1, kickoff(1))
        info = get_season_info(clock.now())
        assert info.season == "2025"
        assert info.current_week == 1

    def test_explicit_season(self, app, clock):
        info = get_season_info(clock.now(), season=2024)
        assert info.season == "2024"
        assert info.current_week == 1
