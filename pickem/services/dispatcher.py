"""
Fetch-and-persist of one (season, week) from the sports data provider.

The provider is injected: anything with ``fetch_schedule(season, week)``,
``fetch_scores(season, week)`` and ``fetch_odds(event_id)`` works. All
writes are upserts keyed on the provider event id, so re-running a dispatch
against unchanged upstream data changes nothing.
"""

import logging
import time
from datetime import timedelta

from flask import current_app

from pickem import db
from pickem.models import Game, GameStatus, Team
from pickem.services.sync_status import (
    SyncKind,
    has_games_in_window,
    is_sync_fresh,
    record_sync,
)
from pickem.utils.espn_client import UpstreamFetchError
from pickem.utils.logging_config import ContextualLogger

logger = logging.getLogger(__name__)


def week_result(success=True, synced=False, message=None, **extra):
    result = {"success": success, "synced": synced}
    if message:
        result["message"] = message
    result.update(extra)
    return result


class SyncDispatcher:
    """Runs provider syncs for individual weeks"""

    def __init__(self, provider, clock):
        self.provider = provider
        self.clock = clock

    @property
    def score_window(self):
        return timedelta(hours=current_app.config.get("SCORE_SYNC_WINDOW_HOURS", 4))

    @property
    def odds_interval(self):
        return timedelta(minutes=current_app.config.get("ODDS_SYNC_INTERVAL_MINUTES", 60))

    def is_week_complete(self, season, week):
        """All games of the week final with both scores"""
        games = Game.get_games_for_week(season, week)
        return bool(games) and all(game.has_final_score for game in games)

    def dispatch(self, season, week, scores=True, schedules=True, odds=True):
        """
        Sync one week. Provider errors propagate to the caller, except for
        per-game odds failures, which are listed under ``oddsErrors``.

        Returns a result dict with ``success``, ``synced`` and ``message``.
        """
        season = str(season)
        week = int(week)
        log = ContextualLogger(__name__, {"season": season, "week": week})

        if self.is_week_complete(season, week):
            log.info("Week is complete - skipping sync")
            return week_result(message=f"Week {week} is complete, no sync needed")

        now = self.clock.now()
        synced = False
        games_synced = 0
        odds_updated = 0
        odds_errors = []

        if schedules:
            games_synced = self._sync_schedule(season, week, log)
            synced = True
        elif scores:
            if has_games_in_window(season, week, now, self.score_window):
                games_synced = self._sync_scores(season, week, log)
                synced = True
            else:
                log.info("No active games - skipping score sync")

        if odds:
            if is_sync_fresh(SyncKind.ODDS, season, week, now, self.odds_interval):
                log.info("Odds synced within the last interval - skipping odds sync")
            else:
                odds_updated, odds_errors = self._sync_odds(season, week, log)
                synced = True

        result = week_result(
            synced=synced,
            message=f"Sync completed for week {week}",
            gamesSynced=games_synced,
            oddsUpdated=odds_updated,
        )
        if odds_errors:
            result["oddsErrors"] = odds_errors
        return result

    def _sync_schedule(self, season, week, log):
        """Upsert every game of the week, creating missing ones"""
        now = self.clock.now()
        records = self.provider.fetch_schedule(season, week)

        try:
            changed = 0
            for record in records:
                for team_data in record.get("teams", []):
                    Team.upsert(team_data)
                if self._upsert_game(record, now):
                    changed += 1

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        record_sync(SyncKind.GAMES, season, week, now)
        log.info(f"Synced {len(records)} games ({changed} changed)")
        return len(records)

    def _sync_scores(self, season, week, log):
        """Apply status and score updates to games already stored"""
        now = self.clock.now()
        records = self.provider.fetch_scores(season, week)

        try:
            updated = 0
            for record in records:
                game = Game.query.filter_by(espn_id=record["espn_id"]).first()
                if not game:
                    continue
                if game.update_score(
                    record.get("home_score"), record.get("away_score"), record["status"]
                ):
                    game.updated_at = now
                    updated += 1

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        record_sync(SyncKind.GAMES, season, week, now)
        log.info(f"Updated scores for {updated} games")
        return updated

    def _sync_odds(self, season, week, log):
        """
        Fetch spread and over/under for every game with a provider id.

        A game whose odds cannot be fetched is logged and skipped. Returns
        ``(updated, errors)``.
        """
        now = self.clock.now()
        games = [game for game in Game.get_games_for_week(season, week) if game.espn_id]

        # Games missing a line first
        games.sort(key=lambda game: game.spread is not None)

        try:
            updated = 0
            errors = []
            for game in games:
                try:
                    odds = self.provider.fetch_odds(game.espn_id)
                except UpstreamFetchError as e:
                    log.warning(f"Odds fetch failed for game {game.espn_id}: {e}")
                    errors.append(f"Game {game.espn_id}: {e}")
                    continue
                if not odds:
                    continue

                changed = False
                if odds.get("spread") is not None and odds["spread"] != game.spread:
                    game.spread = odds["spread"]
                    changed = True
                if odds.get("over_under") is not None and odds["over_under"] != game.over_under:
                    game.over_under = odds["over_under"]
                    changed = True

                if changed:
                    game.updated_at = now
                    updated += 1

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        record_sync(SyncKind.ODDS, season, week, now)
        log.info(
            f"Synced odds for {len(games)} games ({updated} updated, {len(errors)} failed)"
        )
        return updated, errors

    def _upsert_game(self, record, now):
        """Create or update one game. Returns True when the row changed."""
        game = Game.query.filter_by(espn_id=record["espn_id"]).first()
        created = game is None

        if created:
            game = Game(
                espn_id=record["espn_id"],
                season=str(record["season"]),
                week=int(record["week"]),
                status=GameStatus.SCHEDULED,
            )
            db.session.add(game)

        changed = created
        for field in ("home_team", "away_team", "is_snf", "is_mnf"):
            if getattr(game, field) != record.get(field):
                setattr(game, field, record.get(field))
                changed = True

        if game.set_start_time(record["start_time"]):
            changed = True
        if game.update_score(
            record.get("home_score"), record.get("away_score"), record["status"]
        ):
            changed = True

        if changed:
            game.updated_at = now
            if created:
                game.created_at = now
        return changed

    def dispatch_weeks(self, season, weeks, scores=False, schedules=False, odds=False,
                       delay=0, sleep=time.sleep):
        """
        Dispatch several weeks one after another.

        A failing week is recorded and the remaining weeks still run. Returns
        ``(synced_weeks, errors)`` where errors are ``"Week N: reason"``.
        """
        weeks = list(weeks)
        synced_weeks = 0
        errors = []

        for index, week in enumerate(weeks):
            try:
                result = self.dispatch(
                    season, week, scores=scores, schedules=schedules, odds=odds
                )
                synced_weeks += 1
                errors.extend(f"Week {week}: {error}" for error in result.get("oddsErrors", []))
            except Exception as e:
                db.session.rollback()
                logger.error(
                    f"Sync failed for season {season} week {week} "
                    f"(scores={scores}, schedules={schedules}, odds={odds}): {e}"
                )
                errors.append(f"Week {week}: {e}")

            if delay and index < len(weeks) - 1:
                sleep(delay)

        return synced_weeks, errors
