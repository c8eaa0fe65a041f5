#!/usr/bin/env python3
"""
NFL Pick'em Sync Management CLI

Command-line access to the sync gatekeepers, the per-week dispatcher and
season information.
"""

import os

import click
from sqlalchemy import text

from pickem import create_app, db
from pickem.models import Game
from pickem.services.gatekeepers import (
    run_manual_sync,
    run_odds_sync,
    run_schedule_sync,
    run_score_sync,
    run_week_sync,
)
from pickem.services.season_service import get_season_info
from pickem.services.sync_status import SyncKind, get_sync_timestamp
from pickem.utils.clock import get_clock
from pickem.utils.timezone_utils import format_game_time


def get_app():
    return create_app(os.environ.get("FLASK_CONFIG"))


def echo_result(result):
    """Print a sync payload"""
    icon = "✅" if result.get("success") else "❌"
    click.echo(f"{icon} {result.get('message') or result.get('error') or 'Done'}")

    if "syncedWeeks" in result:
        click.echo(f"   Weeks synced: {result['syncedWeeks']}")
    for error in result.get("errors", []):
        click.echo(f"   ⚠️  {error}")


@click.group()
@click.pass_context
def cli(ctx):
    """NFL Pick'em Sync Management CLI"""
    ctx.obj = get_app()


def run_in_app(ctx, func, *args, **kwargs):
    with ctx.obj.app_context():
        try:
            return func(*args, **kwargs)
        except Exception as e:
            db.session.rollback()
            click.echo(f"❌ Error: {str(e)}")
            ctx.exit(1)


# Sync Commands
@cli.group()
def sync():
    """Data synchronization commands"""
    pass


@sync.command()
@click.pass_context
def odds(ctx):
    """Run the hourly odds gatekeeper"""
    result = run_in_app(ctx, run_odds_sync)
    echo_result(result)


@sync.command()
@click.pass_context
def schedule(ctx):
    """Run the weekly schedule gatekeeper"""
    result = run_in_app(ctx, run_schedule_sync)
    echo_result(result)


@sync.command()
@click.pass_context
def scores(ctx):
    """Run the daily score gatekeeper"""
    result = run_in_app(ctx, run_score_sync)
    echo_result(result)


@sync.command()
@click.argument("season")
@click.argument("week", type=click.IntRange(1, 18))
@click.option("--scores/--no-scores", default=True, help="Sync live scores")
@click.option("--schedules/--no-schedules", default=True, help="Sync schedules")
@click.option("--odds/--no-odds", "with_odds", default=True, help="Sync odds")
@click.pass_context
def week(ctx, season, week, scores, schedules, with_odds):
    """Dispatch one week directly"""
    click.echo(f"Syncing {season} week {week}...")
    result = run_in_app(
        ctx,
        run_week_sync,
        season=season,
        week=week,
        scores=scores,
        schedules=schedules,
        odds=with_odds,
    )
    echo_result(result)
    if "gamesSynced" in result:
        click.echo(f"   Games synced: {result['gamesSynced']}")
        click.echo(f"   Odds updated: {result['oddsUpdated']}")


@sync.command()
@click.option("--season", help="Season year (default: current season)")
@click.option("--week", type=click.IntRange(1, 18), help="Week (default: current week)")
@click.pass_context
def manual(ctx, season, week):
    """Unconditional sync of scores, schedules and odds for one week"""
    result = run_in_app(ctx, run_manual_sync, season=season, week=week)
    echo_result(result)


# Season Commands
@cli.group()
def season():
    """Season information commands"""
    pass


def _show_current(season):
    now = get_clock().now()
    info = get_season_info(now, season=season)

    click.echo(f"🏈 Season {info.season} - Week {info.current_week}")

    for kind in SyncKind:
        timestamp = get_sync_timestamp(kind, info.season, info.current_week)
        last = timestamp.synced_at.isoformat() if timestamp else "never"
        click.echo(f"   Last {kind.value} sync: {last}")

    games = Game.get_games_for_week(info.season, info.current_week)
    for game in games:
        score = ""
        if game.home_score is not None and game.away_score is not None:
            score = f" {game.away_score}-{game.home_score}"
        click.echo(
            f"   {game.away_team} @ {game.home_team}  "
            f"{format_game_time(game.start_time_utc)}  {game.status.value}{score}"
        )


@season.command()
@click.option("--season", "season_year", help="Season year (default: current season)")
@click.pass_context
def current(ctx, season_year):
    """Show the current season, week and sync markers"""
    run_in_app(ctx, _show_current, season_year)


# Database Commands
@cli.group(name="db-cmd")
def db_cmd():
    """Database commands"""
    pass


def _init_db():
    db.create_all()
    db.session.execute(text("SELECT 1"))


@db_cmd.command()
@click.pass_context
def init_db(ctx):
    """Initialize database tables"""
    run_in_app(ctx, _init_db)
    click.echo("✅ Database tables created successfully!")


if __name__ == "__main__":
    cli()
