import enum
import logging
from datetime import datetime, timezone

from pickem import db
from pickem.utils.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)


class GameStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINAL = "final"

    @property
    def rank(self):
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [GameStatus.SCHEDULED, GameStatus.LIVE, GameStatus.FINAL]


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)

    # Game identification
    season = db.Column(db.String(4), nullable=False)
    week = db.Column(db.Integer, nullable=False)

    # Teams (abbreviations)
    home_team = db.Column(db.String(10), nullable=False)
    away_team = db.Column(db.String(10), nullable=False)

    # Game timing, stored as UTC
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)

    status = db.Column(
        db.Enum(
            GameStatus,
            name="game_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=GameStatus.SCHEDULED,
    )

    # Scores
    home_score = db.Column(db.Integer)
    away_score = db.Column(db.Integer)

    # Prime time flags
    is_snf = db.Column(db.Boolean, default=False)
    is_mnf = db.Column(db.Boolean, default=False)

    # Odds
    spread = db.Column(db.Float)  # Home team perspective, negative = home favored
    over_under = db.Column(db.Float)

    # External ID for API integration
    espn_id = db.Column(db.String(50), unique=True, index=True)

    # Timestamps
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Indexes
    __table_args__ = (
        db.Index("idx_game_season_week", "season", "week"),
        db.Index("idx_game_start_time", "start_time"),
        db.Index("idx_game_season_status", "season", "status"),
        db.CheckConstraint("home_team != away_team", name="different_teams"),
        db.CheckConstraint("week >= 1", name="positive_week"),
    )

    def __repr__(self):
        return f"<Game {self.away_team} @ {self.home_team} {self.season} Week {self.week}>"

    @property
    def start_time_utc(self):
        """Start time as an aware UTC datetime (SQLite returns naive values)"""
        return ensure_utc(self.start_time)

    @property
    def is_final(self):
        return self.status == GameStatus.FINAL

    @property
    def has_final_score(self):
        """Final with both scores recorded"""
        return (
            self.is_final and self.home_score is not None and self.away_score is not None
        )

    def advance_status(self, new_status):
        """
        Move the game forward in its lifecycle.

        Status only ever moves scheduled -> live -> final; an older status
        reported upstream is ignored. Returns True when the status changed.
        """
        new_status = GameStatus(new_status)
        current = GameStatus(self.status) if self.status else None

        if current is None or new_status.rank > current.rank:
            self.status = new_status
            return True

        if new_status.rank < current.rank:
            logger.warning(
                f"Ignoring status regression {current.value} -> {new_status.value} "
                f"for game {self.espn_id or self.id}"
            )
        return False

    def set_start_time(self, start_time):
        """
        Set the kickoff time once. Returns True when it was set.

        An existing start time is never overwritten.
        """
        start_time = ensure_utc(start_time)
        if self.start_time is None:
            self.start_time = start_time
            return True

        if start_time is not None and start_time != self.start_time_utc:
            logger.info(
                f"Keeping start time {self.start_time_utc.isoformat()} for game "
                f"{self.espn_id or self.id} (upstream reports {start_time.isoformat()})"
            )
        return False

    def update_score(self, home_score, away_score, status):
        """Apply a score update. Returns True when anything changed."""
        changed = self.advance_status(status)

        if home_score is not None and home_score != self.home_score:
            self.home_score = home_score
            changed = True
        if away_score is not None and away_score != self.away_score:
            self.away_score = away_score
            changed = True

        return changed

    @staticmethod
    def get_games_for_week(season, week):
        """Get all games for a specific week ordered by kickoff"""
        return (
            Game.query.filter_by(season=str(season), week=week)
            .order_by(Game.start_time, Game.home_team)
            .all()
        )

    @staticmethod
    def get_games_for_season(season):
        return (
            Game.query.filter_by(season=str(season))
            .order_by(Game.week, Game.start_time)
            .all()
        )

    def to_dict(self):
        """Convert game to dictionary for API responses"""
        return {
            "id": self.id,
            "espn_id": self.espn_id,
            "season": self.season,
            "week": self.week,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "start_time": (
                self.start_time_utc.isoformat() if self.start_time else None
            ),
            "status": GameStatus(self.status).value if self.status else None,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "is_snf": bool(self.is_snf),
            "is_mnf": bool(self.is_mnf),
            "spread": self.spread,
            "over_under": self.over_under,
        }
