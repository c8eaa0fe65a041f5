import os
import secrets
import warnings

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


class Config:
    _secret_key = os.environ.get("SECRET_KEY")

    if not _secret_key:
        _secret_key = secrets.token_urlsafe(32)
        warnings.warn(
            "SECRET_KEY not set! Using auto-generated key. "
            "Set SECRET_KEY in .env to keep it stable across restarts.",
            UserWarning,
        )

    SECRET_KEY = _secret_key

    # Database configuration - built from environment at initialization
    def __init__(self):
        """Initialize configuration with dynamic database URI"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """Build database URI from environment variables"""
        database_url = os.environ.get("DATABASE_URL")

        if database_url:
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "nfl_pickem_db"
            db_user = os.environ.get("DB_USER") or "nfl_user"
            db_password = os.environ.get("DB_PASSWORD") or "nfl_password"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "pickem.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sports data provider
    NFL_API_BASE_URL = (
        os.environ.get("NFL_API_BASE_URL")
        or "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
    )
    NFL_CORE_API_URL = (
        os.environ.get("NFL_CORE_API_URL")
        or "https://sports.core.api.espn.com/v2/sports/football/leagues/nfl"
    )
    NFL_API_TIMEOUT = int(os.environ.get("NFL_API_TIMEOUT") or 30)

    # Cron trigger protection; unset means trigger endpoints are open
    CRON_SECRET = os.environ.get("CRON_SECRET")

    # Season override ("2025"); derived from the calendar when unset
    NFL_SEASON = os.environ.get("NFL_SEASON")
    TIMEZONE = os.environ.get("TIMEZONE", "America/New_York")

    # Sync policy
    REGULAR_SEASON_WEEKS = int(os.environ.get("REGULAR_SEASON_WEEKS") or 18)
    SCORE_SYNC_WINDOW_HOURS = float(os.environ.get("SCORE_SYNC_WINDOW_HOURS") or 4)
    SCHEDULE_SYNC_HORIZON_DAYS = float(
        os.environ.get("SCHEDULE_SYNC_HORIZON_DAYS") or 12
    )
    ODDS_SYNC_INTERVAL_MINUTES = float(
        os.environ.get("ODDS_SYNC_INTERVAL_MINUTES") or 60
    )
    SCHEDULE_SYNC_WEEK_DELAY = float(
        os.environ.get("SCHEDULE_SYNC_WEEK_DELAY") or 0.5
    )  # seconds

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    MANUAL_SYNC_RATE_LIMIT = os.environ.get("MANUAL_SYNC_RATE_LIMIT", "10 per minute")

    # Scheduler configuration
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "True").lower() == "true"

    # Logging configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = os.environ.get("LOG_TO_CONSOLE", "True").lower() == "true"
    LOG_TO_FILE = os.environ.get("LOG_TO_FILE", "True").lower() == "true"
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Environment detection
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration with helpful defaults"""

    DEBUG = True
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "False").lower() == "true"


class ProductionConfig(Config):
    """Production configuration with security focus"""

    DEBUG = False

    def __init__(self):
        super().__init__()

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "PRODUCTION WARNING: SECRET_KEY not explicitly set!",
                UserWarning,
            )
        if not os.environ.get("CRON_SECRET"):
            warnings.warn(
                "PRODUCTION WARNING: CRON_SECRET not set, "
                "sync trigger endpoints accept unauthenticated requests.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    DEBUG = False
    SCHEDULER_ENABLED = False
    RATELIMIT_ENABLED = False
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False
    CRON_SECRET = None
    NFL_SEASON = None
    SCHEDULE_SYNC_WEEK_DELAY = 0

    def _build_database_uri(self):
        return "sqlite:///:memory:"


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
