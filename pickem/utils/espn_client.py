import logging
import time
from functools import wraps

import requests

from pickem.utils.normalizers import normalize_odds, normalize_scoreboard

logger = logging.getLogger(__name__)

REGULAR_SEASON = 2


class UpstreamFetchError(Exception):
    """The sports data provider could not be reached or returned an error"""


class ConfigurationError(Exception):
    """Required settings are missing"""


def rate_limit_decorator(max_retries=3, base_delay=1.0, backoff_factor=2.0):
    """
    Decorator to handle API rate limiting with exponential backoff
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return func(self, *args, **kwargs)

                except requests.exceptions.HTTPError as e:
                    status_code = e.response.status_code if e.response is not None else 0
                    retryable = status_code == 429 or status_code >= 500
                    if not retryable or attempt == max_retries - 1:
                        raise UpstreamFetchError(
                            f"HTTP {status_code} from {e.request.url if e.request else 'provider'}"
                        ) from e

                    delay = base_delay * (backoff_factor**attempt)
                    if status_code == 429:
                        try:
                            delay = float(e.response.headers.get("Retry-After", delay))
                        except ValueError:
                            pass  # HTTP-date form, keep the backoff delay
                    logger.warning(
                        f"HTTP {status_code}. Waiting {delay}s before retry {attempt + 1}/{max_retries}"
                    )
                    self._sleep(delay)

                except requests.exceptions.RequestException as e:
                    if attempt == max_retries - 1:
                        raise UpstreamFetchError(f"Request failed: {e}") from e

                    delay = base_delay * (backoff_factor**attempt)
                    logger.warning(
                        f"Request failed: {e}. Waiting {delay}s before retry {attempt + 1}/{max_retries}"
                    )
                    self._sleep(delay)

            raise UpstreamFetchError(f"Max retries ({max_retries}) exceeded")

        return wrapper

    return decorator


class ESPNClient:
    """
    Sports data provider backed by ESPN's public NFL API.

    Exposes fetch_schedule, fetch_scores and fetch_odds; every call is paced
    and retried on rate limiting and server errors.
    """

    def __init__(self, api_base_url=None, core_api_url=None, timeout=30, sleep=time.sleep):
        self.api_base_url = api_base_url
        self.core_api_url = core_api_url
        self.timeout = timeout
        self._sleep = sleep
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "NFL-Pickem-Sync/1.0"})

        # Rate limiting configuration
        self.last_request_time = 0
        self.min_request_interval = 0.5  # Minimum 500ms between requests
        self.max_requests_per_minute = 60
        self.request_timestamps = []

    def check_configuration(self):
        missing = [
            name
            for name, value in (
                ("NFL_API_BASE_URL", self.api_base_url),
                ("NFL_CORE_API_URL", self.core_api_url),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing provider configuration: {', '.join(missing)}")

    def _enforce_rate_limit(self):
        """Enforce rate limiting before making requests"""
        current_time = time.time()

        # Remove timestamps older than 1 minute
        self.request_timestamps = [
            ts for ts in self.request_timestamps if current_time - ts < 60
        ]

        if len(self.request_timestamps) >= self.max_requests_per_minute:
            sleep_time = 60 - (current_time - self.request_timestamps[0])
            if sleep_time > 0:
                logger.info(f"Rate limit reached. Sleeping for {sleep_time:.1f}s")
                self._sleep(sleep_time)
                self.request_timestamps = []

        time_since_last = current_time - self.last_request_time
        if time_since_last < self.min_request_interval:
            self._sleep(self.min_request_interval - time_since_last)

        self.last_request_time = time.time()
        self.request_timestamps.append(self.last_request_time)

    @rate_limit_decorator(max_retries=3, base_delay=2.0)
    def _get_json(self, url, params=None):
        """GET a JSON document with pacing and retry"""
        self._enforce_rate_limit()

        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _fetch_scoreboard(self, season, week):
        self.check_configuration()
        params = {
            "seasontype": REGULAR_SEASON,
            "week": int(week),
            "dates": str(season),
            "limit": 100,
        }
        data = self._get_json(f"{self.api_base_url}/scoreboard", params=params)
        return normalize_scoreboard(data, season=str(season), week=int(week))

    def fetch_schedule(self, season, week):
        """Full schedule for a week: games, kickoff times, teams"""
        games = self._fetch_scoreboard(season, week)
        logger.info(f"Fetched {len(games)} scheduled games for {season} week {week}")
        return games

    def fetch_scores(self, season, week):
        """Status and score of every game in a week"""
        games = self._fetch_scoreboard(season, week)
        logger.info(f"Fetched scores for {len(games)} games for {season} week {week}")
        return games

    def fetch_odds(self, event_id):
        """
        Spread and over/under for one game, or None if no line is posted.
        """
        self.check_configuration()
        url = f"{self.core_api_url}/events/{event_id}/competitions/{event_id}/odds"
        try:
            data = self._get_json(url)
        except UpstreamFetchError as e:
            # Odds are not published for every game
            if isinstance(e.__cause__, requests.exceptions.HTTPError):
                response = e.__cause__.response
                if response is not None and response.status_code == 404:
                    return None
            raise

        return normalize_odds(data)
