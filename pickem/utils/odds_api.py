import logging
import time
from functools import wraps

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.the-odds-api.com/v4"
RETRYABLE_STATUSES = (429, 500, 502, 503, 504)
MAX_RETRY_AFTER = 60.0


def rate_limit_decorator(max_retries=3, base_delay=1.0, backoff_factor=2.0):
    """
    Retry a request on 429, 5xx and connection errors with exponential backoff

    A 429 honours a numeric Retry-After header, capped at MAX_RETRY_AFTER
    seconds. Raises RetryError once every attempt came back retryable.
    """

    def delay_for(attempt, response=None):
        default = base_delay * (backoff_factor**attempt)
        if response is not None and response.status_code == 429:
            # Retry-After may be an HTTP date; only honour the seconds form
            try:
                retry_after = float(response.headers.get("Retry-After", default))
            except (TypeError, ValueError):
                return default
            return min(max(retry_after, 0.0), max(default, MAX_RETRY_AFTER))
        return default

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            for attempt in range(max_retries):
                last_attempt = attempt == max_retries - 1
                try:
                    response = func(self, *args, **kwargs)
                except requests.exceptions.RequestException as e:
                    if last_attempt:
                        raise
                    delay = delay_for(attempt)
                    logger.warning(
                        f"Request failed: {e}. Retry {attempt + 1}/{max_retries} in {delay}s"
                    )
                    time.sleep(delay)
                    continue

                status = getattr(response, "status_code", None)
                if status not in RETRYABLE_STATUSES:
                    return response

                delay = delay_for(attempt, response)
                logger.warning(
                    f"Provider answered {status}. Retry {attempt + 1}/{max_retries} in {delay}s"
                )
                if not last_attempt:
                    time.sleep(delay)

            raise requests.exceptions.RetryError(f"Max retries ({max_retries}) exceeded")

        return wrapper

    return decorator


class OddsApiClient:
    """
    Read-only client for The Odds API scores endpoint

    Every public method is fail-soft: provider problems are logged and
    surface as an empty result so a polling cycle never crashes on them.
    """

    def __init__(
        self,
        api_key=None,
        base_url=None,
        timeout=30,
        min_request_interval=0.5,
        session=None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "Pickem-League/1.0"})

        # Rate limiting configuration
        self.request_count = 0
        self.last_request_time = 0
        self.min_request_interval = min_request_interval
        self.max_requests_per_minute = 30  # Free tier is stingy
        self.request_timestamps = []

    @classmethod
    def from_config(cls, config):
        """Build a client from a Flask config mapping"""
        return cls(
            api_key=config.get("ODDS_API_KEY"),
            base_url=config.get("ODDS_API_BASE_URL"),
            timeout=config.get("ODDS_API_TIMEOUT", 30),
        )

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
                time.sleep(sleep_time)
                self.request_timestamps = []

        # Enforce minimum interval between requests
        time_since_last = current_time - self.last_request_time
        if time_since_last < self.min_request_interval:
            time.sleep(self.min_request_interval - time_since_last)

        self.last_request_time = time.time()
        self.request_timestamps.append(self.last_request_time)
        self.request_count += 1

    @rate_limit_decorator(max_retries=3, base_delay=2.0)
    def _make_api_request(self, url, params=None):
        """Make API request with rate limiting and retry logic

        4xx responses are returned to the caller untouched; 429 and 5xx are
        retried by the decorator.
        """
        self._enforce_rate_limit()
        return self.session.get(url, params=params, timeout=self.timeout)

    def _fetch(self, url, params):
        try:
            response = self._make_api_request(url, params=params)
        except Exception as e:
            logger.warning(f"Scores request failed: {e}")
            return None, None
        return response.status_code, response

    def list_scores(self, sport_key, days_from=None, event_ids=None):
        """
        Fetch score records for a sport

        Args:
            sport_key: provider sport key, e.g. "americanfootball_ncaaf"
            days_from: lookback window in days (provider accepts 1-3 on some plans)
            event_ids: optional provider event ids to restrict the query

        Returns:
            list of raw score records (dicts), [] on any failure
        """
        if not self.api_key:
            logger.warning("ODDS_API_KEY not set; skipping scores fetch")
            return []

        url = f"{self.base_url}/sports/{sport_key}/scores"
        params = {"apiKey": self.api_key, "dateFormat": "iso"}
        if days_from:
            params["daysFrom"] = days_from
        if event_ids:
            params["eventIds"] = list(event_ids)

        status, response = self._fetch(url, params)

        # The provider rejects daysFrom combined with eventIds on some plans
        if status == 422 and event_ids and days_from:
            logger.info("Provider rejected daysFrom with eventIds, retrying without it")
            params.pop("daysFrom", None)
            status, response = self._fetch(url, params)

        if response is None:
            return []

        if not 200 <= status < 300:
            logger.warning(f"Scores request for {sport_key} returned HTTP {status}")
            return []

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Scores response for {sport_key} was not valid JSON: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Unexpected scores payload type for {sport_key}: {type(data).__name__}")
            return []

        remaining = response.headers.get("x-requests-remaining")
        if remaining is not None:
            logger.debug(f"Odds API requests remaining: {remaining}")

        return data

    def get_rate_limit_status(self):
        """Get current rate limit status"""
        current_time = time.time()
        self.request_timestamps = [
            ts for ts in self.request_timestamps if current_time - ts < 60
        ]

        return {
            "total_requests": self.request_count,
            "requests_last_minute": len(self.request_timestamps),
            "max_requests_per_minute": self.max_requests_per_minute,
            "time_since_last_request": (
                current_time - self.last_request_time if self.last_request_time else 0
            ),
            "min_request_interval": self.min_request_interval,
        }
