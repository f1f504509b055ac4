import os
import secrets
import warnings

import redis
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


def env_bool(name, default):
    return os.environ.get(name, str(default)).lower() in ("true", "on", "1")


def env_int(name, default):
    return int(os.environ.get(name) or default)


def database_uri_from_env():
    """DATABASE_URL wins; otherwise DB_TYPE=postgresql builds one from DB_*, else local SQLite"""
    if os.environ.get("DATABASE_URL"):
        return os.environ["DATABASE_URL"]

    if os.environ.get("DB_TYPE", "sqlite").lower() != "postgresql":
        return "sqlite:///" + os.path.join(basedir, "pickem.db")

    user = os.environ.get("DB_USER") or "pickem_user"
    password = os.environ.get("DB_PASSWORD") or "pickem_password"
    host = os.environ.get("DB_HOST") or "localhost"
    port = os.environ.get("DB_PORT") or "5432"
    name = os.environ.get("DB_NAME") or "pickem_db"
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{name}"


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY")
    if not SECRET_KEY:
        SECRET_KEY = secrets.token_urlsafe(32)
        warnings.warn(
            "SECRET_KEY not set! Using auto-generated key. "
            "Run 'python3 generate_secrets.py' to generate one.",
            UserWarning,
        )

    def __init__(self):
        self.SQLALCHEMY_DATABASE_URI = database_uri_from_env()

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Results provider (The Odds API)
    ODDS_API_BASE_URL = os.environ.get("ODDS_API_BASE_URL") or "https://api.the-odds-api.com/v4"
    ODDS_API_KEY = os.environ.get("ODDS_API_KEY")
    ODDS_SPORT_KEY = os.environ.get("ODDS_SPORT_KEY", "americanfootball_ncaaf")
    ODDS_API_TIMEOUT = env_int("ODDS_API_TIMEOUT", 30)
    RESULTS_SHORT_LOOKBACK_DAYS = env_int("RESULTS_SHORT_LOOKBACK_DAYS", 3)
    RESULTS_LONG_LOOKBACK_DAYS = env_int("RESULTS_LONG_LOOKBACK_DAYS", 14)

    # League defaults
    DEFAULT_LEAGUE_TIMEZONE = os.environ.get("DEFAULT_LEAGUE_TIMEZONE", "America/New_York")
    DEFAULT_POINTS_PER_CORRECT = env_int("DEFAULT_POINTS_PER_CORRECT", 1)
    GAMES_PER_WEEK = env_int("GAMES_PER_WEEK", 6)

    # Admin endpoints are disabled while this is unset
    ADMIN_API_TOKEN = os.environ.get("ADMIN_API_TOKEN")

    # Caching
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "RedisCache")
    CACHE_DEFAULT_TIMEOUT = env_int("CACHE_DEFAULT_TIMEOUT", 300)
    CACHE_REDIS_URL = os.environ.get("CACHE_REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = "pickem:"

    # Background jobs
    SCHEDULER_ENABLED = env_bool("SCHEDULER_ENABLED", True)
    RESULTS_POLL_MINUTES = env_int("RESULTS_POLL_MINUTES", 3)
    WEEK_ADVANCE_DAY = os.environ.get("WEEK_ADVANCE_DAY", "sun")
    WEEK_ADVANCE_HOUR = env_int("WEEK_ADVANCE_HOUR", 9)

    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "eventlet")

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = env_bool("LOG_TO_CONSOLE", True)
    LOG_TO_FILE = env_bool("LOG_TO_FILE", True)
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    def __init__(self):
        super().__init__()
        # No local Redis: keep working on SimpleCache
        try:
            redis.Redis.from_url(self.CACHE_REDIS_URL).ping()
        except redis.exceptions.ConnectionError:
            self.CACHE_TYPE = "SimpleCache"
            warnings.warn(
                "Redis not available, falling back to SimpleCache for development.",
                UserWarning,
            )


class ProductionConfig(Config):
    DEBUG = False

    def __init__(self):
        super().__init__()
        for name in ("SECRET_KEY", "ADMIN_API_TOKEN", "ODDS_API_KEY"):
            if not os.environ.get(name):
                warnings.warn(f"PRODUCTION WARNING: {name} not set!", UserWarning)


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CACHE_TYPE = "SimpleCache"
    SCHEDULER_ENABLED = False
    SOCKETIO_ASYNC_MODE = "threading"
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False
    ODDS_API_KEY = "test-key"
    ADMIN_API_TOKEN = "test-admin-token"
    RATELIMIT_ENABLED = False

    def __init__(self):
        # In-memory database whatever the environment says
        pass


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
