import logging
import os

from flask import Flask, jsonify, request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
socketio = SocketIO()
cache = Cache()
migrate = Migrate()


def get_real_ip():
    """
    Get the real client IP address, accounting for reverse proxies.
    Checks X-Forwarded-For, X-Real-IP, and falls back to remote_addr.
    """
    if request.headers.get("X-Forwarded-For"):
        # Leftmost entry is the original client
        return request.headers.get("X-Forwarded-For").split(",")[0].strip()
    if request.headers.get("X-Real-IP"):
        return request.headers.get("X-Real-IP")
    return get_remote_address()


# Use Redis in production for shared rate limiting across multiple workers
limiter_storage_uri = "memory://"
redis_url = os.environ.get("REDIS_URL") or os.environ.get("CACHE_REDIS_URL")
if redis_url:
    try:
        import redis

        redis_client = redis.Redis.from_url(redis_url)
        redis_client.ping()
        limiter_storage_uri = redis_url
        logger.info(f"Rate limiter using Redis storage at {redis_url}")
    except (ImportError, redis.exceptions.ConnectionError) as e:
        logger.warning(f"Redis not available for rate limiter, using memory storage: {e}")

limiter = Limiter(
    key_func=get_real_ip,
    default_limits=["10000 per day", "1000 per hour"],
    storage_uri=limiter_storage_uri,
)


def create_app(config_name=None):
    app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    # Initialize extensions
    db.init_app(app)

    allowed_origins = app.config.get("SOCKETIO_CORS_ORIGINS", "*")
    if allowed_origins == "*" and not (app.config.get("DEBUG") or app.testing):
        allowed_origins = os.environ.get(
            "ALLOWED_ORIGINS", "https://yourdomain.com,https://www.yourdomain.com"
        ).split(",")

    # Redis message queue lets every worker broadcast to every client
    message_queue = None
    redis_url = app.config.get("CACHE_REDIS_URL") or os.environ.get("REDIS_URL")
    if redis_url and app.config.get("CACHE_TYPE") == "RedisCache":
        message_queue = redis_url

    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE", "eventlet"),
        ping_timeout=60,
        ping_interval=25,
        message_queue=message_queue,
    )
    cache.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    from pickem.routes.api import bp as api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    from pickem.routes.admin import bp as admin_bp

    app.register_blueprint(admin_bp, url_prefix="/admin")

    register_error_handlers(app)

    from pickem.utils.logging_config import setup_logging

    setup_logging(app)

    with app.app_context():
        db.create_all()

    # Initialize and start background scheduler
    if not app.config.get("TESTING", False):
        from pickem.services.scheduler_service import scheduler_service

        scheduler_service.init_app(app)

    from pickem import socketio_handlers  # noqa: F401 - imported for side effects

    return app


def register_error_handlers(app):
    """Register global JSON error handlers"""

    @app.after_request
    def after_request(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if not app.config.get("DEBUG"):
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response

    from pickem.exceptions import (
        GameNotFound,
        LeagueNotFound,
        WeekFinalizedError,
        WeekNotFound,
    )

    http_messages = {
        400: "Bad request",
        403: "Access forbidden",
        404: "Resource not found",
        405: "Method not allowed",
        429: "Too many requests",
    }

    def http_error(error):
        if error.code == 400:
            app.logger.warning(f"400 Bad Request: {error} - {request.method} {request.path}")
        return jsonify({"error": http_messages[error.code]}), error.code

    for code in http_messages:
        app.register_error_handler(code, http_error)

    # Domain errors carry a message naming the missing league, week or game
    domain_statuses = {
        LeagueNotFound: 404,
        WeekNotFound: 404,
        GameNotFound: 404,
        WeekFinalizedError: 409,
    }

    def domain_error(error):
        return jsonify({"error": str(error)}), domain_statuses[type(error)]

    for exc_class in domain_statuses:
        app.register_error_handler(exc_class, domain_error)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500


from pickem import models  # noqa: F401, E402 - imported for model registration
