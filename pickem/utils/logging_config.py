"""
Logging setup for the Pick'em league service

Console output plus rotating files: everything, errors only, and the
background jobs (results polling and weekly advance) in their own file.
"""

import logging
import logging.handlers
import os

from flask import has_request_context, request

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers whose records also go to scheduler.log
BACKGROUND_LOGGERS = ("pickem.services.scheduler_service", "pickem.services.triggers")

QUIET_LOGGERS = (
    "werkzeug",
    "urllib3",
    "requests",
    "flask_limiter",
    "engineio",
    "socketio",
    "apscheduler",
)


class RequestContextFilter(logging.Filter):
    """Attach the request line and admin actor, or placeholders outside requests"""

    def filter(self, record):
        if has_request_context():
            record.method = request.method
            record.path = request.path
            record.actor = request.headers.get("X-Admin-Actor", "-")
        else:
            record.method = "-"
            record.path = "-"
            record.actor = "-"
        return True


class ColoredFormatter(logging.Formatter):
    """Level names colored for a terminal"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        # Other handlers share the record, so restore the plain level name
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _rotating_handler(path, level, fmt, max_mb, backups):
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_mb * 1024 * 1024, backupCount=backups
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    handler.addFilter(RequestContextFilter())
    return handler


def setup_logging(app):
    """
    Configure the root logger from LOG_LEVEL, LOG_TO_CONSOLE, LOG_TO_FILE and LOG_DIR

    Safe to call once per app; existing root handlers are replaced.
    """
    log_level = getattr(logging, app.config.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    log_dir = app.config.get("LOG_DIR", "logs")
    log_to_file = app.config.get("LOG_TO_FILE", True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if app.config.get("LOG_TO_CONSOLE", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        if app.debug:
            console_handler.setFormatter(
                ColoredFormatter(f"{LOG_FORMAT} [%(filename)s:%(lineno)d]", datefmt="%H:%M:%S")
            )
        else:
            console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(console_handler)

    if log_to_file:
        os.makedirs(log_dir, exist_ok=True)

        root_logger.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "pickem.log"),
                log_level,
                f"{LOG_FORMAT} [%(method)s %(path)s actor=%(actor)s]",
                max_mb=10,
                backups=5,
            )
        )
        root_logger.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "errors.log"),
                logging.ERROR,
                f"{LOG_FORMAT} [%(pathname)s:%(lineno)d] [%(method)s %(path)s]",
                max_mb=5,
                backups=3,
            )
        )

        background_handler = _rotating_handler(
            os.path.join(log_dir, "scheduler.log"), logging.INFO, LOG_FORMAT, max_mb=5, backups=3
        )
        for name in BACKGROUND_LOGGERS:
            logging.getLogger(name).addHandler(background_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.info(f"Logging configured - Level: {logging.getLevelName(log_level)}")


class LeagueLogAdapter(logging.LoggerAdapter):
    """Suffix messages with the league and week they concern"""

    def process(self, msg, kwargs):
        context = " ".join(f"{k}={v}" for k, v in self.extra.items() if v is not None)
        return (f"{msg} [{context}]" if context else msg), kwargs


def league_logger(name, league_id, week_id=None):
    return LeagueLogAdapter(logging.getLogger(name), {"league": league_id, "week": week_id})
