import logging

from pickem.utils.logging_config import ColoredFormatter, RequestContextFilter, league_logger


def test_league_logger_appends_context(caplog):
    caplog.set_level(logging.INFO)

    league_logger("pickem.test", "lg1", "2025-W01").info("Week finalized")
    league_logger("pickem.test", "lg1").info("Season rebuilt")

    assert "Week finalized [league=lg1 week=2025-W01]" in caplog.text
    assert "Season rebuilt [league=lg1]" in caplog.text


def test_colored_formatter_restores_level_name():
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)
    out = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert "\033[33mWARNING" in out
    assert record.levelname == "WARNING"


def test_request_filter_outside_request():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    assert RequestContextFilter().filter(record) is True
    assert (record.method, record.path, record.actor) == ("-", "-", "-")


def test_request_filter_inside_request(app):
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    with app.test_request_context("/admin/scheduler", headers={"X-Admin-Actor": "ops"}):
        RequestContextFilter().filter(record)
    assert (record.method, record.path, record.actor) == ("GET", "/admin/scheduler", "ops")
