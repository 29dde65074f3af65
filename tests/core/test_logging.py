"""Tests for linkspine.core.logging."""

import structlog
from structlog.testing import capture_logs

from linkspine.core.logging import LogContext, bind_context, clear_context, configure_logging, get_logger


def test_log_context_binds_and_unbinds():
    with LogContext(source_id=42, link_kind="partlists"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["source_id"] == 42
        assert bound["link_kind"] == "partlists"
    assert "source_id" not in structlog.contextvars.get_contextvars()


def test_clear_context():
    bind_context(request_id="r-1")
    clear_context()
    assert structlog.contextvars.get_contextvars() == {}


def test_get_logger_emits_events():
    with capture_logs() as logs:
        get_logger("linkspine.test").warning("links_checked", count=3)
    assert logs == [{"event": "links_checked", "logger": "linkspine.test", "count": 3, "log_level": "warning"}]


def test_json_output_goes_to_stderr(capsys):
    configure_logging(level="INFO", json_format=True)
    try:
        get_logger("linkspine.test").info("links_resolved", count=2)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert '"event": "links_resolved"' in captured.err
        assert '"service.name": "linkspine"' in captured.err
    finally:
        configure_logging(level="WARNING", json_format=False)
