"""Tests for Fairlx structured logging."""

import logging

import structlog
from structlog.testing import capture_logs

from fairlx.logging import (
    REDACTED,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    redact_sensitive,
)


class TestRedaction:
    def test_top_level_keys(self):
        event = redact_sensitive(
            None,
            "info",
            {"event": "webhook registered", "secret": "shh", "Authorization": "Bearer x"},
        )

        assert event == {
            "event": "webhook registered",
            "secret": REDACTED,
            "Authorization": REDACTED,
        }

    def test_nested_headers(self):
        event = redact_sensitive(
            None,
            "info",
            {
                "event": "delivery sent",
                "headers": {"X-Fairlx-Signature": "abc123", "X-Fairlx-Event": "TASK_CREATED"},
            },
        )

        assert event["headers"] == {
            "X-Fairlx-Signature": REDACTED,
            "X-Fairlx-Event": "TASK_CREATED",
        }

    def test_other_values_untouched(self):
        event = {"event": "retry scheduled", "webhook_id": "whk_1", "attempts": 2}
        assert redact_sensitive(None, "info", dict(event)) == event


class TestConfigureLogging:
    def teardown_method(self):
        configure_logging(level="INFO", format="json")

    def test_reconfigure_replaces_own_handler(self):
        root = logging.getLogger()
        configure_logging(level="INFO", format="json")
        before = len(root.handlers)

        configure_logging(level="DEBUG", format="text")

        assert len(root.handlers) == before
        assert root.level == logging.DEBUG

    def test_json_output_includes_stdlib_records(self, capsys):
        configure_logging(level="INFO", format="json")

        logging.getLogger("fairlx.webhooks.dispatcher").warning(
            "Webhook %s permanently failed after %d attempts", "whk_1", 3
        )

        out = capsys.readouterr().out
        assert "Webhook whk_1 permanently failed after 3 attempts" in out
        assert '"logger": "fairlx.webhooks.dispatcher"' in out

    def test_json_output_redacts_structured_secret(self, capsys):
        configure_logging(level="INFO", format="json")

        get_logger("fairlx.test").info("webhook registered", webhook_id="whk_1", secret="shh")

        out = capsys.readouterr().out
        assert "whk_1" in out
        assert "shh" not in out
        assert REDACTED in out


class TestGetLogger:
    def test_structured_fields_are_captured(self):
        with capture_logs() as logs:
            get_logger("fairlx.test").warning("delivery failed", status=503)

        assert logs == [{"event": "delivery failed", "status": 503, "log_level": "warning"}]


class TestContextBinding:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind(self):
        bind_context(project_id="prj_1", request_id="req_1")

        assert structlog.contextvars.get_contextvars() == {
            "project_id": "prj_1",
            "request_id": "req_1",
        }

    def test_clear(self):
        bind_context(project_id="prj_1")
        clear_context()

        assert structlog.contextvars.get_contextvars() == {}
