"""
Unit tests for logging configuration.
"""

import json
import logging
import logging.handlers
import sys

import pytest

from azac.core.logging_config import (
    JSONFormatter,
    SensitiveDataFilter,
    _parse_size,
    clear_correlation_id,
    correlation_id,
    get_logger,
    log_with_context,
    set_correlation_id,
    setup_logging,
)


def _record(msg: str, level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back the way it was."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_default_level_is_warning(self):
        """Test the default level keeps command output quiet."""
        setup_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_console_handler_writes_to_stderr(self):
        """Test log records go to stderr, never stdout."""
        setup_logging(level="INFO")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr

    def test_json_format(self):
        """Test selecting the JSON formatter."""
        setup_logging(format_type="json")

        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_log_file(self, tmp_path):
        """Test adding a rotating file handler."""
        log_file = tmp_path / "logs" / "azac.log"
        setup_logging(level="DEBUG", log_file=str(log_file), rotation_size="1KB", rotation_count=2)

        file_handlers = [
            handler for handler in logging.getLogger().handlers
            if isinstance(handler, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 2
        assert log_file.parent.exists()

        for handler in file_handlers:
            handler.close()

    def test_setup_logging_with_module_levels(self):
        """Test setting up logging with per-module log levels."""
        setup_logging(level="WARNING", module_levels={"azac.azcli": "DEBUG"})

        assert get_logger("azac.azcli").isEnabledFor(logging.DEBUG)
        assert not get_logger("azac.services.other").isEnabledFor(logging.INFO)

        logging.getLogger("azac.azcli").setLevel(logging.NOTSET)


class TestJSONFormatter:
    """Test suite for JSON formatter."""

    def test_format_basic_message(self):
        """Test formatting a basic log message."""
        data = json.loads(JSONFormatter().format(_record("Test message")))

        assert data["level"] == "INFO"
        assert data["module"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert "correlation_id" not in data
        assert "worker" not in data

    def test_format_import_worker(self):
        """Test records from import workers name the worker thread."""
        record = _record("Writing")
        record.threadName = "azac-import_2"

        data = json.loads(JSONFormatter().format(record))

        assert data["worker"] == "azac-import_2"

    def test_format_with_correlation_id(self):
        """Test formatting with the key being imported as correlation ID."""
        set_correlation_id("Db:Password")
        try:
            data = json.loads(JSONFormatter().format(_record("Writing")))

            assert data["correlation_id"] == "Db:Password"
        finally:
            clear_correlation_id()

    def test_format_with_context(self):
        """Test extra context is emitted as a nested object."""
        record = _record("Failed")
        record.context = {"key": "Db:Host"}

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"key": "Db:Host"}

    def test_format_with_exception(self):
        """Test formatting with exception info."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError" in data["exception"]
        assert "Test error" in data["exception"]


class TestSensitiveDataFilter:
    """Test suite for sensitive data filter."""

    def test_redact_az_value_argument(self):
        """Test a secret passed to az --value never reaches the logs."""
        record = _record("Running az keyvault secret set --name dbPassword --value s3cr3t")

        SensitiveDataFilter().filter(record)

        assert "s3cr3t" not in record.msg
        assert "--value ***REDACTED***" in record.msg

    def test_redact_password(self):
        """Test redacting password."""
        record = _record('password="secret123"')

        SensitiveDataFilter().filter(record)

        assert "secret123" not in record.msg
        assert "***REDACTED***" in record.msg

    def test_redact_connection_string_secret(self):
        """Test redacting the secret of an App Configuration connection string."""
        record = _record("Endpoint=https://store.azconfig.io;Id=abc;Secret=c2VjcmV0")

        SensitiveDataFilter().filter(record)

        assert "c2VjcmV0" not in record.msg
        assert "Id=abc" in record.msg

    def test_redact_inline_az_value_argument(self):
        """Test the --value=... form is redacted too."""
        record = _record("Running az appconfig kv set --key=api:A --value=-Xmx512m --yes")

        SensitiveDataFilter().filter(record)

        assert "-Xmx512m" not in record.msg
        assert "--value=***REDACTED*** --yes" in record.msg

    def test_plain_message_untouched(self):
        """Test messages without secrets pass unchanged."""
        record = _record("Set 'api:Db:Host'")

        assert SensitiveDataFilter().filter(record) is True
        assert record.msg == "Set 'api:Db:Host'"


class TestCorrelationId:
    """Test suite for correlation ID management."""

    def test_set_and_clear_correlation_id(self):
        """Test setting and clearing correlation ID."""
        set_correlation_id("test-id-123")
        assert correlation_id.get() == "test-id-123"

        clear_correlation_id()
        assert correlation_id.get() is None

    def test_log_with_context(self, caplog):
        """Test logging with context attaches it to the record."""
        logger = get_logger("azac.test")

        with caplog.at_level(logging.INFO, logger="azac.test"):
            log_with_context(logger, logging.INFO, "Imported", key="Db:Host")

        assert caplog.records[-1].context == {"key": "Db:Host"}


class TestParseSize:
    """Test suite for size parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("100", 100),
        ("512B", 512),
        ("1KB", 1024),
        ("10MB", 10 * 1024 ** 2),
        ("1.5GB", int(1.5 * 1024 ** 3)),
        (" 2 mb ", 2 * 1024 ** 2),
    ])
    def test_parse_sizes(self, text, expected):
        """Test parsing sizes with and without units."""
        assert _parse_size(text) == expected
