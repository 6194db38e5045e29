"""Tests for the logger module."""

from unittest.mock import MagicMock

from reincarnation.logger import Logger, get_logger, set_logger
from reincarnation.validation import ValidationResult


def printed_text(console: MagicMock) -> str:
    return " ".join(str(call.args[0]) for call in console.print.call_args_list if call.args)


class TestLogger:
    """Tests for Logger."""

    def test_info_prints_with_timestamp(self):
        console = MagicMock()
        Logger(console=console).info("Configuration saved")
        text = printed_text(console)
        assert "Configuration saved" in text
        assert text.startswith("[")

    def test_quiet_skips_info_and_success(self):
        console = MagicMock()
        logger = Logger(console=console, quiet=True)
        logger.info("hidden")
        logger.success("hidden")
        console.print.assert_not_called()

    def test_quiet_keeps_warnings_and_errors(self):
        console = MagicMock()
        logger = Logger(console=console, quiet=True)
        logger.warn("depth reset")
        logger.error("corrupt file")
        assert console.print.call_count == 2

    def test_validation_shows_kind_and_message(self):
        console = MagicMock()
        Logger(console=console).validation("cronTime", ValidationResult.error("Cron time is null."))
        text = printed_text(console)
        assert "cronTime" in text
        assert "ERROR" in text
        assert "Cron time is null." in text

    def test_validation_ok_has_no_message(self):
        console = MagicMock()
        Logger(console=console).validation("value", ValidationResult.ok())
        assert printed_text(console).endswith("OK")


class TestGlobalLogger:
    """Tests for get_logger()/set_logger()."""

    def test_set_logger(self):
        previous = get_logger()
        custom = Logger(console=MagicMock())
        try:
            set_logger(custom)
            assert get_logger() is custom
        finally:
            set_logger(previous)

    def test_get_logger_is_shared(self):
        assert get_logger() is get_logger()
