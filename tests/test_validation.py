"""Tests for the validation module."""

import pytest

from reincarnation.validation import (
    Kind,
    ValidationResult,
    check_cron_time,
    check_regex_cron_time,
    check_regex_value,
    is_valid_cron,
)


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_ok_result(self):
        """Tests an ok result."""
        result = ValidationResult.ok()
        assert result.kind == Kind.OK
        assert result.message is None
        assert result.is_ok is True
        assert result.is_error is False

    def test_warning_is_not_an_error(self):
        """Tests that a warning is neither ok nor an error."""
        result = ValidationResult.warning("careful")
        assert result.kind == Kind.WARNING
        assert result.message == "careful"
        assert result.is_ok is False
        assert result.is_error is False

    def test_error_result(self):
        """Tests an error result."""
        result = ValidationResult.error("broken")
        assert result.is_error is True
        assert result.message == "broken"

    def test_results_compare_by_value(self):
        assert ValidationResult.error("x") == ValidationResult(Kind.ERROR, "x")


class TestCheckCronTime:
    """Tests for check_cron_time()."""

    def test_none_is_null_error(self):
        assert check_cron_time(None) == ValidationResult.error("Cron time is null.")

    def test_empty_is_null_error(self):
        assert check_cron_time("") == ValidationResult.error("Cron time is null.")

    def test_unparsable_cron(self):
        result = check_cron_time("not a cron")
        assert result == ValidationResult.error(
            "Cron time could not be parsed. Please check for type errors!"
        )

    @pytest.mark.parametrize(
        "value",
        ["0 0 * * *", "*/15 * * * *", "30 2 * * 1-5", "0 0 1 1 *"],
    )
    def test_valid_cron(self, value):
        assert check_cron_time(value).is_ok

    def test_out_of_range_field(self):
        assert check_cron_time("61 * * * *").is_error

    def test_multiline_cron_tab(self):
        """Tests that comments and blank lines are ignored between entries."""
        value = "# nightly\n0 0 * * *\n\n30 12 * * 1\n"
        assert check_cron_time(value).is_ok

    def test_one_bad_line_fails_the_tab(self):
        assert check_cron_time("0 0 * * *\nevery day").is_error

    def test_comments_only_is_unparsable(self):
        assert is_valid_cron("# nothing here") is False


class TestCheckRegexCronTime:
    """Tests for check_regex_cron_time()."""

    def test_empty_uses_global_cron(self):
        result = check_regex_cron_time("")
        assert result == ValidationResult.warning(
            "Global cron time will be used for this regular expression."
        )

    def test_delegates_valid_cron(self):
        assert check_regex_cron_time("0 0 * * *").is_ok

    def test_delegates_invalid_cron(self):
        assert check_regex_cron_time("whenever").message.startswith("Cron time could not be parsed")

    def test_none_is_null_error(self):
        assert check_regex_cron_time(None) == ValidationResult.error("Cron time is null.")


class TestCheckRegexValue:
    """Tests for check_regex_value()."""

    def test_empty_regex_warns(self):
        assert check_regex_value("") == ValidationResult.warning("RegEx is empty.")

    def test_blank_regex_warns(self):
        assert check_regex_value("   ").kind == Kind.WARNING

    def test_none_regex_warns(self):
        assert check_regex_value(None).kind == Kind.WARNING

    def test_uncompilable_regex(self):
        assert check_regex_value("[unclosed") == ValidationResult.error("RegEx cannot be compiled!")

    def test_unbalanced_group(self):
        assert check_regex_value("(abc").is_error

    def test_huge_repeat_count(self):
        """Tests that an OverflowError from re.compile becomes an Error."""
        assert check_regex_value("a{99999999999}") == ValidationResult.error("RegEx cannot be compiled!")

    def test_deeply_nested_groups(self):
        """Tests that a RecursionError from re.compile becomes an Error."""
        assert check_regex_value("(" * 2000 + ")" * 2000).is_error

    def test_valid_regex(self):
        assert check_regex_value("abc.*").is_ok
        assert check_regex_value(r"java\.lang\.OutOfMemoryError").is_ok
