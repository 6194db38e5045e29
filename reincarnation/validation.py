"""Field validation for the reincarnation configuration form.

Each check returns a ValidationResult instead of raising: the host UI calls
them live while the user types, and a Warning never blocks a save.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from croniter import croniter

from reincarnation.constants import (
    MSG_CRON_NULL,
    MSG_CRON_UNPARSABLE,
    MSG_REGEX_CRON_GLOBAL,
    MSG_REGEX_EMPTY,
    MSG_REGEX_INVALID,
)

# re.compile raises OverflowError on huge repeat counts and RecursionError on deep nesting
REGEX_COMPILE_ERRORS = (re.error, OverflowError, RecursionError)


class Kind(str, Enum):
    """Severity of a validation result."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationResult:
    """Result of a field check."""

    kind: Kind = Kind.OK
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(Kind.OK)

    @classmethod
    def warning(cls, message: str) -> "ValidationResult":
        return cls(Kind.WARNING, message)

    @classmethod
    def error(cls, message: str) -> "ValidationResult":
        return cls(Kind.ERROR, message)

    @property
    def is_ok(self) -> bool:
        return self.kind is Kind.OK

    @property
    def is_error(self) -> bool:
        return self.kind is Kind.ERROR


def _cron_entries(value: str) -> list[str]:
    """Splits a cron tab into its entries, dropping blanks and comments."""
    entries = []
    for line in value.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(line)
    return entries


def is_valid_cron(value: Optional[str]) -> bool:
    """Returns True if every entry of the cron tab parses."""
    if not value:
        return False
    entries = _cron_entries(value)
    if not entries:
        return False
    return all(croniter.is_valid(entry) for entry in entries)


def check_cron_time(value: Optional[str]) -> ValidationResult:
    """Checks a global cron time.

    Args:
        value: The cron tab entered by the user (one or more lines)

    Returns:
        Ok if the cron time parses, Error otherwise.
    """
    if value is None or not value.strip():
        return ValidationResult.error(MSG_CRON_NULL)
    if not is_valid_cron(value):
        return ValidationResult.error(MSG_CRON_UNPARSABLE)
    return ValidationResult.ok()


def check_regex_cron_time(value: Optional[str]) -> ValidationResult:
    """Checks the cron override of a single regex rule.

    An empty override is legitimate: the rule falls back to the global
    cron time, which is reported as a Warning.
    """
    if value == "":
        return ValidationResult.warning(MSG_REGEX_CRON_GLOBAL)
    return check_cron_time(value)


def check_regex_value(value: Optional[str]) -> ValidationResult:
    """Checks that a regex rule compiles."""
    if value is None or not value.strip():
        return ValidationResult.warning(MSG_REGEX_EMPTY)
    try:
        re.compile(value)
    except REGEX_COMPILE_ERRORS:
        return ValidationResult.error(MSG_REGEX_INVALID)
    return ValidationResult.ok()
