"""Gestion de la configuration Periodic Reincarnation.

The settings are kept string-encoded, exactly as the configuration form
submits them, and exposed through typed accessors. Flags are enabled only by
the literal "true"; the restart depth falls back to 0 when it is not an
integer.
"""

import os
import re
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from reincarnation.constants import (
    CHECK_CRON_TIME,
    CHECK_REGEX_CRON_TIME,
    CHECK_REGEX_VALUE,
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_CRON_TIME,
    DEFAULT_MAX_DEPTH,
    FALSE_LITERAL,
    FIELD_ACTIVE_CRON,
    FIELD_ACTIVE_TRIGGER,
    FIELD_CRON_TIME,
    FIELD_MAX_DEPTH,
    FIELD_NO_CHANGE,
    FIELD_REG_EXPRS,
    FIELD_REGEX_CRON_TIME,
    FIELD_REGEX_DESCRIPTION,
    FIELD_REGEX_VALUE,
    TRUE_LITERAL,
)
from reincarnation.logger import Logger, get_logger
from reincarnation.validation import (
    REGEX_COMPILE_ERRORS,
    ValidationResult,
    check_cron_time,
    check_regex_cron_time,
    check_regex_value,
)

# Same digits-only grammar as the form's integer fields ("1_0" and "7.0" are rejected)
DEPTH_PATTERN = re.compile(r"[+-]?\d+")


class ConfigError(ValueError):
    """Raised when the persisted configuration cannot be read."""


def _as_str(value: Any) -> Optional[str]:
    """Coerces a raw persisted or submitted value to its string encoding."""
    if value is None:
        return None
    if isinstance(value, bool):
        return TRUE_LITERAL if value else FALSE_LITERAL
    return str(value)


def _is_true(value: Optional[str]) -> bool:
    return value is not None and value == TRUE_LITERAL


def parse_depth(value: Optional[str]) -> Optional[int]:
    """Parses a restart depth, returning None if it is not a valid depth.

    Args:
        value: The string-encoded depth

    Returns:
        The depth, or None when the value is missing, not an integer, or negative.
    """
    if value is None or not DEPTH_PATTERN.fullmatch(value):
        return None
    depth = int(value)
    if depth < 0:
        return None
    return depth


def _rules_data(raw: Any, source: str) -> list:
    """Returns the rule entries of a regex list, rejecting anything but mappings.

    Raises:
        ConfigError: If raw is not a list (or single mapping) of mappings.
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise ConfigError(f"Invalid {source}: expected a list of rules, got {type(raw).__name__}")
    for entry in raw:
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid {source} entry: expected a mapping, got {entry!r}")
    return raw


@dataclass(frozen=True)
class RegExRule:
    """A regular expression matched against build output, with an optional cron override."""

    value: str = ""
    description: str = ""
    cron_time: str = ""  # "" = use the global cron time

    @classmethod
    def from_dict(cls, data: dict) -> "RegExRule":
        """Crée une règle depuis un dictionnaire."""
        return cls(
            value=_as_str(data.get("value")) or "",
            description=_as_str(data.get("description")) or "",
            cron_time=_as_str(data.get("cron_time")) or "",
        )

    @classmethod
    def from_form(cls, data: dict) -> "RegExRule":
        """Builds a rule from one entry of the submitted regExprs list.

        Values are kept verbatim: surrounding spaces are part of a pattern.
        """
        return cls(
            value=_as_str(data.get(FIELD_REGEX_VALUE)) or "",
            description=_as_str(data.get(FIELD_REGEX_DESCRIPTION)) or "",
            cron_time=_as_str(data.get(FIELD_REGEX_CRON_TIME)) or "",
        )

    def to_dict(self) -> dict:
        """Convertit la règle en dictionnaire."""
        return {
            "value": self.value,
            "description": self.description,
            "cron_time": self.cron_time,
        }

    def to_form(self) -> dict:
        return {
            FIELD_REGEX_VALUE: self.value,
            FIELD_REGEX_DESCRIPTION: self.description,
            FIELD_REGEX_CRON_TIME: self.cron_time,
        }

    def has_cron_override(self) -> bool:
        return bool(self.cron_time.strip())

    def effective_cron_time(self, global_cron_time: Optional[str]) -> Optional[str]:
        """Returns the rule's own cron time, or the global one when it has none."""
        if self.has_cron_override():
            return self.cron_time
        return global_cron_time

    def matches(self, text: str) -> bool:
        """Tells if the regex is found in text.

        An empty or uncompilable regex never matches.
        """
        if not self.value:
            return False
        try:
            return re.search(self.value, text) is not None
        except REGEX_COMPILE_ERRORS:
            return False


@dataclass(frozen=True)
class ReincarnationConfig:
    """Configuration complète du plugin.

    Instances are immutable snapshots; a submission builds a new one.
    """

    active_cron: Optional[str] = FALSE_LITERAL
    active_trigger: Optional[str] = FALSE_LITERAL
    cron_time: Optional[str] = DEFAULT_CRON_TIME
    reg_exprs: tuple[RegExRule, ...] = ()
    max_depth: Optional[str] = DEFAULT_MAX_DEPTH
    no_change: Optional[str] = FALSE_LITERAL

    @classmethod
    def from_dict(cls, data: dict) -> "ReincarnationConfig":
        """Crée une config depuis un dictionnaire.

        Raises:
            ConfigError: If reg_exprs is not a list of mappings.
        """
        rules_data = _rules_data(data.get("reg_exprs"), "reg_exprs")
        return cls(
            active_cron=_as_str(data.get("active_cron", FALSE_LITERAL)),
            active_trigger=_as_str(data.get("active_trigger", FALSE_LITERAL)),
            cron_time=_as_str(data.get("cron_time", DEFAULT_CRON_TIME)),
            reg_exprs=tuple(RegExRule.from_dict(rule) for rule in rules_data),
            max_depth=_as_str(data.get("max_depth", DEFAULT_MAX_DEPTH)),
            no_change=_as_str(data.get("no_change", FALSE_LITERAL)),
        )

    @classmethod
    def from_form(cls, form: dict) -> "ReincarnationConfig":
        """Builds a config from a submitted configuration form.

        Every field is overwritten: a missing scalar becomes "" and a missing
        regExprs becomes an empty list. Scalars are stripped of surrounding
        whitespace; rule entries are kept verbatim. A single rule may be
        submitted as a mapping instead of a list. Entries that are not
        mappings are skipped with a warning.

        Args:
            form: Mapping with activeTrigger, maxDepth, activeCron, cronTime,
                regExprs and noChange

        Returns:
            The new configuration
        """

        def scalar(name: str) -> str:
            return (_as_str(form.get(name)) or "").strip()

        rules_data = form.get(FIELD_REG_EXPRS) or []
        if isinstance(rules_data, dict):
            rules_data = [rules_data]
        elif not isinstance(rules_data, (list, tuple)):
            get_logger().warn(f"Ignoring {FIELD_REG_EXPRS}: expected a list, got {rules_data!r}")
            rules_data = []

        rules = []
        for entry in rules_data:
            if not isinstance(entry, dict):
                get_logger().warn(f"Ignoring {FIELD_REG_EXPRS} entry: {entry!r}")
                continue
            rules.append(RegExRule.from_form(entry))

        return cls(
            active_trigger=scalar(FIELD_ACTIVE_TRIGGER),
            max_depth=scalar(FIELD_MAX_DEPTH),
            active_cron=scalar(FIELD_ACTIVE_CRON),
            cron_time=scalar(FIELD_CRON_TIME),
            reg_exprs=tuple(rules),
            no_change=scalar(FIELD_NO_CHANGE),
        )

    def to_dict(self) -> dict:
        """Convertit la config en dictionnaire."""
        return {
            "active_cron": self.active_cron,
            "active_trigger": self.active_trigger,
            "cron_time": self.cron_time,
            "reg_exprs": [rule.to_dict() for rule in self.reg_exprs],
            "max_depth": self.max_depth,
            "no_change": self.no_change,
        }

    def to_form(self) -> dict:
        """Returns the config keyed by form field names."""
        return {
            FIELD_ACTIVE_TRIGGER: self.active_trigger,
            FIELD_MAX_DEPTH: self.max_depth,
            FIELD_ACTIVE_CRON: self.active_cron,
            FIELD_CRON_TIME: self.cron_time,
            FIELD_REG_EXPRS: [rule.to_form() for rule in self.reg_exprs],
            FIELD_NO_CHANGE: self.no_change,
        }

    def is_cron_active(self) -> bool:
        """Tells if the periodic (cron) restart is activated."""
        return _is_true(self.active_cron)

    def is_trigger_active(self) -> bool:
        """Tells if the afterbuild restart is activated."""
        return _is_true(self.active_trigger)

    def is_restart_unchanged_enabled(self) -> bool:
        """Tells if jobs that failed without any change since their last success may be restarted."""
        return _is_true(self.no_change)

    @property
    def max_retry_depth(self) -> int:
        """Maximal number of consecutive afterbuild restarts (0 if unset or invalid)."""
        depth = parse_depth(self.max_depth)
        return 0 if depth is None else depth

    def sanitize(self) -> "ReincarnationConfig":
        """Returns this config with an invalid max_depth reset to "0".

        Returns:
            self if nothing needed repair, a repaired copy otherwise
        """
        if parse_depth(self.max_depth) is None:
            return replace(self, max_depth=DEFAULT_MAX_DEPTH)
        return self


# Live validation endpoints, keyed by form field name
CHECKS: dict[str, Callable[[Optional[str]], ValidationResult]] = {
    CHECK_CRON_TIME: check_cron_time,
    CHECK_REGEX_VALUE: check_regex_value,
    CHECK_REGEX_CRON_TIME: check_regex_cron_time,
}


def get_config_path(project_path: Path) -> Path:
    """Returns the path of .reincarnation/config.yaml."""
    return project_path / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class ConfigStore:
    """Holds the current configuration and persists submissions.

    Readers always see a complete snapshot: configure() builds and saves the
    new configuration before swapping it in under the lock.
    """

    def __init__(self, project_path: Path, logger: Optional[Logger] = None):
        """Loads the persisted configuration.

        Args:
            project_path: Root path of the project
            logger: Logger to use (defaults to the global logger)

        Raises:
            ConfigError: If the persisted configuration is corrupt.
        """
        self.project_path = project_path.resolve()
        self.config_file = get_config_path(self.project_path)
        self.logger = logger or get_logger()
        self._lock = threading.Lock()
        self._config = self.load()

    @property
    def config(self) -> ReincarnationConfig:
        """Returns the current snapshot."""
        with self._lock:
            return self._config

    def load(self) -> ReincarnationConfig:
        """Charge la configuration depuis le fichier.

        A missing or empty file yields the defaults. An invalid restart depth
        is reset to "0"; the repaired value is written on the next save.

        Raises:
            ConfigError: If the file is not valid YAML, not a mapping, or
                holds reg_exprs that are not a list of mappings.
        """
        if not self.config_file.exists():
            return ReincarnationConfig()

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {self.config_file}: {e}") from e

        if data is None:
            return ReincarnationConfig()
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid configuration in {self.config_file}: expected a mapping")

        loaded = ReincarnationConfig.from_dict(data)
        config = loaded.sanitize()
        if config is not loaded:
            self.logger.warn(f"Invalid max depth {loaded.max_depth!r} reset to {DEFAULT_MAX_DEPTH}")
        return config

    def _save_unlocked(self, config: ReincarnationConfig) -> None:
        """Save config to file. Caller must hold self._lock.

        Uses atomic write (temp file + rename) to prevent corruption.
        """
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        unique_suffix = f".{os.getpid()}.{threading.get_ident()}.tmp"
        temp_file = self.config_file.with_suffix(unique_suffix)
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                yaml.dump(config.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
            temp_file.replace(self.config_file)
        except Exception:
            if temp_file.exists():
                temp_file.unlink(missing_ok=True)
            raise

    def save(self) -> None:
        """Sauvegarde la configuration courante."""
        with self._lock:
            self._save_unlocked(self._config)

    def configure(self, form: dict) -> bool:
        """Applies a configuration form submission.

        All fields are overwritten from the form, then persisted. Field
        checks are advisory and never block the save.

        Args:
            form: The submitted form data

        Returns:
            True once the configuration has been saved
        """
        config = ReincarnationConfig.from_form(form)
        with self._lock:
            self._save_unlocked(config)
            self._config = config
        self.logger.success(f"Configuration saved to {self.config_file}")
        return True

    def reset(self) -> None:
        """Restores and saves the default configuration."""
        config = ReincarnationConfig()
        with self._lock:
            self._save_unlocked(config)
            self._config = config
        self.logger.info("Configuration reset to defaults")

    # Validation endpoints

    def check(self, field_name: str, value: Optional[str]) -> ValidationResult:
        """Runs the live check registered for a form field.

        Raises:
            ConfigError: If no check exists for field_name.
        """
        check = CHECKS.get(field_name)
        if check is None:
            raise ConfigError(f"No check for field: {field_name}")
        return check(value)

    def check_cron_time(self, value: Optional[str]) -> ValidationResult:
        return check_cron_time(value)

    def check_regex_value(self, value: Optional[str]) -> ValidationResult:
        return check_regex_value(value)

    def check_regex_cron_time(self, value: Optional[str]) -> ValidationResult:
        return check_regex_cron_time(value)

    # Accessors

    def is_cron_active(self) -> bool:
        return self.config.is_cron_active()

    def is_trigger_active(self) -> bool:
        return self.config.is_trigger_active()

    def is_restart_unchanged_enabled(self) -> bool:
        return self.config.is_restart_unchanged_enabled()

    @property
    def max_retry_depth(self) -> int:
        return self.config.max_retry_depth

    def get_max_depth(self) -> int:
        """Returns the maximal number of consecutive afterbuild restarts."""
        return self.config.max_retry_depth

    @property
    def cron_time(self) -> Optional[str]:
        return self.config.cron_time

    @property
    def reg_exprs(self) -> list[RegExRule]:
        return list(self.config.reg_exprs)

    @property
    def active_cron(self) -> Optional[str]:
        return self.config.active_cron

    @property
    def active_trigger(self) -> Optional[str]:
        return self.config.active_trigger

    @property
    def no_change(self) -> Optional[str]:
        return self.config.no_change

    @property
    def max_depth(self) -> Optional[str]:
        return self.config.max_depth

    def rules_for(self, text: str) -> list[RegExRule]:
        """Returns the rules whose regex is found in text, in configured order."""
        return [rule for rule in self.config.reg_exprs if rule.matches(text)]
