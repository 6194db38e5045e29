"""Centralized constants for the reincarnation configuration.

Messages, literals and defaults shared by the config store, the
validators and the CLI.
"""

# =============================================================================
# STORAGE
# =============================================================================

CONFIG_DIR_NAME = ".reincarnation"
CONFIG_FILE_NAME = "config.yaml"

# =============================================================================
# FLAG ENCODING
# =============================================================================

# Only this exact literal enables a flag ("True", "1", "yes" do not)
TRUE_LITERAL = "true"
FALSE_LITERAL = "false"

# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_CRON_TIME = "0 * * * *"  # Every hour
DEFAULT_MAX_DEPTH = "0"

# =============================================================================
# FORM FIELDS
# =============================================================================

FIELD_ACTIVE_TRIGGER = "activeTrigger"
FIELD_MAX_DEPTH = "maxDepth"
FIELD_ACTIVE_CRON = "activeCron"
FIELD_CRON_TIME = "cronTime"
FIELD_REG_EXPRS = "regExprs"
FIELD_NO_CHANGE = "noChange"

# Per-rule fields inside regExprs
FIELD_REGEX_VALUE = "value"
FIELD_REGEX_DESCRIPTION = "description"
FIELD_REGEX_CRON_TIME = "cronTime"

# Field names used by the live validation endpoints
CHECK_CRON_TIME = "cronTime"
CHECK_REGEX_VALUE = "value"
CHECK_REGEX_CRON_TIME = "regExCronTime"

# =============================================================================
# VALIDATION MESSAGES
# =============================================================================

MSG_CRON_NULL = "Cron time is null."
MSG_CRON_UNPARSABLE = "Cron time could not be parsed. Please check for type errors!"
MSG_REGEX_CRON_GLOBAL = "Global cron time will be used for this regular expression."
MSG_REGEX_EMPTY = "RegEx is empty."
MSG_REGEX_INVALID = "RegEx cannot be compiled!"
