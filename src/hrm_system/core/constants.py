"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TOKEN_MAX_AGE_SECONDS = 7 * 24 * 3600
ACTIVATION_TOKEN_HOURS = 24
RESET_PASSWORD_TOKEN_MINUTES = 15
MIN_PASSWORD_LENGTH = 8

MIN_LEVEL = 1
MAX_LEVEL = 5

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500

ANNUAL_LEAVE_DAYS = 12
SICK_LEAVE_DAYS = 5

# gap >= CRITICAL_GAP levels below requirement is reported as critical
CRITICAL_GAP = 2

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

TEMPLATE_ACCOUNT_ACTIVATION = "ACCOUNT_ACTIVATION"
TEMPLATE_RESET_PASSWORD = "RESET_PASSWORD"
TEMPLATE_CYCLE_STARTED = "ASSESSMENT_CYCLE_STARTED"
TEMPLATE_ASSESSMENT_REMINDER = "ASSESSMENT_REMINDER"
TEMPLATE_SELF_ASSESSMENT_SUBMITTED = "SELF_ASSESSMENT_SUBMITTED"
