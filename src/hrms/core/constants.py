"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 31

# Attendance defaults used when no shift is resolved.
DEFAULT_WORK_START = "09:00"
DEFAULT_LATE_GRACE_MINUTES = 15
MIN_WORKING_HOURS = 8
HALF_DAY_HOURS = 4

# Breaks
UNLIMITED_REMAINING = 999

# Leave
LEAVE_DAY_MINUTES = 8 * 60

# Recruitment / onboarding
TOKEN_BYTES = 32
OFFER_ONBOARDING_TOKEN_DAYS = 30
ONBOARDING_DEFAULT_EXPIRY_DAYS = 30
ONBOARDING_MAX_EXPIRY_DAYS = 90
ONBOARDING_GRACE_AFTER_JOINING_DAYS = 7
GENERATED_PASSWORD_DIGITS = 7

DEFAULT_LEAVE_ALLOCATION = {
    "paid": 12,
    "unpaid": 0,
    "sick": 10,
    "casual": 8,
    "annual": 20,
}
