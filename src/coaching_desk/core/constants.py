"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SESSION_COOKIE_NAME = "auth_session"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 7
SESSION_SALT = "auth-session"

ATTENDANCE_TIMEZONE = "Asia/Kolkata"
DATE_FORMAT = "%Y-%m-%d"

MIN_PASSWORD_LENGTH = 6
MANAGEMENT_ID_PREFIX = "mgmt_"
GENERATED_ID_LENGTH = 12
DEFAULT_DB_NAME = "student_management"
TEST_ID_PREFIX = "test_"
DEFAULT_MAX_MARKS = 100
