"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_DAILY_HOURS = 24
MAX_WEEKLY_HOURS = 168
MAX_BREAK_MINUTES = 480
MAX_ENTRY_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 1000

DEFAULT_VACATION_BALANCE = 15
MAX_VACATION_BALANCE = 365
MIN_PASSWORD_LENGTH = 6

DEFAULT_REJECTION_REASON = "No reason provided"

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DASHBOARD_RECENT_LIMIT = 5
DEFAULT_SESSION_DAYS = 7
