"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

import string

DEFAULT_SESSION_DAYS = 7
DEFAULT_ENTRIES_DAYS = 30
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Manual clock-out edits.
MAX_SESSION_HOURS = 24
CLOCK_SKEW_TOLERANCE_SECONDS = 60

SHARING_CODE_ALPHABET = string.ascii_uppercase + string.digits
SHARING_CODE_LENGTH = 6

# Rotation replaces every active code on this period.
CODE_ROTATION_INTERVAL_SECONDS = 5 * 60
MAX_ROTATION_ATTEMPTS = 100
MAX_ISSUE_ATTEMPTS = 50
