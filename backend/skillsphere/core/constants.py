# backend/skillsphere/core/constants.py
"""Platform-wide constants."""

BRAND_NAME = "SkillSphere"

API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Mentorship marketplace backend: bookings, sessions, transcripts"
API_VERSION = "1.0.0"

# Fixed daily booking grid: hourly slots from 09:00 through 21:00 inclusive.
SLOT_START_HOUR = 9
SLOT_END_HOUR = 21

MAX_BOOKING_MESSAGE_LENGTH = 500

CHAT_ROOM_PREFIX = "booking_"
VIDEO_ROOM_PREFIX = "session_"

DEFAULT_NOTIFICATION_LIMIT = 20
