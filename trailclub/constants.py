"""Global constants for the trailclub application."""

# Collection names
MEETUPS_COLLECTION = "meetups"
ATTENDEES_COLLECTION = "meetup_attendees"
MEMBERS_COLLECTION = "members"

# REST endpoints
MEETUPS_ENDPOINT = "/api/meetups"
ATTENDEES_ENDPOINT = "/api/meetup-attendees"
MEMBERS_ENDPOINT = "/api/members"

# Wire formats
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"

# Calendar projection
DEFAULT_START_TIME = "09:00:00"
DEFAULT_DURATION_MINUTES = 60

# Reconciliation
DEFAULT_RECONCILE_MAX_WORKERS = 8

# Meetup defaults
DEFAULT_STATUS = "pending"
DEFAULT_TOTAL_DONATION = 0
