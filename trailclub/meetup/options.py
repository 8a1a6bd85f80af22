"""Option tables for meetup types, levels and statuses."""

# Activity types and their calendar colours. New types only need a row here.
MEETUP_TYPE_OPTIONS = [
    {"value": "hiking", "label": "Hiking", "color": "#52c41a"},
    {"value": "walk", "label": "Walk", "color": "#1890ff"},
    {"value": "run", "label": "Run", "color": "#fa8c16"},
    {"value": "other", "label": "Other", "color": "#722ed1"},
]

DEFAULT_TYPE_COLOR = "#3174ad"

# Type that requires a difficulty level.
LEVELED_TYPE = "hiking"

MEETUP_LEVEL_OPTIONS = [
    {"value": "beginner", "label": "Beginner"},
    {"value": "intermediate", "label": "Intermediate"},
    {"value": "advanced", "label": "Advanced"},
]

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

MEETUP_STATUS_OPTIONS = [
    {"value": STATUS_PENDING, "label": "Pending", "color": "blue"},
    {"value": STATUS_COMPLETED, "label": "Completed", "color": "green"},
    {"value": STATUS_CANCELLED, "label": "Cancelled", "color": "red"},
]

MEETUP_TYPES = frozenset(opt["value"] for opt in MEETUP_TYPE_OPTIONS)
MEETUP_LEVELS = frozenset(opt["value"] for opt in MEETUP_LEVEL_OPTIONS)
MEETUP_STATUSES = frozenset(opt["value"] for opt in MEETUP_STATUS_OPTIONS)


def type_color_table(overrides=None):
    """Return the type -> colour table, optionally overridden from config."""
    table = {opt["value"]: opt["color"] for opt in MEETUP_TYPE_OPTIONS}
    if overrides:
        table.update(overrides)
    return table


def choices(options):
    """Convert an option table into WTForms ``choices``."""
    return [(opt["value"], opt["label"]) for opt in options]
