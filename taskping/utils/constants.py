"""Constants and default values."""

# Smart priority factor weights (urgency, importance, behavior, time of day)
SCORE_WEIGHTS = {
    "urgency": 0.4,
    "importance": 0.3,
    "user_behavior": 0.2,
    "time_of_day": 0.1,
}

# (hours until due, urgency) - first threshold the reminder is under wins
URGENCY_STEPS = [
    (1, 100),
    (4, 85),
    (24, 70),
    (72, 50),
]
URGENCY_FLOOR = 30

IMPORTANCE_BY_PRIORITY = {
    "urgent": 100,
    "high": 80,
    "medium": 50,
    "low": 30,
}

# Work hours boost for work reminders (inclusive hours, local time)
WORK_HOURS = (9, 17)

DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY = "personal"

# Default wall-clock time for day-granularity keywords
DEFAULT_DUE_HOUR = 9
TONIGHT_HOUR = 20

# Confidence levels reported by the parser stages
CONFIDENCE_FAST_PATH = 95
CONFIDENCE_GRAMMAR = 90
CONFIDENCE_FALLBACK = 80

FALLBACK_TASK_TEXT = "Reminder"

# Materializer look-ahead
LOOKAHEAD_DAYS = 7

# Inbox
DEFAULT_INBOX_LIMIT = 20

WEEKDAY_DISPLAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]
