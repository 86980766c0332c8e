"""Regex rule tables for natural language parsing.

Every table is ordered and evaluated first-match-wins, so the order of the
entries is part of the behavior.
"""

import re
from dataclasses import dataclass

WEEKDAY_NAMES = {
    'sunday': 0,
    'monday': 1,
    'tuesday': 2,
    'wednesday': 3,
    'thursday': 4,
    'friday': 5,
    'saturday': 6,
}

_WEEKDAY = r'(?:sunday|monday|tuesday|wednesday|thursday|friday|saturday)'


@dataclass(frozen=True)
class RecurrenceRule:
    """One recurrence phrase and the descriptor it produces."""

    regex: re.Pattern
    pattern: str
    interval_group: int | None = None  # group holding "N" in "every N days"
    weekday_group: int | None = None  # group holding one or more weekday names
    days_of_week: tuple[int, ...] = ()


RECURRENCE_RULES = [
    RecurrenceRule(re.compile(r'\b(?:every\s+day\b|daily\b)', re.IGNORECASE), 'daily'),
    RecurrenceRule(re.compile(r'\bevery\s+(\d+)\s+days?\b', re.IGNORECASE), 'daily', interval_group=1),
    RecurrenceRule(re.compile(r'\b(?:every\s+week\b|weekly\b)', re.IGNORECASE), 'weekly'),
    RecurrenceRule(re.compile(r'\bevery\s+(\d+)\s+weeks?\b', re.IGNORECASE), 'weekly', interval_group=1),
    RecurrenceRule(re.compile(r'\b(?:every\s+month\b|monthly\b)', re.IGNORECASE), 'monthly'),
    RecurrenceRule(re.compile(r'\bevery\s+(\d+)\s+months?\b', re.IGNORECASE), 'monthly', interval_group=1),
    RecurrenceRule(re.compile(r'\b(?:every\s+year\b|yearly\b|annually\b)', re.IGNORECASE), 'yearly'),
    RecurrenceRule(re.compile(r'\bevery\s+(\d+)\s+years?\b', re.IGNORECASE), 'yearly', interval_group=1),
    # every monday / every monday and thursday / every mon, wed, fri
    RecurrenceRule(
        re.compile(
            rf'\bevery\s+({_WEEKDAY}s?(?:\s*(?:,|and|&)\s*{_WEEKDAY}s?)*)\b',
            re.IGNORECASE,
        ),
        'custom',
        weekday_group=1,
    ),
    RecurrenceRule(re.compile(r'\bevery\s+(?:weekday|workday)s?\b', re.IGNORECASE), 'custom', days_of_week=(1, 2, 3, 4, 5)),
    RecurrenceRule(re.compile(r'\bevery\s+weekends?\b', re.IGNORECASE), 'custom', days_of_week=(0, 6)),
]

WEEKDAY_PATTERN = re.compile(rf'\b({_WEEKDAY})', re.IGNORECASE)

# Priority keywords; medium is the default and needs no rule
PRIORITY_RULES = [
    (re.compile(r'\b(?:urgent|asap|immediately|critical)\b', re.IGNORECASE), 'urgent'),
    (re.compile(r'\b(?:important|high\s+priority|crucial)\b', re.IGNORECASE), 'high'),
    (re.compile(r'\b(?:low\s+priority|when\s+possible|sometime)\b', re.IGNORECASE), 'low'),
]

# Category keywords; personal is the default
CATEGORY_RULES = [
    (re.compile(r'\b(?:work|meeting|office|project|boss|client|deadline)', re.IGNORECASE), 'work'),
    (re.compile(r'\b(?:doctor|appointment|medicine|health|exercise|gym)', re.IGNORECASE), 'health'),
    (re.compile(r'\b(?:buy|shopping|groceries|store|purchase)', re.IGNORECASE), 'shopping'),
    (re.compile(r'\b(?:bank|payment|bill|finance|money|budget)', re.IGNORECASE), 'finance'),
    (re.compile(r'\b(?:family|personal|home|friend)', re.IGNORECASE), 'personal'),
]

TAG_PATTERN = re.compile(r'#(\w+)')

# "remind me in 5 mins to call mom"
FAST_PATH_PATTERN = re.compile(
    r'\bremind me (?:in )?(\d+)\s*(mins?|minutes?|hrs?|hours?)\s+to\s+(.+)',
    re.IGNORECASE,
)

LEADING_FILLER_PATTERN = re.compile(r'^(?:remind me to|remind me|to)\b\s*', re.IGNORECASE)
TRAILING_CONNECTOR_PATTERN = re.compile(r'\s+(?:at|on|by|in|for|every)$', re.IGNORECASE)


@dataclass(frozen=True)
class CoarsePattern:
    """Structural fallback: where the task and the time fragment sit."""

    name: str
    regex: re.Pattern
    time_group: int | None = 2


COARSE_PATTERNS = [
    CoarsePattern(
        'task_then_time',
        re.compile(r'^(?:remind me to\s+|remind me\s+)?(.+?)\s+(?:at|on|by)\s+(.+)$', re.IGNORECASE),
    ),
    CoarsePattern(
        'time_keyword',
        re.compile(
            rf'^(.+?)\s+((?:this\s+|next\s+)?(?:tomorrow|today|tonight|morning|afternoon|evening'
            rf'|{_WEEKDAY})|next\s+(?:week|month))\b',
            re.IGNORECASE,
        ),
    ),
    CoarsePattern(
        'in_offset',
        re.compile(r'^(.+?)\s+(in\s+\d+\s*(?:minutes?|mins?|hours?|hrs?|days?))\b', re.IGNORECASE),
    ),
    CoarsePattern('bare_task', re.compile(r'^(.+)$', re.IGNORECASE | re.DOTALL), time_group=None),
]

# Date resolver rules
RELATIVE_OFFSET_PATTERN = re.compile(
    r'\b(?:in\s+)?(\d+)\s*(minutes?|mins?|hours?|hrs?|days?)\b',
    re.IGNORECASE,
)
TOMORROW_PATTERN = re.compile(r'\btomorrow\b', re.IGNORECASE)
TODAY_PATTERN = re.compile(r'\btoday\b', re.IGNORECASE)
TONIGHT_PATTERN = re.compile(r'\btonight\b', re.IGNORECASE)
NEXT_WEEK_PATTERN = re.compile(r'\bnext\s+week\b', re.IGNORECASE)

# "7am", "at 9:30 pm" (groups 1-3) or "at 17:30" (groups 4-5)
CLOCK_TIME_PATTERN = re.compile(
    r'(?:\bat\s+)?\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b'
    r'|(?:\bat\s+)?\b(\d{1,2}):(\d{2})\b',
    re.IGNORECASE,
)

# "the 1st", "on the 15th"
ORDINAL_DAY_PATTERN = re.compile(r'(?:\bon\s+)?(?:\bthe\s+)?\b(\d{1,2})(?:st|nd|rd|th)\b', re.IGNORECASE)

_MONTH = (
    r'(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?'
    r'|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)'
)

# Calendar dates are left to the general date grammar
EXPLICIT_DATE_PATTERN = re.compile(
    rf'\b{_MONTH}[.,]?\s+\d{{1,2}}(?:st|nd|rd|th)?\b'
    rf'|\b\d{{1,2}}(?:st|nd|rd|th)?\s+(?:of\s+)?{_MONTH}\b'
    r'|\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b'
    r'|\b\d{4}-\d{2}-\d{2}\b',
    re.IGNORECASE,
)

# "7am" -> "7 am"; the date grammar reads the glued form as a month
MERIDIEM_GLUE_PATTERN = re.compile(r'(\d)(am|pm)\b', re.IGNORECASE)

# A grammar fragment without any of these names a day, not a time
TIME_HINT_PATTERN = re.compile(
    r"\d:\d{2}|\d\s*(?:am|pm)\b|\b(?:noon|midnight|o'clock|hours?|hrs?|minutes?|mins?)\b",
    re.IGNORECASE,
)

# Fragments the general date grammar is known to over-match
GRAMMAR_NOISE = {
    'a', 'an', 'at', 'on', 'to', 'in', 'by', 'for', 'now', 'may', 'sat', 'sun',
    'mar', 'second', 'this', 'the',
}
