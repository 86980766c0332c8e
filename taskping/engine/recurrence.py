"""Recurrence detection and next-occurrence computation."""

import re
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from taskping.db.models import RecurrenceDescriptor
from taskping.parser.patterns import RECURRENCE_RULES, WEEKDAY_NAMES, WEEKDAY_PATTERN, RecurrenceRule
from taskping.utils.constants import WEEKDAY_DISPLAY_NAMES
from taskping.utils.time_utils import from_utc, to_utc, weekday_ordinal

_STEP_BY_PATTERN = {
    'daily': lambda n: relativedelta(days=n),
    'weekly': lambda n: relativedelta(weeks=n),
    'monthly': lambda n: relativedelta(months=n),
    'yearly': lambda n: relativedelta(years=n),
}


def _match_recurrence(text: str) -> tuple[RecurrenceRule, re.Match] | None:
    for rule in RECURRENCE_RULES:
        match = rule.regex.search(text)
        if match:
            return rule, match
    return None


def detect_recurrence(text: str) -> RecurrenceDescriptor:
    """Build a recurrence descriptor from natural language.

    Examples:
        "every day" -> daily, interval 1
        "every 3 weeks" -> weekly, interval 3
        "every monday and thursday" -> custom, days [1, 4]
        "every weekend" -> custom, days [0, 6]
        "call mom" -> not recurring
    """
    found = _match_recurrence(text)
    if not found:
        return RecurrenceDescriptor()

    rule, match = found
    interval = 1
    if rule.interval_group:
        interval = max(1, int(match.group(rule.interval_group)))

    days: list[int] = list(rule.days_of_week)
    if rule.weekday_group:
        for name in WEEKDAY_PATTERN.findall(match.group(rule.weekday_group)):
            day = WEEKDAY_NAMES[name.lower()]
            if day not in days:
                days.append(day)

    return RecurrenceDescriptor(
        is_recurring=True,
        pattern=rule.pattern,  # type: ignore[arg-type]
        interval=interval,
        days_of_week=days,
    )


def strip_recurrence(text: str) -> str:
    """Remove the recurrence phrase that detect_recurrence would match."""
    found = _match_recurrence(text)
    if not found:
        return text
    match = found[1]
    return text[:match.start()] + ' ' + text[match.end():]


def advance(recurrence: RecurrenceDescriptor, last_due: datetime, tz: str | None = None) -> datetime | None:
    """Step last_due forward by one recurrence period, ignoring end conditions.

    Arithmetic happens on local wall-clock time so a 9am reminder stays at 9am.

    Returns:
        Next due datetime (UTC), or None if the rule cannot produce one
    """
    local = from_utc(last_due, tz)

    if recurrence.pattern in _STEP_BY_PATTERN:
        step = _STEP_BY_PATTERN[recurrence.pattern](max(1, recurrence.interval))
        return to_utc(local + step)

    if recurrence.pattern == 'custom':
        if not recurrence.days_of_week:
            return None
        for i in range(1, 8):
            candidate = local + timedelta(days=i)
            if weekday_ordinal(candidate) in recurrence.days_of_week:
                return to_utc(candidate)
        # Unreachable with a valid weekday set; pin to the first listed day next week
        next_week = local + timedelta(weeks=1)
        start_of_week = next_week - timedelta(days=weekday_ordinal(next_week))
        return to_utc(start_of_week + timedelta(days=recurrence.days_of_week[0]))

    return None


def first_occurrence(recurrence: RecurrenceDescriptor, due_at: datetime) -> datetime:
    """Move a custom series' first due time forward onto one of its weekdays.

    Works on due_at's own wall clock; other patterns are returned unchanged.
    """
    if not recurrence.is_recurring or recurrence.pattern != 'custom' or not recurrence.days_of_week:
        return due_at
    for i in range(7):
        candidate = due_at + timedelta(days=i)
        if weekday_ordinal(candidate) in recurrence.days_of_week:
            return candidate
    return due_at


def next_occurrence(
    recurrence: RecurrenceDescriptor, last_due: datetime, tz: str | None = None
) -> datetime | None:
    """Get the next occurrence after last_due, honoring end conditions.

    Returns:
        Next due datetime (UTC), or None once the series is over
        (past end_date or max_occurrences reached)
    """
    if not recurrence.is_recurring or recurrence.exhausted:
        return None

    if recurrence.max_occurrences and recurrence.current_occurrence >= recurrence.max_occurrences:
        return None

    next_due = advance(recurrence, last_due, tz)
    if next_due is None:
        return None

    if recurrence.end_date and next_due > recurrence.end_date:
        return None

    return next_due


def describe_recurrence(recurrence: RecurrenceDescriptor) -> str:
    """Describe a recurrence in words.

    Examples:
        "every day", "every 3 weeks", "every Monday, Wednesday"
    """
    if not recurrence.is_recurring:
        return ''

    units = {'daily': 'day', 'weekly': 'week', 'monthly': 'month', 'yearly': 'year'}
    if recurrence.pattern in units:
        unit = units[recurrence.pattern]
        if recurrence.interval == 1:
            return f"every {unit}"
        return f"every {recurrence.interval} {unit}s"

    if recurrence.pattern == 'custom' and recurrence.days_of_week:
        names = [WEEKDAY_DISPLAY_NAMES[d] for d in recurrence.days_of_week]
        return f"every {', '.join(names)}"

    return ''
