"""Date and time resolution.

Every function takes an explicit reference instant (timezone-aware) and
never reads the wall clock, so results are reproducible.
"""

import logging
import re
from datetime import datetime, timedelta

from dateparser.search import search_dates
from dateutil.relativedelta import relativedelta

from taskping.parser.patterns import (
    CLOCK_TIME_PATTERN,
    EXPLICIT_DATE_PATTERN,
    GRAMMAR_NOISE,
    MERIDIEM_GLUE_PATTERN,
    NEXT_WEEK_PATTERN,
    ORDINAL_DAY_PATTERN,
    RELATIVE_OFFSET_PATTERN,
    TIME_HINT_PATTERN,
    TODAY_PATTERN,
    TOMORROW_PATTERN,
    TONIGHT_PATTERN,
    WEEKDAY_NAMES,
    WEEKDAY_PATTERN,
)
from taskping.utils.constants import DEFAULT_DUE_HOUR, TONIGHT_HOUR
from taskping.utils.time_utils import at_wall_time, weekday_ordinal

logger = logging.getLogger(__name__)

GRAMMAR_SETTINGS = {
    'PREFER_DATES_FROM': 'future',
    'RETURN_AS_TIMEZONE_AWARE': False,
}

Span = tuple[int, int]


def normalize_relative_date(value: int, unit: str, reference: datetime) -> datetime:
    """Normalize relative offsets (in X minutes/hours/days)."""
    unit = unit.lower()

    if unit.startswith('min'):
        return reference + timedelta(minutes=value)
    if unit.startswith('h'):
        return reference + timedelta(hours=value)
    if unit.startswith('day'):
        return at_wall_time(reference + timedelta(days=value), DEFAULT_DUE_HOUR)

    raise ValueError(f"Unknown time unit: {unit}")


def normalize_tomorrow(reference: datetime) -> datetime:
    """Get tomorrow at 9am."""
    return at_wall_time(reference + timedelta(days=1), DEFAULT_DUE_HOUR)


def normalize_today(reference: datetime) -> datetime:
    """'today' means an hour from now."""
    return reference + timedelta(hours=1)


def normalize_tonight(reference: datetime) -> datetime:
    """Get today at 8pm."""
    return at_wall_time(reference, TONIGHT_HOUR)


def normalize_next_week(reference: datetime) -> datetime:
    """Same weekday next week at 9am."""
    return at_wall_time(reference + timedelta(days=7), DEFAULT_DUE_HOUR)


def normalize_next_weekday(weekday_name: str, reference: datetime) -> datetime:
    """Next future occurrence of a weekday at 9am, never today."""
    target_weekday = WEEKDAY_NAMES.get(weekday_name.lower())

    if target_weekday is None:
        raise ValueError(f"Unknown weekday: {weekday_name}")

    days_ahead = (target_weekday - weekday_ordinal(reference)) % 7
    if days_ahead == 0:
        days_ahead = 7

    return at_wall_time(reference + timedelta(days=days_ahead), DEFAULT_DUE_HOUR)


def normalize_clock_time(hour: int, minute: int, reference: datetime) -> datetime:
    """Next time the wall clock reads hour:minute (today if still ahead)."""
    candidate = at_wall_time(reference, hour, minute)
    if candidate <= reference:
        candidate = at_wall_time(reference + timedelta(days=1), hour, minute)
    return candidate


def normalize_day_of_month(
    day: int, reference: datetime, hour: int = DEFAULT_DUE_HOUR, minute: int = 0
) -> datetime:
    """Next future occurrence of a day of the month, skipping months too short for it."""
    if not 1 <= day <= 31:
        raise ValueError(f"Invalid day of month: {day}")

    month_start = reference.replace(day=1)
    for months_ahead in range(13):
        month = month_start + relativedelta(months=months_ahead)
        try:
            candidate = month.replace(day=day, hour=hour, minute=minute, second=0, microsecond=0)
        except ValueError:
            continue
        if candidate > reference:
            return candidate

    raise ValueError(f"No upcoming day {day} after {reference}")


def clock_time(match: re.Match) -> tuple[int, int] | None:
    """(hour, minute) of a CLOCK_TIME_PATTERN match, None if out of range."""
    if match.group(3):
        hour, minute = int(match.group(1)), int(match.group(2) or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return None
        return hour % 12 + (12 if match.group(3).lower() == 'pm' else 0), minute

    hour, minute = int(match.group(4)), int(match.group(5))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


# (pattern, normalize, fixes the day) tried in order after the relative offset rule.
# With an explicit clock time, rules that fix the day take that time and the
# others give way to it.
KEYWORD_RULES = [
    (TOMORROW_PATTERN, lambda match, ref: normalize_tomorrow(ref), True),
    (TODAY_PATTERN, lambda match, ref: normalize_today(ref), False),
    (TONIGHT_PATTERN, lambda match, ref: normalize_tonight(ref), False),
    (NEXT_WEEK_PATTERN, lambda match, ref: normalize_next_week(ref), True),
    (WEEKDAY_PATTERN, lambda match, ref: normalize_next_weekday(match.group(1), ref), True),
]


def match_time_rules(text: str, reference: datetime) -> tuple[datetime, list[Span]] | None:
    """Resolve text with the literal time rules only.

    Cascade:
    1. Relative offset ("in 5 minutes", "2 hours", "3 days")
    2. Day of month ("on the 1st"), at the clock time if one is given
    3. Keywords (tomorrow, today, tonight, next week, weekday name),
       combined with a clock time if one is given
    4. Clock time alone ("at 7am", "17:30"), today or else tomorrow

    Returns:
        (resolved datetime, spans of text the rules consumed), or None if
        no rule applies or the text names a calendar date
    """
    if EXPLICIT_DATE_PATTERN.search(text):
        return None

    match = RELATIVE_OFFSET_PATTERN.search(text)
    if match:
        try:
            return normalize_relative_date(int(match.group(1)), match.group(2), reference), [match.span()]
        except ValueError:
            pass

    clock = None
    clock_spans: list[Span] = []
    match = CLOCK_TIME_PATTERN.search(text)
    if match:
        clock = clock_time(match)
        if clock:
            clock_spans.append(match.span())

    match = ORDINAL_DAY_PATTERN.search(text)
    if match:
        hour, minute = clock or (DEFAULT_DUE_HOUR, 0)
        try:
            due_at = normalize_day_of_month(int(match.group(1)), reference, hour, minute)
            return due_at, [match.span()] + clock_spans
        except ValueError:
            pass

    for pattern, normalize, fixes_day in KEYWORD_RULES:
        match = pattern.search(text)
        if not match:
            continue
        if clock is None:
            return normalize(match, reference), [match.span()]
        if fixes_day:
            return at_wall_time(normalize(match, reference), *clock), [match.span()] + clock_spans
        return normalize_clock_time(*clock, reference), [match.span()] + clock_spans

    if clock:
        return normalize_clock_time(*clock, reference), clock_spans
    return None


def space_meridiem(text: str) -> str:
    """Split glued am/pm ("7am" -> "7 am") before the date grammar sees it."""
    return MERIDIEM_GLUE_PATTERN.sub(r'\1 \2', text)


def search_grammar(text: str, reference: datetime) -> tuple[str, datetime] | None:
    """Run the general date grammar over text.

    Fragments that name only a day resolve to 9am on that day.

    Returns:
        (matched fragment, resolved datetime in the reference's timezone),
        or None if nothing in the text reads as a date.
    """
    settings = dict(GRAMMAR_SETTINGS, RELATIVE_BASE=reference.replace(tzinfo=None))
    try:
        results = search_dates(text, languages=['en'], settings=settings)
    except Exception as e:
        logger.warning(f"Date grammar failed on {text!r}: {e}")
        return None

    for fragment, found in results or []:
        token = fragment.strip().lower()
        # Bare small numbers and stop words are not dates on their own
        if len(token) < 2 or token in GRAMMAR_NOISE or re.fullmatch(r'\d{1,2}', token):
            continue
        if found.tzinfo is None:
            found = found.replace(tzinfo=reference.tzinfo)
        else:
            found = found.astimezone(reference.tzinfo)
        if not TIME_HINT_PATTERN.search(fragment):
            found = at_wall_time(found, DEFAULT_DUE_HOUR)
        return fragment, found

    return None


def resolve_datetime(text: str, reference: datetime) -> datetime | None:
    """Resolve a time-referring fragment to an absolute datetime.

    The literal time rules run first (see match_time_rules); the general
    date grammar only sees what they leave unresolved.

    Args:
        text: Text fragment (or whole message) referring to a time
        reference: Timezone-aware instant the fragment is relative to

    Returns:
        Resolved datetime, or None if no rule matched
    """
    found = match_time_rules(text, reference)
    if found:
        return found[0]

    grammar = search_grammar(space_meridiem(text), reference)
    if grammar:
        return grammar[1]
    return None
