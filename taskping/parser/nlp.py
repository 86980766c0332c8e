"""Natural language parser - the main pipeline."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from taskping.db.models import Category, ParseResult, Priority, RecurrenceDescriptor
from taskping.engine.recurrence import (
    describe_recurrence,
    detect_recurrence,
    first_occurrence,
    strip_recurrence,
)
from taskping.parser.classifiers import (
    detect_category,
    detect_priority,
    extract_tags,
    strip_priority_cue,
    strip_tags,
)
from taskping.parser.normalizer import (
    match_time_rules,
    resolve_datetime,
    search_grammar,
    space_meridiem,
)
from taskping.parser.patterns import (
    COARSE_PATTERNS,
    FAST_PATH_PATTERN,
    LEADING_FILLER_PATTERN,
    TRAILING_CONNECTOR_PATTERN,
)
from taskping.utils.constants import (
    CONFIDENCE_FALLBACK,
    CONFIDENCE_FAST_PATH,
    CONFIDENCE_GRAMMAR,
    FALLBACK_TASK_TEXT,
)
from taskping.utils.time_utils import format_due, local_now

logger = logging.getLogger(__name__)

EMPTY_MESSAGE_RESPONSE = "Please tell me what you'd like to remember! 💭"
NOT_UNDERSTOOD_RESPONSE = (
    "🤔 Didn't catch that. Try: 'remind me to call mom every Tuesday at 2pm #family urgent'."
)
PARSE_ERROR_RESPONSE = "⚠️ Sorry, I couldn't parse that. Try rephrasing."


@dataclass(frozen=True)
class Cues:
    """Attributes extracted from the raw message before any time parsing."""

    recurrence: RecurrenceDescriptor
    priority: Priority
    category: Category
    tags: tuple[str, ...]


def extract_cues(message: str) -> Cues:
    return Cues(
        recurrence=detect_recurrence(message),
        priority=detect_priority(message),
        category=detect_category(message),
        tags=tuple(extract_tags(message)),
    )


def strip_cues(text: str) -> str:
    """Remove recurrence, tag and priority phrases from text."""
    return strip_priority_cue(strip_tags(strip_recurrence(text)))


def clean_task(text: str) -> str:
    """Reduce text to the bare task description."""
    text = re.sub(r'\s+', ' ', strip_cues(text)).strip()
    text = LEADING_FILLER_PATTERN.sub('', text)

    previous = None
    while previous != text:
        previous = text
        text = text.strip(' .,!?;:-')
        text = TRAILING_CONNECTOR_PATTERN.sub('', text)

    return text


def _task_or_default(task: str) -> str:
    return task if len(task) >= 2 else FALLBACK_TASK_TEXT


def _confirmation(task: str, due_at: datetime, cues: Cues, lead: str) -> str:
    when = format_due(due_at)
    if cues.recurrence.is_recurring:
        return f'✅ {lead} "{task}" {describe_recurrence(cues.recurrence)} starting {when}.'
    return f'✅ {lead} "{task}" on {when}.'


def _remove_spans(text: str, spans: list[tuple[int, int]]) -> str:
    for start, end in sorted(spans, reverse=True):
        text = text[:start] + ' ' + text[end:]
    return text


def _success(task: str, due_at: datetime, confidence: int, cues: Cues, lead: str) -> ParseResult:
    due_at = first_occurrence(cues.recurrence, due_at)
    return ParseResult(
        task=task,
        due_at=due_at,
        success=True,
        confidence=confidence,
        recurrence=cues.recurrence,
        priority=cues.priority,
        category=cues.category,
        tags=cues.tags,
        response=_confirmation(task, due_at, cues, lead),
    )


def _failure(cues: Cues, response: str, task: str = '') -> ParseResult:
    return ParseResult(
        task=task,
        success=False,
        confidence=0,
        recurrence=cues.recurrence,
        priority=cues.priority,
        category=cues.category,
        tags=cues.tags,
        response=response,
    )


# Pipeline stages. Each returns a committed ParseResult or None to pass.

def fast_path_stage(message: str, reference: datetime, cues: Cues) -> ParseResult | None:
    """'remind me in 5 mins to call mom'."""
    match = FAST_PATH_PATTERN.search(message)
    if not match:
        return None

    amount = int(match.group(1))
    if match.group(2).lower().startswith('min'):
        due_at = reference + timedelta(minutes=amount)
    else:
        due_at = reference + timedelta(hours=amount)

    task = _task_or_default(clean_task(match.group(3)))
    return _success(task, due_at, CONFIDENCE_FAST_PATH, cues, "I'll remind you to")


def grammar_stage(message: str, reference: datetime, cues: Cues) -> ParseResult | None:
    """Find a date anywhere in the message.

    Literal time rules run over the message without its cues first, so
    clock times, weekdays and days of the month never reach the general
    date grammar.
    """
    text = re.sub(r'\s+', ' ', strip_cues(message)).strip()
    ruled = match_time_rules(text, reference)
    if ruled:
        due_at, spans = ruled
        task = _task_or_default(clean_task(_remove_spans(text, spans)))
        return _success(task, due_at, CONFIDENCE_GRAMMAR, cues, "I'll remind you about")

    spaced = space_meridiem(message)
    found = search_grammar(spaced, reference)
    if not found:
        return None

    fragment, due_at = found
    task = _task_or_default(clean_task(spaced.replace(fragment, ' ', 1)))
    return _success(task, due_at, CONFIDENCE_GRAMMAR, cues, "I'll remind you about")


def coarse_stage(message: str, reference: datetime, cues: Cues) -> ParseResult | None:
    """Structural fallbacks; the first pattern that yields a task decides."""
    text = re.sub(r'\s+', ' ', strip_cues(message)).strip()

    for coarse in COARSE_PATTERNS:
        match = coarse.regex.match(text)
        if not match:
            continue

        task = clean_task(match.group(1))
        if not task:
            continue

        time_text = match.group(coarse.time_group) if coarse.time_group else None
        due_at = resolve_datetime(time_text, reference) if time_text else None

        if due_at is None:
            return _failure(cues, f'🕒 Got it! When should I remind you about "{task}"?', task=task)

        return _success(task, due_at, CONFIDENCE_FALLBACK, cues, "Got it! I'll remind you about")

    return None


STAGES = [fast_path_stage, grammar_stage, coarse_stage]


def parse_reminder(message: str, reference: datetime | None = None) -> ParseResult:
    """Parse natural language text into a ParseResult.

    Pipeline:
    1. Extract recurrence, priority, category and tags from the raw message
    2. Fast path: "remind me in N minutes/hours to <task>"
    3. Literal time rules, then the general date grammar, over the message
    4. Coarse structural patterns with the date resolver
    5. Give up with a prompt for the user

    Never raises: failures come back as success=False with a response
    the caller can show as-is.

    Args:
        message: Natural language reminder text
        reference: Instant relative dates are resolved against (defaults to now)

    Returns:
        ParseResult with extracted components and confidence score
    """
    if reference is None:
        reference = local_now()

    text = (message or '').strip()
    if not text:
        return _failure(Cues(RecurrenceDescriptor(), 'medium', 'personal', ()), EMPTY_MESSAGE_RESPONSE)

    cues = extract_cues(text)

    try:
        for stage in STAGES:
            result = stage(text, reference, cues)
            if result is not None:
                logger.debug(f"Parsed {text!r} via {stage.__name__} (confidence {result.confidence})")
                return result
    except Exception:
        logger.exception(f"Unexpected error parsing {text!r}")
        return _failure(cues, PARSE_ERROR_RESPONSE)

    return _failure(cues, NOT_UNDERSTOOD_RESPONSE)
