"""Turning a user's message into a stored reminder."""

import logging
from dataclasses import replace
from datetime import datetime

from taskping.db.models import ParseResult, Reminder
from taskping.db.repository import Repository
from taskping.engine.recurrence import first_occurrence
from taskping.engine.scoring import apply_smart_priority
from taskping.parser.nlp import parse_reminder
from taskping.utils.time_utils import to_utc

logger = logging.getLogger(__name__)


def build_reminder(result: ParseResult, user_id: int, message: str) -> Reminder:
    """Reminder record for a successful parse (template if recurring).

    A custom weekday template starts on the first of its weekdays at or
    after the parsed due time.
    """
    if not result.success or result.due_at is None:
        raise ValueError("Only successful parses with a due time become reminders")

    return Reminder(
        user_id=user_id,
        task=result.task,
        due_at=to_utc(first_occurrence(result.recurrence, result.due_at)),
        original_message=message,
        category=result.category,
        tags=list(result.tags),
        priority=result.priority,
        recurrence=replace(result.recurrence, days_of_week=list(result.recurrence.days_of_week)),
    )


async def add_reminder(
    repo: Repository,
    user_id: int,
    message: str,
    now: datetime,
    tz: str | None = None,
) -> tuple[ParseResult, Reminder | None]:
    """Parse a message and store the reminder it describes.

    Args:
        repo: Reminder store
        user_id: Owner of the new reminder
        message: The user's text
        now: Reference instant for relative dates and the initial score
        tz: Timezone for reading the due hour when scoring

    Returns:
        (parse result, stored reminder) - the reminder is None when the
        parse failed and the result's response asks the user for more
    """
    result = parse_reminder(message, now)
    if not result.success:
        return result, None

    reminder = build_reminder(result, user_id, message)
    apply_smart_priority(reminder, now, tz)
    stored = await repo.create_reminder(reminder)

    kind = "recurring template" if stored.is_template else "reminder"
    logger.info(f"Created {kind} {stored.id} for user {user_id} (score {stored.smart_priority.score})")
    return result, stored
