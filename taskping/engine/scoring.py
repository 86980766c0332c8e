"""Smart priority scoring."""

from datetime import datetime

from taskping.db.models import Interactions, PriorityFactors, Reminder, SmartPriority
from taskping.utils.constants import (
    IMPORTANCE_BY_PRIORITY,
    SCORE_WEIGHTS,
    URGENCY_FLOOR,
    URGENCY_STEPS,
    WORK_HOURS,
)
from taskping.utils.time_utils import UTC, from_utc, hours_until


def urgency_factor(due_at: datetime, now: datetime) -> int:
    """Step function of hours until due; overdue counts as most urgent."""
    hours = hours_until(due_at, now)
    for threshold, urgency in URGENCY_STEPS:
        if hours < threshold:
            return urgency
    return URGENCY_FLOOR


def importance_factor(priority: str) -> int:
    return IMPORTANCE_BY_PRIORITY.get(priority, IMPORTANCE_BY_PRIORITY["medium"])


def user_behavior_factor(interactions: Interactions) -> int:
    """Signal from how the user has treated the reminder.

    The checks run in a fixed order and the last one that applies wins:
    snoozes > 3 -> 20, views > 5 -> 80, edits > 2 -> 70.
    """
    # TODO: replace the override order with an explicit precedence rule
    # once ranking feedback shows which signal should dominate.
    behavior = 50
    if interactions.snoozes > 3:
        behavior = 20
    if interactions.views > 5:
        behavior = 80
    if interactions.edits > 2:
        behavior = 70
    return behavior


def time_of_day_factor(category: str, due_at: datetime, tz: str | None = None) -> int:
    """Work reminders due inside work hours get a boost."""
    start, end = WORK_HOURS
    if category == "work" and start <= from_utc(due_at, tz).hour <= end:
        return 80
    return 50


def compute_smart_priority(
    reminder: Reminder, now: datetime | None = None, tz: str | None = None
) -> SmartPriority:
    """Compute the 0-100 urgency score for a reminder.

    Pure: depends only on the reminder's due time, priority, category and
    interaction counters, plus now.

    Args:
        reminder: The reminder to score
        now: Current time, defaults to now (UTC)
        tz: Timezone used to read the due hour (defaults to local)

    Returns:
        SmartPriority with the weighted score and its factor breakdown
    """
    if now is None:
        now = datetime.now(UTC)

    factors = PriorityFactors(
        urgency=urgency_factor(reminder.due_at, now),
        importance=importance_factor(reminder.priority),
        user_behavior=user_behavior_factor(reminder.interactions),
        time_of_day=time_of_day_factor(reminder.category, reminder.due_at, tz),
    )

    weighted = (
        factors.urgency * SCORE_WEIGHTS["urgency"]
        + factors.importance * SCORE_WEIGHTS["importance"]
        + factors.user_behavior * SCORE_WEIGHTS["user_behavior"]
        + factors.time_of_day * SCORE_WEIGHTS["time_of_day"]
    )
    score = max(0, min(100, round(weighted)))

    return SmartPriority(score=score, factors=factors, last_calculated=now)


def apply_smart_priority(
    reminder: Reminder, now: datetime | None = None, tz: str | None = None
) -> SmartPriority:
    """Score a reminder and overwrite its smart_priority in place."""
    reminder.smart_priority = compute_smart_priority(reminder, now, tz)
    return reminder.smart_priority
