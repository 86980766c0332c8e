"""Statistics for a user's reminders."""

from datetime import datetime

from taskping.db.repository import Repository
from taskping.utils.time_utils import day_bounds, local_day


async def get_user_stats(repo: Repository, user_id: int, now: datetime, tz: str | None = None) -> dict:
    """Get reminder counts for a user.

    Returns:
        Dict with total, today (due on now's local calendar day),
        upcoming (open and due after now) and completed counts
    """
    today_start, today_end = day_bounds(local_day(now, tz), tz)

    return {
        'total': await repo.count_reminders(user_id),
        'today': await repo.count_reminders(user_id, due_from=today_start, due_before=today_end),
        'upcoming': len(await repo.find_reminders(user_id=user_id, completed=False, due_after=now)),
        'completed': await repo.count_reminders(user_id, completed=True),
    }
