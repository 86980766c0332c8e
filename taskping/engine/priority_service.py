"""Smart priority service - keeps urgency scores fresh and tracks interactions."""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List

from taskping.db.models import Reminder
from taskping.db.repository import Repository
from taskping.engine.scoring import apply_smart_priority
from taskping.engine.ticker import Sleep, Ticker
from taskping.utils.constants import DEFAULT_INBOX_LIMIT
from taskping.utils.error_handler import log_item_error
from taskping.utils.time_utils import UTC

logger = logging.getLogger(__name__)

INTERACTION_KINDS = ("view", "snooze", "edit", "complete")


class PriorityRecomputeService:
    """Rescores every open reminder on a fixed interval."""

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        interval: float = 1800,
        first: float = 2,
        tz: str | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.repo = repo
        self.clock = clock
        self.tz = tz
        self.ticker = Ticker("priority-recompute", interval, self.recalculate_all, first=first, sleep=sleep)

    def start(self) -> None:
        logger.info("Starting smart priority service...")
        self.ticker.start()

    async def stop(self) -> None:
        await self.ticker.stop()

    async def recalculate_all(self) -> int:
        """Rescore all open, not-yet-due reminders and persist in one batch."""
        now = self.clock()
        reminders = await self.repo.find_reminders(completed=False, due_after=now)
        updated = await self._rescore(reminders, now)
        logger.info(f"Updated {updated} priority scores")
        return updated

    async def recalculate_user(self, user_id: int) -> int:
        """Rescore one user's open reminders."""
        now = self.clock()
        reminders = await self.repo.find_reminders(user_id=user_id, completed=False, due_after=now)
        return await self._rescore(reminders, now)

    async def _rescore(self, reminders: List[Reminder], now: datetime) -> int:
        scored = []
        for reminder in reminders:
            try:
                apply_smart_priority(reminder, now, self.tz)
                scored.append(reminder)
            except Exception as e:
                log_item_error("priority-recompute", f"reminder {reminder.id}", e)
        return await self.repo.update_smart_priorities(scored)

    async def inbox(
        self,
        user_id: int,
        limit: int = DEFAULT_INBOX_LIMIT,
        category: str | None = None,
        priority: str | None = None,
    ) -> List[Reminder]:
        """A user's open reminders, most urgent first.

        Scores are refreshed before ranking. "all" (or None) disables a filter.
        """
        await self.recalculate_user(user_id)
        return await self.repo.find_reminders(
            user_id=user_id,
            completed=False,
            due_after=self.clock(),
            category=None if category in (None, "all") else category,
            priority=None if priority in (None, "all") else priority,
            order_by="score",
            limit=limit,
        )

    async def track_interaction(self, reminder_id: int, kind: str, payload: dict | None = None) -> bool:
        """Record a user action on a reminder.

        Does not rescore; the next periodic tick picks the change up.

        Args:
            reminder_id: Reminder acted on
            kind: view, snooze, edit or complete
            payload: For complete, {"completion_time": minutes}

        Returns:
            True if the reminder exists
        """
        if kind not in INTERACTION_KINDS:
            raise ValueError(f"Unknown interaction kind: {kind}")

        completion_time = None
        if kind == "complete" and payload:
            completion_time = payload.get("completion_time")
            if completion_time is not None and completion_time < 0:
                raise ValueError("completion_time must be non-negative")

        found = await self.repo.record_interaction(
            reminder_id, kind, self.clock(), completion_time_minutes=completion_time
        )
        if not found:
            logger.warning(f"Interaction {kind} on unknown reminder {reminder_id}")
        return found
