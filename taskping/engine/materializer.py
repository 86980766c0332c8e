"""Recurrence materializer - pre-creates occurrences of recurring reminders."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from taskping.db.models import RecurrenceDescriptor, Reminder
from taskping.db.repository import Repository
from taskping.engine.recurrence import next_occurrence
from taskping.engine.scoring import apply_smart_priority
from taskping.engine.ticker import Sleep, Ticker
from taskping.utils.constants import LOOKAHEAD_DAYS
from taskping.utils.error_handler import log_item_error
from taskping.utils.time_utils import UTC, local_day

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """What a single sweep did."""

    templates: int = 0
    created: list[int] = field(default_factory=list)
    skipped: int = 0  # occurrence already existed
    deferred: int = 0  # occurrence still pending, or beyond the look-ahead horizon
    exhausted: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


def build_instance(template: Reminder, due_at: datetime) -> Reminder:
    """Concrete one-shot reminder for one occurrence of a template."""
    return Reminder(
        user_id=template.user_id,
        task=template.task,
        description=template.description,
        due_at=due_at,
        original_message=template.original_message,
        category=template.category,
        tags=list(template.tags),
        priority=template.priority,
        recurrence=RecurrenceDescriptor(is_recurring=False, parent_id=template.id),
    )


class RecurrenceMaterializer:
    """Periodically turns recurring templates into concrete reminders.

    Each template is ACTIVE until its series runs out (end date passed or
    max occurrences reached), at which point it is marked exhausted and
    never swept again.
    """

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        interval: float = 3600,
        first: float = 5,
        lookahead_days: int = LOOKAHEAD_DAYS,
        tz: str | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.repo = repo
        self.clock = clock
        self.lookahead = timedelta(days=lookahead_days)
        self.tz = tz
        self.ticker = Ticker("recurrence-sweep", interval, self.sweep, first=first, sleep=sleep)

    def start(self) -> None:
        logger.info("Starting recurrence materializer...")
        self.ticker.start()

    async def stop(self) -> None:
        await self.ticker.stop()

    async def sweep(self) -> SweepReport:
        """Process every active template once."""
        now = self.clock()
        report = SweepReport()

        templates = await self.repo.get_active_templates(now)
        report.templates = len(templates)
        logger.info(f"Recurrence sweep: {len(templates)} active templates")

        for template in templates:
            try:
                await self._process_template(template, now, report)
            except Exception as e:
                report.failed.append(template.id)  # type: ignore[arg-type]
                log_item_error("recurrence-sweep", f"template {template.id}", e)

        if report.created or report.exhausted or report.failed:
            logger.info(
                f"Recurrence sweep done: created {len(report.created)}, "
                f"exhausted {len(report.exhausted)}, failed {len(report.failed)}"
            )
        return report

    async def _process_template(self, template: Reminder, now: datetime, report: SweepReport) -> None:
        last_due = template.recurrence.next_due_at or template.due_at
        next_due = next_occurrence(template.recurrence, last_due, self.tz)

        if next_due is None:
            await self.repo.mark_exhausted(template.id, now)  # type: ignore[arg-type]
            report.exhausted.append(template.id)  # type: ignore[arg-type]
            logger.info(f"Template {template.id} exhausted")
            return

        # At most one materialized occurrence waits in the future per template
        pending = template.recurrence.next_due_at
        if pending is not None and pending > now:
            report.deferred += 1
            return

        if next_due >= now + self.lookahead:
            report.deferred += 1
            return

        day = local_day(next_due, self.tz)
        existing = await self.repo.find_instance(template.id, day)  # type: ignore[arg-type]
        if existing is None:
            instance = build_instance(template, next_due)
            apply_smart_priority(instance, now, self.tz)
            created = await self.repo.create_instance(instance, day)
            if created is not None:
                report.created.append(created.id)  # type: ignore[arg-type]
                logger.info(f"Created occurrence {created.id} of template {template.id} for {day}")
            else:
                report.skipped += 1
        else:
            report.skipped += 1

        # Moves the template past this occurrence even when another sweep made it
        await self.repo.advance_template(template.id, next_due, now)  # type: ignore[arg-type]
