"""Tests for the SQLite repository."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from taskping.db.models import Interactions, RecurrenceDescriptor, Reminder, SmartPriority
from taskping.db.migrations import MIGRATIONS, run_migrations

UTC = ZoneInfo("UTC")
NOW = datetime(2026, 3, 4, 14, 30, tzinfo=UTC)


def _reminder(task="Call mom", hours=2, user_id=1, **kwargs) -> Reminder:
    return Reminder(user_id=user_id, task=task, due_at=NOW + timedelta(hours=hours), **kwargs)


def _template(task="Gym", pattern="daily", **kwargs) -> Reminder:
    return _reminder(task, recurrence=RecurrenceDescriptor(is_recurring=True, pattern=pattern, **kwargs))


@pytest.mark.asyncio
async def test_migrations_are_idempotent(tmp_path):
    """Running migrations twice leaves the latest version."""
    db_path = tmp_path / "again.db"
    latest = MIGRATIONS[-1][0]

    assert await run_migrations(db_path) == latest
    assert await run_migrations(db_path) == latest


@pytest.mark.asyncio
async def test_create_and_get_reminder(repo):
    """Test a full round trip through the database."""
    stored = await repo.create_reminder(
        _reminder(
            "Pay rent",
            category="finance",
            priority="urgent",
            tags=["home", "bills"],
            original_message="pay rent urgent #home #bills",
        )
    )

    assert stored.id is not None
    assert stored.created_at is not None

    fetched = await repo.get_reminder(stored.id)
    assert fetched.task == "Pay rent"
    assert fetched.due_at == NOW + timedelta(hours=2)
    assert fetched.category == "finance"
    assert fetched.priority == "urgent"
    assert fetched.tags == ["home", "bills"]
    assert fetched.original_message == "pay rent urgent #home #bills"
    assert not fetched.completed
    assert not fetched.recurrence.is_recurring

    assert await repo.get_reminder(9999) is None


@pytest.mark.asyncio
async def test_non_recurring_reminders_drop_recurrence_fields(repo):
    """Recurrence details are cleared unless the reminder recurs."""
    reminder = _reminder(recurrence=RecurrenceDescriptor(is_recurring=False, pattern="weekly", interval=3))
    stored = await repo.create_reminder(reminder)

    assert stored.recurrence.pattern is None
    assert stored.recurrence.interval == 1


@pytest.mark.asyncio
async def test_template_round_trip(repo):
    """Recurrence descriptors survive storage."""
    end = NOW + timedelta(days=30)
    stored = await repo.create_reminder(
        _template(pattern="custom", days_of_week=[1, 4], end_date=end, max_occurrences=5)
    )

    recurrence = stored.recurrence
    assert stored.is_template
    assert recurrence.pattern == "custom"
    assert recurrence.days_of_week == [1, 4]
    assert recurrence.end_date == end
    assert recurrence.max_occurrences == 5
    assert recurrence.current_occurrence == 1
    assert recurrence.next_due_at is None
    assert not recurrence.exhausted


@pytest.mark.asyncio
async def test_create_instance_once_per_day(repo):
    """A second instance for the same template and day is refused."""
    template = await repo.create_reminder(_template())
    day = date(2026, 3, 5)

    first = await repo.create_instance(_reminder("Gym", recurrence=RecurrenceDescriptor(parent_id=template.id)), day)
    second = await repo.create_instance(_reminder("Gym", recurrence=RecurrenceDescriptor(parent_id=template.id)), day)

    assert first is not None
    assert first.is_instance
    assert second is None
    assert (await repo.find_instance(template.id, day)).id == first.id
    assert await repo.find_instance(template.id, date(2026, 3, 6)) is None

    with pytest.raises(ValueError):
        await repo.create_instance(_reminder("Orphan"), day)


@pytest.mark.asyncio
async def test_find_reminders_filters_and_order(repo):
    """Test filtering and the sort orders."""
    low = await repo.create_reminder(_reminder("Low", hours=5, priority="low", smart_priority=SmartPriority(score=20)))
    high = await repo.create_reminder(_reminder("High", hours=10, priority="high", category="work", smart_priority=SmartPriority(score=90)))
    await repo.create_reminder(_reminder("Past", hours=-3))
    await repo.create_reminder(_reminder("Other user", user_id=2))

    by_due = await repo.find_reminders(user_id=1, due_after=NOW)
    assert [r.task for r in by_due] == ["Low", "High"]

    by_score = await repo.find_reminders(user_id=1, order_by="score")
    assert by_score[0].id == high.id

    assert [r.id for r in await repo.find_reminders(user_id=1, category="work")] == [high.id]
    assert [r.id for r in await repo.find_reminders(user_id=1, priority="low")] == [low.id]
    assert len(await repo.find_reminders(user_id=1, limit=2)) == 2

    with pytest.raises(ValueError):
        await repo.find_reminders(order_by="random")


@pytest.mark.asyncio
async def test_set_completed_and_count(repo):
    """Completion stamps completed_at and shows up in counts."""
    reminder = await repo.create_reminder(_reminder())

    assert await repo.set_completed(reminder.id, True, NOW)
    done = await repo.get_reminder(reminder.id)
    assert done.completed
    assert done.completed_at == NOW

    assert await repo.count_reminders(1, completed=True) == 1
    assert await repo.count_reminders(1, completed=False) == 0

    assert await repo.set_completed(reminder.id, False, NOW)
    reopened = await repo.get_reminder(reminder.id)
    assert not reopened.completed
    assert reopened.completed_at is None

    assert not await repo.set_completed(9999, True, NOW)


@pytest.mark.asyncio
async def test_delete_reminder(repo):
    """Test deleting a reminder."""
    reminder = await repo.create_reminder(_reminder())

    assert await repo.delete_reminder(reminder.id)
    assert await repo.get_reminder(reminder.id) is None
    assert not await repo.delete_reminder(reminder.id)


@pytest.mark.asyncio
async def test_active_templates(repo):
    """Exhausted, completed and ended templates are not active."""
    active = await repo.create_reminder(_template("Active"))
    exhausted = await repo.create_reminder(_template("Exhausted"))
    done = await repo.create_reminder(_template("Done"))
    await repo.create_reminder(_template("Ended", end_date=NOW - timedelta(days=1)))
    await repo.create_reminder(_reminder("One-shot"))

    await repo.mark_exhausted(exhausted.id, NOW)
    await repo.set_completed(done.id, True, NOW)

    templates = await repo.get_active_templates(NOW)
    assert [t.id for t in templates] == [active.id]


@pytest.mark.asyncio
async def test_advance_template_only_moves_forward(repo):
    """Advancing to the same occurrence twice is a no-op."""
    template = await repo.create_reminder(_template())
    next_due = NOW + timedelta(days=1)

    assert await repo.advance_template(template.id, next_due, NOW)
    assert not await repo.advance_template(template.id, next_due, NOW)
    assert not await repo.advance_template(template.id, NOW, NOW)

    stored = await repo.get_reminder(template.id)
    assert stored.recurrence.current_occurrence == 2
    assert stored.recurrence.next_due_at == next_due


@pytest.mark.asyncio
async def test_update_smart_priorities(repo):
    """Scores for many reminders are written in one batch."""
    first = await repo.create_reminder(_reminder("First"))
    second = await repo.create_reminder(_reminder("Second"))

    first.smart_priority = SmartPriority(score=77, last_calculated=NOW)
    second.smart_priority = SmartPriority(score=12, last_calculated=NOW)

    assert await repo.update_smart_priorities([first, second]) == 2
    assert await repo.update_smart_priorities([]) == 0

    assert (await repo.get_reminder(first.id)).smart_priority.score == 77
    stored = await repo.get_reminder(second.id)
    assert stored.smart_priority.score == 12
    assert stored.smart_priority.last_calculated == NOW


@pytest.mark.asyncio
async def test_record_interaction(repo):
    """Counters bump and last_viewed is stamped."""
    reminder = await repo.create_reminder(_reminder(interactions=Interactions(views=2)))

    assert await repo.record_interaction(reminder.id, "view", NOW)
    assert await repo.record_interaction(reminder.id, "snooze", NOW)
    assert await repo.record_interaction(reminder.id, "complete", NOW, completion_time_minutes=12.5)

    interactions = (await repo.get_reminder(reminder.id)).interactions
    assert interactions.views == 3
    assert interactions.snoozes == 1
    assert interactions.edits == 0
    assert interactions.completion_time_minutes == 12.5
    assert interactions.last_viewed == NOW

    assert not await repo.record_interaction(9999, "view", NOW)
    with pytest.raises(ValueError):
        await repo.record_interaction(reminder.id, "poke", NOW)
