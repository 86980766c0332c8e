"""Tests for the recurrence materializer."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from taskping.db.models import RecurrenceDescriptor, Reminder
from taskping.engine.materializer import RecurrenceMaterializer, SweepReport

UTC = ZoneInfo("UTC")
NOW = datetime(2026, 3, 4, 14, 30, tzinfo=UTC)


async def _create_template(repo, task="Gym", pattern="daily", due_at=None, **recurrence) -> Reminder:
    return await repo.create_reminder(
        Reminder(
            user_id=1,
            task=task,
            due_at=due_at or NOW - timedelta(hours=1),
            category="health",
            tags=["fitness"],
            priority="high",
            recurrence=RecurrenceDescriptor(is_recurring=True, pattern=pattern, **recurrence),
        )
    )


async def _instances(repo, template_id):
    return [r for r in await repo.find_reminders(user_id=1) if r.recurrence.parent_id == template_id]


@pytest.mark.asyncio
async def test_sweep_creates_next_occurrence(repo, clock):
    """A due template gets its next occurrence as a concrete reminder."""
    template = await _create_template(repo)
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")

    report = await materializer.sweep()

    assert report.templates == 1
    assert len(report.created) == 1

    instance = await repo.get_reminder(report.created[0])
    assert instance.due_at == datetime(2026, 3, 5, 13, 30, tzinfo=UTC)
    assert instance.recurrence.parent_id == template.id
    assert not instance.recurrence.is_recurring
    assert (instance.task, instance.category, instance.priority) == ("Gym", "health", "high")
    assert instance.tags == ["fitness"]
    assert instance.smart_priority.last_calculated == NOW

    advanced = await repo.get_reminder(template.id)
    assert advanced.recurrence.current_occurrence == 2
    assert advanced.recurrence.next_due_at == instance.due_at


@pytest.mark.asyncio
async def test_repeated_sweeps_create_one_occurrence(repo, clock):
    """Back-to-back sweeps leave exactly one pending occurrence."""
    template = await _create_template(repo)
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")

    await materializer.sweep()
    second = await materializer.sweep()

    assert second.created == []
    assert second.deferred == 1
    assert len(await _instances(repo, template.id)) == 1


@pytest.mark.asyncio
async def test_stale_template_does_not_duplicate(repo, clock):
    """Two passes over the same template state create one instance."""
    template = await _create_template(repo)
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")
    report = SweepReport()

    await materializer._process_template(template, NOW, report)
    await materializer._process_template(template, NOW, report)

    assert len(report.created) == 1
    assert report.skipped == 1
    assert len(await _instances(repo, template.id)) == 1
    assert (await repo.get_reminder(template.id)).recurrence.current_occurrence == 2


@pytest.mark.asyncio
async def test_series_progresses_as_time_passes(repo, clock):
    """Once the pending occurrence is due, the next one is created."""
    template = await _create_template(repo)
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")

    await materializer.sweep()
    clock.now = datetime(2026, 3, 5, 14, 0, tzinfo=UTC)
    report = await materializer.sweep()

    assert len(report.created) == 1
    created = await repo.get_reminder(report.created[0])
    assert created.due_at == datetime(2026, 3, 6, 13, 30, tzinfo=UTC)
    assert len(await _instances(repo, template.id)) == 2
    assert (await repo.get_reminder(template.id)).recurrence.current_occurrence == 3


@pytest.mark.asyncio
async def test_max_occurrences_exhausts_template(repo, clock):
    """A template that reached its cap is retired without a new instance."""
    template = await _create_template(repo, max_occurrences=3, current_occurrence=3)
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")

    report = await materializer.sweep()

    assert report.exhausted == [template.id]
    assert report.created == []
    assert (await repo.get_reminder(template.id)).recurrence.exhausted

    # Never swept again
    assert (await materializer.sweep()).templates == 0


@pytest.mark.asyncio
async def test_end_date_exhausts_template(repo, clock):
    """No occurrence is created past the end date."""
    template = await _create_template(repo, end_date=NOW + timedelta(hours=2))
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")

    report = await materializer.sweep()

    assert report.exhausted == [template.id]
    assert await _instances(repo, template.id) == []


@pytest.mark.asyncio
async def test_lookahead_horizon(repo, clock):
    """Occurrences beyond the look-ahead window wait for a later sweep."""
    monthly = await _create_template(repo, "Rent", pattern="monthly")
    weekly = await _create_template(repo, "Review", pattern="weekly")

    short = RecurrenceMaterializer(repo, clock=clock, lookahead_days=3, tz="UTC")
    report = await short.sweep()
    assert report.created == []
    assert report.deferred == 2

    week = RecurrenceMaterializer(repo, clock=clock, lookahead_days=7, tz="UTC")
    report = await week.sweep()
    assert len(report.created) == 1
    assert await _instances(repo, monthly.id) == []
    assert len(await _instances(repo, weekly.id)) == 1


@pytest.mark.asyncio
async def test_custom_weekdays(repo, clock):
    """Custom templates land on the next listed weekday."""
    template = await _create_template(repo, pattern="custom", days_of_week=[1, 4])
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")

    report = await materializer.sweep()

    instance = await repo.get_reminder(report.created[0])
    assert instance.due_at.date() == date(2026, 3, 5)  # Thursday
    assert instance.recurrence.parent_id == template.id


@pytest.mark.asyncio
async def test_failing_template_does_not_stop_sweep(repo, clock, monkeypatch):
    """One broken template is reported, the rest are processed."""
    bad = await _create_template(repo, "Broken")
    good = await _create_template(repo, "Fine")

    find_instance = repo.find_instance

    async def flaky_find_instance(parent_id, day):
        if parent_id == bad.id:
            raise RuntimeError("disk on fire")
        return await find_instance(parent_id, day)

    monkeypatch.setattr(repo, "find_instance", flaky_find_instance)
    materializer = RecurrenceMaterializer(repo, clock=clock, tz="UTC")

    report = await materializer.sweep()

    assert report.failed == [bad.id]
    assert len(report.created) == 1
    assert len(await _instances(repo, good.id)) == 1
    assert (await repo.get_reminder(bad.id)).recurrence.current_occurrence == 1
