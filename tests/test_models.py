"""Tests for data models."""

from datetime import datetime
from zoneinfo import ZoneInfo

from taskping.db.models import RecurrenceDescriptor, Reminder

UTC = ZoneInfo("UTC")


def test_recurrence_clear():
    """Non-recurring descriptors drop their recurrence fields."""
    recurrence = RecurrenceDescriptor(
        is_recurring=False,
        pattern="weekly",
        interval=2,
        days_of_week=[1],
        max_occurrences=4,
        parent_id=3,
    )
    recurrence.clear()

    assert recurrence.pattern is None
    assert recurrence.interval == 1
    assert recurrence.days_of_week == []
    assert recurrence.max_occurrences is None
    # Instances keep their link to the template
    assert recurrence.parent_id == 3

    recurring = RecurrenceDescriptor(is_recurring=True, pattern="weekly", interval=2)
    recurring.clear()
    assert recurring.pattern == "weekly"
    assert recurring.interval == 2


def test_recurrence_dict_round_trip():
    """Optional keys are omitted and read back."""
    assert RecurrenceDescriptor().to_dict() == {"isRecurring": False, "pattern": None, "interval": 1}

    recurrence = RecurrenceDescriptor(
        is_recurring=True,
        pattern="custom",
        days_of_week=[1, 4],
        end_date=datetime(2026, 6, 1, tzinfo=UTC),
        max_occurrences=10,
    )
    data = recurrence.to_dict()
    assert data["daysOfWeek"] == [1, 4]
    assert data["maxOccurrences"] == 10

    assert RecurrenceDescriptor.from_dict(data) == recurrence


def test_reminder_roles():
    """Templates recur, instances point at a template."""
    due = datetime(2026, 3, 4, 9, 0, tzinfo=UTC)

    template = Reminder(user_id=1, task="Gym", due_at=due, recurrence=RecurrenceDescriptor(is_recurring=True, pattern="daily"))
    instance = Reminder(user_id=1, task="Gym", due_at=due, recurrence=RecurrenceDescriptor(parent_id=5))
    one_shot = Reminder(user_id=1, task="Call mom", due_at=due)

    assert template.is_template and not template.is_instance
    assert instance.is_instance and not instance.is_template
    assert not one_shot.is_template and not one_shot.is_instance
