"""Database repository - all SQL queries."""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List

import aiosqlite

from taskping.db.models import (
    Interactions,
    PriorityFactors,
    RecurrenceDescriptor,
    Reminder,
    SmartPriority,
)
from taskping.utils.time_utils import to_utc

logger = logging.getLogger(__name__)

# Sort orders accepted by find_reminders
ORDER_BY = {
    "due": "due_at ASC, id ASC",
    "score": "score DESC, due_at ASC, id ASC",
    "created": "created_at DESC, id DESC",
}

INTERACTION_COLUMNS = {
    "view": "views",
    "snooze": "snoozes",
    "edit": "edits",
}


def _ts(dt: datetime | None) -> str | None:
    """Fixed-width UTC ISO timestamp, so text comparison orders correctly."""
    if dt is None:
        return None
    return to_utc(dt).isoformat(timespec="microseconds")


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class Repository:
    """Database access layer."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open database connection."""
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

    # Reminder operations

    async def create_reminder(self, reminder: Reminder) -> Reminder:
        """Insert a reminder (one-shot or recurring template)."""
        row = await self._insert(reminder, occurrence_day=None)
        if row is None:
            raise RuntimeError(f"Insert of reminder {reminder.task!r} returned no row")
        return self._row_to_reminder(row)

    async def create_instance(self, instance: Reminder, occurrence_day: date) -> Reminder | None:
        """Insert an occurrence instance unless one exists for its template and day.

        The (parent_id, occurrence_day) unique index makes this safe to call
        from overlapping sweeps.

        Returns:
            The stored instance, or None if the occurrence already existed
        """
        if instance.recurrence.parent_id is None:
            raise ValueError("Occurrence instance needs a parent template id")
        row = await self._insert(instance, occurrence_day=occurrence_day)
        return self._row_to_reminder(row) if row else None

    async def _insert(self, reminder: Reminder, occurrence_day: date | None) -> aiosqlite.Row | None:
        recurrence = reminder.recurrence
        recurrence.clear()
        smart = reminder.smart_priority
        interactions = reminder.interactions

        async with self.db.execute(
            """
            INSERT INTO reminders (
                user_id, task, description, due_at, original_message, category, tags, priority,
                is_recurring, recurrence_pattern, recurrence_interval, days_of_week, end_date,
                max_occurrences, current_occurrence, parent_id, occurrence_day, next_due_at,
                exhausted, score, urgency, importance, user_behavior, time_of_day,
                score_calculated_at, views, snoozes, edits, completion_time_minutes, last_viewed,
                completed, completed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?,
                      ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (parent_id, occurrence_day) DO NOTHING
            RETURNING *
            """,
            (
                reminder.user_id,
                reminder.task,
                reminder.description,
                _ts(reminder.due_at),
                reminder.original_message,
                reminder.category,
                json.dumps(list(reminder.tags)),
                reminder.priority,
                1 if recurrence.is_recurring else 0,
                recurrence.pattern,
                recurrence.interval,
                json.dumps(list(recurrence.days_of_week)),
                _ts(recurrence.end_date),
                recurrence.max_occurrences,
                recurrence.current_occurrence,
                recurrence.parent_id,
                occurrence_day.isoformat() if occurrence_day else None,
                _ts(recurrence.next_due_at),
                1 if recurrence.exhausted else 0,
                smart.score,
                smart.factors.urgency,
                smart.factors.importance,
                smart.factors.user_behavior,
                smart.factors.time_of_day,
                _ts(smart.last_calculated),
                interactions.views,
                interactions.snoozes,
                interactions.edits,
                interactions.completion_time_minutes,
                _ts(interactions.last_viewed),
                1 if reminder.completed else 0,
                _ts(reminder.completed_at),
            ),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        return row

    async def get_reminder(self, reminder_id: int) -> Reminder | None:
        """Get a reminder by ID."""
        async with self.db.execute(
            "SELECT * FROM reminders WHERE id = ?", (reminder_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_reminder(row)
            return None

    async def find_reminders(
        self,
        user_id: int | None = None,
        completed: bool | None = None,
        due_after: datetime | None = None,
        due_before: datetime | None = None,
        category: str | None = None,
        priority: str | None = None,
        order_by: str = "due",
        limit: int | None = None,
    ) -> List[Reminder]:
        """Find reminders matching every given filter.

        Args:
            due_after: Exclusive lower bound on due_at
            due_before: Exclusive upper bound on due_at
            order_by: One of ORDER_BY's keys
            limit: Maximum number of rows
        """
        if order_by not in ORDER_BY:
            raise ValueError(f"Unknown sort order: {order_by}")

        clauses = []
        params: list = []

        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        if completed is not None:
            clauses.append("completed = ?")
            params.append(1 if completed else 0)
        if due_after is not None:
            clauses.append("due_at > ?")
            params.append(_ts(due_after))
        if due_before is not None:
            clauses.append("due_at < ?")
            params.append(_ts(due_before))
        if category is not None:
            clauses.append("category = ?")
            params.append(category)
        if priority is not None:
            clauses.append("priority = ?")
            params.append(priority)

        query = "SELECT * FROM reminders"
        if clauses:
            query += f" WHERE {' AND '.join(clauses)}"
        query += f" ORDER BY {ORDER_BY[order_by]}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        async with self.db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    async def count_reminders(
        self,
        user_id: int,
        completed: bool | None = None,
        due_from: datetime | None = None,
        due_before: datetime | None = None,
    ) -> int:
        """Count a user's reminders, due_from inclusive and due_before exclusive."""
        clauses = ["user_id = ?"]
        params: list = [user_id]

        if completed is not None:
            clauses.append("completed = ?")
            params.append(1 if completed else 0)
        if due_from is not None:
            clauses.append("due_at >= ?")
            params.append(_ts(due_from))
        if due_before is not None:
            clauses.append("due_at < ?")
            params.append(_ts(due_before))

        async with self.db.execute(
            f"SELECT COUNT(*) FROM reminders WHERE {' AND '.join(clauses)}", params
        ) as cursor:
            row = await cursor.fetchone()
            return row[0]

    async def set_completed(self, reminder_id: int, completed: bool, now: datetime) -> bool:
        """Mark a reminder done (or not done again)."""
        cursor = await self.db.execute(
            """
            UPDATE reminders SET
                completed = ?,
                completed_at = CASE WHEN ? THEN COALESCE(completed_at, ?) ELSE NULL END,
                updated_at = ?
            WHERE id = ?
            """,
            (1 if completed else 0, 1 if completed else 0, _ts(now), _ts(now), reminder_id),
        )
        await self.db.commit()
        return cursor.rowcount > 0

    async def delete_reminder(self, reminder_id: int) -> bool:
        """Delete a reminder."""
        cursor = await self.db.execute("DELETE FROM reminders WHERE id = ?", (reminder_id,))
        await self.db.commit()
        return cursor.rowcount > 0

    # Recurrence operations

    async def get_active_templates(self, now: datetime) -> List[Reminder]:
        """Recurring templates that may still produce occurrences."""
        async with self.db.execute(
            """
            SELECT * FROM reminders
            WHERE is_recurring = 1
            AND exhausted = 0
            AND completed = 0
            AND (end_date IS NULL OR end_date > ?)
            ORDER BY id
            """,
            (_ts(now),),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    async def find_instance(self, parent_id: int, occurrence_day: date) -> Reminder | None:
        """Get a template's instance for a calendar day, if it exists."""
        async with self.db.execute(
            "SELECT * FROM reminders WHERE parent_id = ? AND occurrence_day = ?",
            (parent_id, occurrence_day.isoformat()),
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_reminder(row)
            return None

    async def advance_template(self, template_id: int, next_due_at: datetime, now: datetime) -> bool:
        """Record that the occurrence at next_due_at has been materialized.

        Compare-and-set: the template only moves forward, so a second sweep
        advancing to the same occurrence is a no-op.

        Returns:
            True if the template was advanced
        """
        cursor = await self.db.execute(
            """
            UPDATE reminders SET
                current_occurrence = current_occurrence + 1,
                next_due_at = ?,
                updated_at = ?
            WHERE id = ?
            AND (next_due_at IS NULL OR next_due_at < ?)
            """,
            (_ts(next_due_at), _ts(now), template_id, _ts(next_due_at)),
        )
        await self.db.commit()
        return cursor.rowcount > 0

    async def mark_exhausted(self, template_id: int, now: datetime) -> None:
        """Retire a template that will produce no more occurrences."""
        await self.db.execute(
            "UPDATE reminders SET exhausted = 1, updated_at = ? WHERE id = ?",
            (_ts(now), template_id),
        )
        await self.db.commit()

    # Smart priority operations

    async def update_smart_priorities(self, reminders: Iterable[Reminder]) -> int:
        """Persist the smart_priority of many reminders in one transaction."""
        rows = [
            (
                r.smart_priority.score,
                r.smart_priority.factors.urgency,
                r.smart_priority.factors.importance,
                r.smart_priority.factors.user_behavior,
                r.smart_priority.factors.time_of_day,
                _ts(r.smart_priority.last_calculated),
                r.id,
            )
            for r in reminders
        ]
        if not rows:
            return 0

        await self.db.executemany(
            """
            UPDATE reminders SET
                score = ?,
                urgency = ?,
                importance = ?,
                user_behavior = ?,
                time_of_day = ?,
                score_calculated_at = ?
            WHERE id = ?
            """,
            rows,
        )
        await self.db.commit()
        return len(rows)

    async def record_interaction(
        self,
        reminder_id: int,
        kind: str,
        now: datetime,
        completion_time_minutes: float | None = None,
    ) -> bool:
        """Bump an interaction counter and stamp last_viewed.

        Args:
            kind: view, snooze, edit or complete
            completion_time_minutes: Stored for complete interactions when given
        """
        assignments = ["last_viewed = ?"]
        params: list = [_ts(now)]

        if kind in INTERACTION_COLUMNS:
            column = INTERACTION_COLUMNS[kind]
            assignments.append(f"{column} = {column} + 1")
        elif kind == "complete":
            if completion_time_minutes is not None:
                assignments.append("completion_time_minutes = ?")
                params.append(completion_time_minutes)
        else:
            raise ValueError(f"Unknown interaction kind: {kind}")

        params.append(reminder_id)
        cursor = await self.db.execute(
            f"UPDATE reminders SET {', '.join(assignments)} WHERE id = ?", params
        )
        await self.db.commit()
        return cursor.rowcount > 0

    # Helper methods

    def _row_to_reminder(self, row: aiosqlite.Row) -> Reminder:
        """Convert a database row to a Reminder object."""
        return Reminder(
            id=row["id"],
            user_id=row["user_id"],
            task=row["task"],
            description=row["description"],
            due_at=datetime.fromisoformat(row["due_at"]),
            original_message=row["original_message"],
            category=row["category"],
            tags=json.loads(row["tags"]),
            priority=row["priority"],
            recurrence=RecurrenceDescriptor(
                is_recurring=bool(row["is_recurring"]),
                pattern=row["recurrence_pattern"],
                interval=row["recurrence_interval"],
                days_of_week=json.loads(row["days_of_week"]),
                end_date=_dt(row["end_date"]),
                max_occurrences=row["max_occurrences"],
                current_occurrence=row["current_occurrence"],
                parent_id=row["parent_id"],
                next_due_at=_dt(row["next_due_at"]),
                exhausted=bool(row["exhausted"]),
            ),
            smart_priority=SmartPriority(
                score=row["score"],
                factors=PriorityFactors(
                    urgency=row["urgency"],
                    importance=row["importance"],
                    user_behavior=row["user_behavior"],
                    time_of_day=row["time_of_day"],
                ),
                last_calculated=_dt(row["score_calculated_at"]),
            ),
            interactions=Interactions(
                views=row["views"],
                snoozes=row["snoozes"],
                edits=row["edits"],
                completion_time_minutes=row["completion_time_minutes"],
                last_viewed=_dt(row["last_viewed"]),
            ),
            completed=bool(row["completed"]),
            completed_at=_dt(row["completed_at"]),
            created_at=_dt(row["created_at"]),
            updated_at=_dt(row["updated_at"]),
        )
