"""Data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal


Priority = Literal["low", "medium", "high", "urgent"]
Category = Literal["work", "personal", "health", "finance", "shopping", "other"]
RecurrencePattern = Literal["daily", "weekly", "monthly", "yearly", "custom"]
InteractionKind = Literal["view", "snooze", "edit", "complete"]


@dataclass
class RecurrenceDescriptor:
    """How (and whether) a reminder repeats."""

    is_recurring: bool = False
    pattern: RecurrencePattern | None = None
    interval: int = 1
    days_of_week: list[int] = field(default_factory=list)  # 0=Sunday .. 6=Saturday
    end_date: datetime | None = None
    max_occurrences: int | None = None
    current_occurrence: int = 1
    parent_id: int | None = None  # set on occurrence instances
    next_due_at: datetime | None = None  # last materialized occurrence
    exhausted: bool = False

    def clear(self) -> None:
        """Drop recurrence-specific fields from a non-recurring reminder."""
        if self.is_recurring:
            return
        self.pattern = None
        self.interval = 1
        self.days_of_week = []
        self.end_date = None
        self.max_occurrences = None
        self.next_due_at = None
        self.exhausted = False

    def to_dict(self) -> dict:
        """Boundary representation (camelCase, optional keys omitted)."""
        data: dict = {
            "isRecurring": self.is_recurring,
            "pattern": self.pattern,
            "interval": self.interval,
        }
        if self.days_of_week:
            data["daysOfWeek"] = list(self.days_of_week)
        if self.end_date:
            data["endDate"] = self.end_date.isoformat()
        if self.max_occurrences is not None:
            data["maxOccurrences"] = self.max_occurrences
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceDescriptor":
        end_date = data.get("endDate")
        return cls(
            is_recurring=bool(data.get("isRecurring", False)),
            pattern=data.get("pattern"),
            interval=int(data.get("interval") or 1),
            days_of_week=list(data.get("daysOfWeek") or []),
            end_date=datetime.fromisoformat(end_date) if end_date else None,
            max_occurrences=data.get("maxOccurrences"),
        )


@dataclass
class PriorityFactors:
    """Per-factor breakdown of a smart priority score (each 0-100)."""

    urgency: int = 50
    importance: int = 50
    user_behavior: int = 50
    time_of_day: int = 50


@dataclass
class SmartPriority:
    """Derived urgency ranking for an open reminder."""

    score: int = 50
    factors: PriorityFactors = field(default_factory=PriorityFactors)
    last_calculated: datetime | None = None


@dataclass
class Interactions:
    """Counters of user actions on a reminder."""

    views: int = 0
    snoozes: int = 0
    edits: int = 0
    completion_time_minutes: float | None = None
    last_viewed: datetime | None = None


@dataclass
class Reminder:
    """A reminder owned by a single user."""

    user_id: int
    task: str
    due_at: datetime  # UTC
    original_message: str = ""
    description: str | None = None
    category: Category = "personal"
    tags: list[str] = field(default_factory=list)
    priority: Priority = "medium"
    recurrence: RecurrenceDescriptor = field(default_factory=RecurrenceDescriptor)
    smart_priority: SmartPriority = field(default_factory=SmartPriority)
    interactions: Interactions = field(default_factory=Interactions)
    completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: int | None = None

    @property
    def is_template(self) -> bool:
        return self.recurrence.is_recurring

    @property
    def is_instance(self) -> bool:
        return self.recurrence.parent_id is not None


@dataclass(frozen=True)
class ParseResult:
    """Result from natural language parsing."""

    task: str
    success: bool
    confidence: int  # 0-100 heuristic, not a probability
    response: str
    due_at: datetime | None = None
    recurrence: RecurrenceDescriptor = field(default_factory=RecurrenceDescriptor)
    priority: Priority = "medium"
    category: Category = "personal"
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Serialize to the boundary format handed to callers."""
        return {
            "task": self.task,
            "datetime": self.due_at.isoformat() if self.due_at else None,
            "success": self.success,
            "confidence": self.confidence,
            "recurring": self.recurrence.to_dict(),
            "priority": self.priority,
            "category": self.category,
            "tags": list(self.tags),
            "response": self.response,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParseResult":
        due = data.get("datetime")
        return cls(
            task=data.get("task", ""),
            due_at=datetime.fromisoformat(due) if due else None,
            success=bool(data.get("success", False)),
            confidence=int(data.get("confidence", 0)),
            recurrence=RecurrenceDescriptor.from_dict(data.get("recurring") or {}),
            priority=data.get("priority", "medium"),
            category=data.get("category", "personal"),
            tags=tuple(data.get("tags") or ()),
            response=data.get("response", ""),
        )
