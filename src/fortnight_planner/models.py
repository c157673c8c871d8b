from __future__ import annotations

"""Dataclass models for recurring events, tasks and urgency results."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional

from .errors import ValidationError
from .hour_ring import RING_HOURS


class Weekday(IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class Rotation(str, Enum):
    FIRST = "first"
    SECOND = "second"
    BOTH = "both"

    @classmethod
    def from_text(cls, text: str) -> "Rotation":
        """Case-insensitive lookup; raises ValueError for anything else."""
        return cls(text.strip().lower())

    @property
    def includes_first(self) -> bool:
        return self in (Rotation.FIRST, Rotation.BOTH)

    @property
    def includes_second(self) -> bool:
        return self in (Rotation.SECOND, Rotation.BOTH)


class UrgencyState(str, Enum):
    COMPLETE = "complete"  # zero estimated hours
    DUE_NOW = "due_now"  # no free hours left, deadline is this hour
    PENDING = "pending"
    OVERDUE = "overdue"


@dataclass(slots=True)
class GeneralEvent:
    name: str
    rotation: Optional[Rotation] = None
    days: str = ""
    start_hour: Optional[int] = None  # 24h clock, block starting at this hour
    duration: Optional[int] = None  # whole hours
    inactive: bool = False
    raw_lines: list[str] = field(default_factory=list)

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("", "Event is missing a name")
        if self.rotation is None:
            raise ValidationError(self.name, f"Event '{self.name}' has a missing or unknown rotation")
        if not self.days:
            raise ValidationError(self.name, f"Event '{self.name}' has no listed days")
        if self.start_hour is None or not (0 <= self.start_hour <= 23):
            raise ValidationError(self.name, f"Event '{self.name}' has a missing or invalid start time")
        if not self.duration or self.duration < 1:
            raise ValidationError(self.name, f"Event '{self.name}' has missing or zero duration")


@dataclass(slots=True)
class Task:
    name: str
    deadline: Optional[str] = None
    estimated_hours: Optional[int] = None
    # Derived per pass; only meaningful right after a computation at a given "now"
    urgency: float = 0.0
    remaining_free_hours: int = 0
    busy_hours_in_window: int = 0
    state: Optional[UrgencyState] = None
    raw_lines: list[str] = field(default_factory=list)

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("", "Task is missing a name")
        if not self.deadline:
            raise ValidationError(self.name, f"Task '{self.name}' has no deadline")
        if self.estimated_hours is None or self.estimated_hours < 0:
            raise ValidationError(self.name, f"Task '{self.name}' has missing or invalid estimated hours")

    def reset_derived(self) -> None:
        self.urgency = 0.0
        self.remaining_free_hours = 0
        self.busy_hours_in_window = 0
        self.state = None


@dataclass(slots=True, frozen=True)
class ResolvedDeadline:
    slot: int  # ring slot within the rotation that contains "now"
    intervening_fortnights: int = 0

    @property
    def absolute_slot(self) -> int:
        return self.slot + self.intervening_fortnights * RING_HOURS


@dataclass(slots=True, frozen=True)
class HoursLeft:
    remaining_free_hours: int
    busy_hours: int


@dataclass(slots=True, frozen=True)
class TaskFailure:
    task: Task
    error: Exception

    @property
    def name(self) -> str:
        return self.task.name

    def __str__(self) -> str:
        return f"{self.name or '<unnamed>'}: {self.error}"


@dataclass(slots=True)
class Ranking:
    tasks: list[Task]  # ranked, most urgent first
    failures: list[TaskFailure] = field(default_factory=list)

    def all_tasks(self) -> list[Task]:
        """Ranked tasks followed by the ones that could not be scored, in input order."""
        return self.tasks + [f.task for f in self.failures]


__all__ = [
    "Weekday",
    "Rotation",
    "UrgencyState",
    "GeneralEvent",
    "Task",
    "ResolvedDeadline",
    "HoursLeft",
    "TaskFailure",
    "Ranking",
]
