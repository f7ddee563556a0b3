"""Task model — the unit of work tracked by the dependency scheduler."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class TaskPriority(int, Enum):
    """Scheduling priority, compared by ordinal value (CRITICAL > HIGH > MEDIUM > LOW)."""
    CRITICAL = 4
    HIGH = 3
    MEDIUM = 2
    LOW = 1

    @property
    def description(self) -> str:
        return _PRIORITY_DESCRIPTIONS[self]


_PRIORITY_DESCRIPTIONS = {
    TaskPriority.CRITICAL: "Critical - must execute immediately",
    TaskPriority.HIGH: "High - execute soon",
    TaskPriority.MEDIUM: "Medium - execute when available",
    TaskPriority.LOW: "Low - execute when idle",
}


class TaskStatus(str, Enum):
    """Lifecycle states: PENDING → READY | BLOCKED → IN_PROGRESS → COMPLETED | FAILED"""
    PENDING = "pending"
    BLOCKED = "blocked"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED)


_STATUS_DESCRIPTIONS = {
    TaskStatus.PENDING: "Waiting for admission",
    TaskStatus.BLOCKED: "Blocked by unfinished dependencies",
    TaskStatus.READY: "Dependencies met, ready to execute",
    TaskStatus.IN_PROGRESS: "Currently being executed",
    TaskStatus.COMPLETED: "Successfully executed",
    TaskStatus.FAILED: "Execution failed",
    TaskStatus.CANCELLED: "Task cancelled",
}


class Task(BaseModel):
    """A named piece of work with a priority, a deadline and dependencies on other tasks.

    Identity fields are frozen at construction. The runtime fields (status,
    timestamps, duration, failure reason) are written by the owning scheduler
    through the ``mark_*`` methods; the task does not check the order in which
    they are called.
    """

    id: str = Field(frozen=True, description="Unique task identifier")
    name: str = Field(frozen=True, description="Display name")
    description: str = Field(default="", frozen=True, description="Free-text description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, frozen=True, description="Scheduling priority")
    dependencies: frozenset[str] = Field(default_factory=frozenset, frozen=True, description="Task IDs that must complete first")
    assigned_to: str = Field(frozen=True, description="Team member responsible for the task")
    deadline: Optional[datetime] = Field(default=None, frozen=True, description="Due instant, None for no deadline")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle state")
    started_at: Optional[datetime] = Field(default=None, description="When execution began")
    completed_at: Optional[datetime] = Field(default=None, description="When execution finished or failed")
    execution_time_ms: int = Field(default=0, ge=0, description="Measured execution duration")
    failure_reason: Optional[str] = Field(default=None, description="Why execution failed")

    @field_validator("id", "name")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        if not value or not value.strip():
            raise ValueError(f"Task {info.field_name} cannot be empty")
        return value

    @field_validator("assigned_to")
    @classmethod
    def _has_assignee(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Task must be assigned to a team member")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Any:
        if value is None:
            return TaskPriority.MEDIUM
        if isinstance(value, str):
            if value.strip().isdigit():
                return int(value)
            try:
                return TaskPriority[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown priority: {value!r}") from None
        return value

    @field_validator("dependencies", mode="before")
    @classmethod
    def _coerce_dependencies(cls, value: Any) -> Any:
        return frozenset() if value is None else value

    @property
    def has_dependencies(self) -> bool:
        return bool(self.dependencies)

    def depends_on(self, task_id: str) -> bool:
        """True if ``task_id`` is a direct dependency of this task."""
        return task_id in self.dependencies

    @property
    def is_ready(self) -> bool:
        return self.status == TaskStatus.READY

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def overdue_at(self, now: datetime) -> bool:
        """True if the task has a deadline and ``now`` is past it."""
        if self.deadline is None:
            return False
        if (now.tzinfo is None) != (self.deadline.tzinfo is None):
            return now.timestamp() > self.deadline.timestamp()
        return now > self.deadline

    @property
    def is_overdue(self) -> bool:
        """Deadline check against the wall clock at call time."""
        if self.deadline is None:
            return False
        return self.overdue_at(datetime.now(self.deadline.tzinfo))

    # ── Runtime mutators (called by the scheduler) ───────────────────

    def mark_ready(self) -> None:
        self.status = TaskStatus.READY

    def mark_blocked(self) -> None:
        self.status = TaskStatus.BLOCKED

    def mark_started(self, now: Optional[datetime] = None) -> None:
        self.status = TaskStatus.IN_PROGRESS
        self.started_at = now or datetime.now()

    def mark_completed(self, now: Optional[datetime] = None) -> None:
        """Finish the task and compute its duration from ``started_at``."""
        self.status = TaskStatus.COMPLETED
        self.completed_at = now or datetime.now()
        if self.started_at is not None:
            elapsed = self.completed_at - self.started_at
            self.execution_time_ms = max(0, int(elapsed.total_seconds() * 1000))

    def mark_failed(self, reason: str, now: Optional[datetime] = None) -> None:
        self.status = TaskStatus.FAILED
        self.failure_reason = reason
        self.completed_at = now or datetime.now()

    def mark_cancelled(self) -> None:
        self.status = TaskStatus.CANCELLED

    def __repr__(self) -> str:
        return (
            f"Task(id={self.id!r}, name={self.name!r}, priority={self.priority.name}, "
            f"status={self.status.value}, assigned_to={self.assigned_to!r})"
        )
