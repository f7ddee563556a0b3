"""Execution log records emitted by the scheduler."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """Lifecycle steps the scheduler records."""
    TASK_ADDED = "task_added"
    TASK_REJECTED = "task_rejected"
    TASK_READY = "task_ready"
    TASK_STARTED = "task_started"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    TASK_CANCELLED = "task_cancelled"


@dataclass(order=True, frozen=True)
class ExecutionEvent:
    """
    A single log entry, ordered by sequence number.
    Fields with compare=False are excluded from ordering.
    """
    sequence: int
    timestamp: datetime = field(compare=False)
    event_type: EventType = field(compare=False)
    task_id: str = field(compare=False)
    assigned_to: Optional[str] = field(default=None, compare=False)
    detail: str = field(default="", compare=False)

    def __repr__(self) -> str:
        parts = [f"ExecutionEvent(#{self.sequence}, type={self.event_type.value}, task={self.task_id}"]
        if self.assigned_to:
            parts.append(f", assignee={self.assigned_to}")
        if self.detail:
            parts.append(f", detail={self.detail!r}")
        parts.append(")")
        return "".join(parts)
