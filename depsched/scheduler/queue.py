"""Admission Queue — priority-ordered candidates for execution."""

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from depsched.models.task import Task

logger = logging.getLogger(__name__)


@dataclass
class QueueEntry:
    """A queued task reference plus the sequence number used for FIFO tie-breaking."""
    sequence: int
    task: Task = field(compare=False)


class AdmissionQueue:
    """Duplicate-tolerant priority multiset of tasks.

    Overdue status depends on the clock, so the order is evaluated when an
    entry is taken out rather than when it is pushed. Every comparison within
    one ``pop`` uses the same instant.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._entries: list[QueueEntry] = []
        self._counter = itertools.count()

    @staticmethod
    def sort_key(task: Task, now: datetime, sequence: int = 0) -> tuple:
        """Smaller key = executed sooner.

        priority desc → not overdue → has a deadline → earlier deadline → FIFO
        """
        deadline = task.deadline.timestamp() if task.deadline is not None else float("inf")
        return (
            -task.priority.value,
            task.overdue_at(now),
            task.deadline is None,
            deadline,
            sequence,
        )

    def push(self, task: Task) -> None:
        entry = QueueEntry(sequence=next(self._counter), task=task)
        self._entries.append(entry)
        logger.debug("Queued %s (priority=%s, depth=%d)", task.id, task.priority.name, len(self._entries))

    def peek(self, now: Optional[datetime] = None) -> Optional[Task]:
        best = self._best(now)
        return best.task if best is not None else None

    def pop(self, now: Optional[datetime] = None) -> Optional[Task]:
        """Remove and return the highest-ranked task, or None when empty."""
        best = self._best(now)
        if best is None:
            return None
        self._entries.remove(best)
        return best.task

    def clear(self) -> None:
        self._entries.clear()

    def task_ids(self) -> list[str]:
        """Queued ids in current rank order."""
        now = self._clock()
        ranked = sorted(self._entries, key=lambda e: self.sort_key(e.task, now, e.sequence))
        return [entry.task.id for entry in ranked]

    def _best(self, now: Optional[datetime]) -> Optional[QueueEntry]:
        if not self._entries:
            return None
        now = now or self._clock()
        return min(self._entries, key=lambda e: self.sort_key(e.task, now, e.sequence))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __contains__(self, task_id: object) -> bool:
        return any(entry.task.id == task_id for entry in self._entries)
