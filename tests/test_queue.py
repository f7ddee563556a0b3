"""
Tests for the AdmissionQueue ordering.

These tests verify:
    1. Higher priority is popped first
    2. Equal priority: on-time before overdue
    3. Equal priority and overdue-ness: earlier deadline first
    4. Remaining ties are FIFO
    5. Duplicates are tolerated
"""

from datetime import datetime, timedelta

from depsched.models.task import Task, TaskPriority
from depsched.scheduler.queue import AdmissionQueue

NOW = datetime(2030, 1, 1, 12, 0)


class TestAdmissionQueue:
    """Tests for the priority multiset."""

    def setup_method(self):
        self.queue = AdmissionQueue(clock=lambda: NOW)

    def _make_task(self, id: str, priority: TaskPriority = TaskPriority.MEDIUM,
                   deadline_hours: float | None = None) -> Task:
        """Helper: deadline is relative to NOW (negative = overdue)."""
        deadline = NOW + timedelta(hours=deadline_hours) if deadline_hours is not None else None
        return Task(id=id, name=f"Task {id}", assigned_to="tester",
                    priority=priority, deadline=deadline)

    def _drain(self) -> list[str]:
        order = []
        while self.queue:
            order.append(self.queue.pop().id)
        return order

    def test_empty_queue(self):
        assert len(self.queue) == 0
        assert self.queue.pop() is None
        assert self.queue.peek() is None

    def test_priority_descending(self):
        self.queue.push(self._make_task("low", TaskPriority.LOW))
        self.queue.push(self._make_task("crit", TaskPriority.CRITICAL))
        self.queue.push(self._make_task("med", TaskPriority.MEDIUM))
        self.queue.push(self._make_task("high", TaskPriority.HIGH))
        assert self._drain() == ["crit", "high", "med", "low"]

    def test_overdue_deprioritised_within_priority(self):
        """An overdue task does not jump ahead of an on-time task of equal priority."""
        self.queue.push(self._make_task("late", TaskPriority.HIGH, deadline_hours=-2))
        self.queue.push(self._make_task("ontime", TaskPriority.HIGH, deadline_hours=5))
        assert self._drain() == ["ontime", "late"]

    def test_overdue_higher_priority_still_wins(self):
        self.queue.push(self._make_task("ontime-low", TaskPriority.LOW, deadline_hours=1))
        self.queue.push(self._make_task("late-crit", TaskPriority.CRITICAL, deadline_hours=-1))
        assert self._drain() == ["late-crit", "ontime-low"]

    def test_earlier_deadline_first(self):
        self.queue.push(self._make_task("later", deadline_hours=10))
        self.queue.push(self._make_task("sooner", deadline_hours=1))
        self.queue.push(self._make_task("middle", deadline_hours=5))
        assert self._drain() == ["sooner", "middle", "later"]

    def test_earlier_deadline_first_among_overdue(self):
        self.queue.push(self._make_task("late2", deadline_hours=-1))
        self.queue.push(self._make_task("late1", deadline_hours=-3))
        assert self._drain() == ["late1", "late2"]

    def test_no_deadline_after_deadline_before_overdue(self):
        self.queue.push(self._make_task("late", deadline_hours=-1))
        self.queue.push(self._make_task("open"))
        self.queue.push(self._make_task("due", deadline_hours=3))
        assert self._drain() == ["due", "open", "late"]

    def test_fifo_tie_break(self):
        for id in ["first", "second", "third"]:
            self.queue.push(self._make_task(id))
        assert self._drain() == ["first", "second", "third"]

    def test_overdue_evaluated_at_pop_time(self):
        """A task that becomes overdue while queued is re-ranked."""
        task_a = self._make_task("a", deadline_hours=1)
        task_b = self._make_task("b", deadline_hours=2)
        self.queue.push(task_a)
        self.queue.push(task_b)
        assert self.queue.peek(NOW).id == "a"
        assert self.queue.peek(NOW + timedelta(minutes=90)).id == "b"

    def test_duplicates_tolerated(self):
        task = self._make_task("dup")
        self.queue.push(task)
        self.queue.push(task)
        assert len(self.queue) == 2
        assert "dup" in self.queue
        assert self._drain() == ["dup", "dup"]

    def test_task_ids_in_rank_order(self):
        self.queue.push(self._make_task("b", TaskPriority.LOW))
        self.queue.push(self._make_task("a", TaskPriority.HIGH))
        assert self.queue.task_ids() == ["a", "b"]
        assert len(self.queue) == 2

    def test_clear(self):
        self.queue.push(self._make_task("a"))
        self.queue.clear()
        assert not self.queue
