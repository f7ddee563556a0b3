"""Task Scheduler — admission, ordering and single-step execution of dependent tasks."""

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from depsched.events import EventType, ExecutionEvent
from depsched.exceptions import (
    CircularDependencyError,
    DependencyNotFoundError,
    DuplicateTaskError,
    InvalidTaskError,
    InvalidTransitionError,
    TaskExecutionError,
    TaskNotFoundError,
)
from depsched.graph.resolver import DependencyResolver
from depsched.models.task import Task, TaskPriority, TaskStatus
from depsched.scheduler.queue import AdmissionQueue

logger = logging.getLogger(__name__)


# Legal lifecycle moves. Terminal states have no outgoing edges.
TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.READY, TaskStatus.BLOCKED, TaskStatus.CANCELLED}),
    TaskStatus.BLOCKED: frozenset({TaskStatus.READY, TaskStatus.CANCELLED}),
    TaskStatus.READY: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}


def _noop_executor(task: Task) -> None:
    return None


class TaskScheduler:
    """Owns the task map, the admission queue and the completed set.

    Every insertion is validated against the whole graph and rolled back on
    failure, so the admitted dependency graph is always acyclic and closed.
    Execution is one task per call: the best eligible candidate is run, and
    its direct dependents are released into the queue once all of their
    dependencies have completed.

    A task whose executor raises is marked FAILED and never counts as
    completed, so nothing downstream of it is ever released.
    """

    def __init__(
        self,
        executor: Optional[Callable[[Task], None]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._executor = executor or _noop_executor
        self._clock = clock
        self._lock = threading.RLock()

        self._tasks: dict[str, Task] = {}
        self._completed_task_ids: set[str] = set()
        self._queue = AdmissionQueue(clock=clock)
        self._team_workload: dict[str, int] = {}
        self._event_log: list[ExecutionEvent] = []
        self._event_counter = 0

        # Graph queries read the live map without taking the lock; use the
        # scheduler's own query methods when other threads may be writing.
        self.resolver = DependencyResolver(self._tasks)

    # ── Admission ────────────────────────────────────────────────────

    def create_task(
        self,
        task_id: str,
        name: str,
        description: str = "",
        priority: Optional[TaskPriority] = None,
        dependencies: Optional[Iterable[str]] = None,
        assigned_to: str = "",
        deadline: Optional[datetime] = None,
    ) -> Task:
        """Build a task from raw fields and admit it.

        A single dependency id may be passed as a plain string.
        """
        if isinstance(dependencies, str):
            dependencies = [dependencies]
        try:
            task = Task(
                id=task_id,
                name=name,
                description=description,
                priority=priority,
                dependencies=frozenset(dependencies or ()),
                assigned_to=assigned_to,
                deadline=deadline,
            )
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            raise InvalidTaskError(f"Invalid task {task_id!r}: {messages}") from exc
        except TypeError as exc:
            raise InvalidTaskError(
                f"Invalid task {task_id!r}: dependencies must be an iterable of task ids"
            ) from exc
        return self.add_task(task)

    def add_task(self, task: Task) -> Task:
        """Validate and admit a task.

        A task whose dependencies have all completed is admitted READY and
        queued; otherwise it is admitted BLOCKED and queued later by the
        completion cascade.

        Raises DuplicateTaskError, CircularDependencyError or
        DependencyNotFoundError; in every case the task map is left exactly as
        it was before the call.
        """
        if task is None:
            raise InvalidTaskError("Task cannot be None")
        if task.status != TaskStatus.PENDING:
            raise InvalidTaskError(
                f"Task {task.id!r} must be PENDING to be admitted, not {task.status.value}"
            )

        with self._lock:
            if task.id in self._tasks:
                self._reject(task, "duplicate id")
                raise DuplicateTaskError(task.id)

            # Provisional insert: cycle detection has to see the new edges.
            self._tasks[task.id] = task
            try:
                self._validate_admission(task)
            except Exception as exc:
                del self._tasks[task.id]
                self._reject(task, str(exc))
                raise

            if self.resolver.dependencies_satisfied(task.id, self._completed_task_ids):
                self._transition(task, TaskStatus.READY)
                self._queue.push(task)
            else:
                self._transition(task, TaskStatus.BLOCKED)

            self._record(EventType.TASK_ADDED, task, detail=task.status.value)
            logger.info(
                "Task %s added for %s (priority=%s, status=%s)",
                task.id, task.assigned_to, task.priority.name, task.status.value,
            )
            return task

    def _validate_admission(self, task: Task) -> None:
        cycle = self.resolver.find_cycle(task.id)
        if cycle is not None:
            raise CircularDependencyError(task.id, cycle)

        missing = self.resolver.missing_dependencies()
        if missing:
            unresolved = set().union(*missing.values())
            raise DependencyNotFoundError(
                task.id, unresolved, self.resolver.validate_all_dependencies()
            )

    # ── Execution ────────────────────────────────────────────────────

    def execute_next_task(self) -> Optional[Task]:
        """Run the highest-ranked eligible task to completion.

        Returns None when nothing is executable. Raises TaskExecutionError if
        the executor fails; the task is then FAILED and the scheduler remains
        usable.
        """
        with self._lock:
            task = self._next_executable_task()
            if task is None:
                return None

            self._transition(task, TaskStatus.IN_PROGRESS)
            self._record(EventType.TASK_STARTED, task)
            logger.info("Task %s started by %s", task.id, task.assigned_to)

            try:
                self._executor(task)
            except Exception as exc:
                reason = str(exc) or exc.__class__.__name__
                self._transition(task, TaskStatus.FAILED, reason=reason)
                self._record(EventType.TASK_FAILED, task, detail=reason)
                logger.error("Task %s failed: %s", task.id, reason)
                raise TaskExecutionError(task.id, reason) from exc
            except BaseException as exc:
                # KeyboardInterrupt and friends propagate unchanged, but the
                # task must not stay IN_PROGRESS.
                reason = f"interrupted: {exc.__class__.__name__}"
                self._transition(task, TaskStatus.FAILED, reason=reason)
                self._record(EventType.TASK_FAILED, task, detail=reason)
                logger.error("Task %s interrupted: %s", task.id, reason)
                raise

            self._transition(task, TaskStatus.COMPLETED)
            self._completed_task_ids.add(task.id)
            self._update_team_workload(task)
            self._record(EventType.TASK_COMPLETED, task, detail=f"{task.execution_time_ms}ms")
            logger.info("Task %s completed in %dms", task.id, task.execution_time_ms)

            self._release_dependents(task.id)
            return task

    def execute_all(self) -> list[Task]:
        """Execute tasks until none is eligible. Stops at the first execution failure."""
        executed: list[Task] = []
        while True:
            task = self.execute_next_task()
            if task is None:
                return executed
            executed.append(task)

    def cancel_task(self, task_id: str) -> Task:
        """Cancel a task that has not started. Its dependents stay blocked."""
        with self._lock:
            task = self.get_task(task_id)
            self._transition(task, TaskStatus.CANCELLED)
            self._record(EventType.TASK_CANCELLED, task)
            logger.info("Task %s cancelled", task.id)
            return task

    def _next_executable_task(self) -> Optional[Task]:
        """Pop candidates until one is READY with every dependency completed.

        Stale candidates are dropped, not re-queued; the completion cascade
        re-queues them once they become eligible.
        """
        now = self._clock()
        while self._queue:
            candidate = self._queue.pop(now)
            if candidate.status != TaskStatus.READY:
                logger.debug("Dropping stale queue entry %s (%s)", candidate.id, candidate.status.value)
                continue
            if not self.resolver.dependencies_satisfied(candidate.id, self._completed_task_ids):
                logger.debug("Dropping %s: dependencies not satisfied", candidate.id)
                continue
            return candidate
        return None

    def _release_dependents(self, completed_id: str) -> None:
        """Queue every direct dependent whose dependencies are now all completed."""
        for dependent_id in sorted(self.resolver.dependents_of(completed_id)):
            dependent = self._tasks[dependent_id]
            if dependent.status not in (TaskStatus.PENDING, TaskStatus.BLOCKED):
                continue
            if not self.resolver.dependencies_satisfied(dependent_id, self._completed_task_ids):
                continue
            self._transition(dependent, TaskStatus.READY)
            self._queue.push(dependent)
            self._record(EventType.TASK_READY, dependent, detail=f"released by {completed_id}")
            logger.info("Task %s is ready (released by %s)", dependent_id, completed_id)

    # ── Lifecycle ────────────────────────────────────────────────────

    def _transition(self, task: Task, target: TaskStatus, reason: Optional[str] = None) -> None:
        """Apply a status change if the transition table allows it."""
        if target not in TRANSITIONS[task.status]:
            raise InvalidTransitionError(task.id, task.status, target)

        match target:
            case TaskStatus.READY:
                task.mark_ready()
            case TaskStatus.BLOCKED:
                task.mark_blocked()
            case TaskStatus.IN_PROGRESS:
                task.mark_started(self._clock())
            case TaskStatus.COMPLETED:
                task.mark_completed(self._clock())
            case TaskStatus.FAILED:
                task.mark_failed(reason or "unknown error", self._clock())
            case TaskStatus.CANCELLED:
                task.mark_cancelled()

    def _update_team_workload(self, task: Task) -> None:
        assignee = task.assigned_to
        self._team_workload[assignee] = self._team_workload.get(assignee, 0) + task.execution_time_ms

    def _reject(self, task: Task, reason: str) -> None:
        self._record(EventType.TASK_REJECTED, task, detail=reason)
        logger.warning("Task %s rejected: %s", task.id, reason)

    def _record(self, event_type: EventType, task: Task, detail: str = "") -> None:
        self._event_counter += 1
        self._event_log.append(ExecutionEvent(
            sequence=self._event_counter,
            timestamp=self._clock(),
            event_type=event_type,
            task_id=task.id,
            assigned_to=task.assigned_to,
            detail=detail,
        ))

    # ── Queries ──────────────────────────────────────────────────────

    def get_task(self, task_id: str) -> Task:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            return task

    def find_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)

    def get_all_tasks(self) -> list[Task]:
        """Snapshot of every admitted task."""
        with self._lock:
            return list(self._tasks.values())

    def blocked_tasks(self) -> list[Task]:
        with self._lock:
            return [t for t in self._tasks.values() if t.status == TaskStatus.BLOCKED]

    def failed_tasks(self) -> list[Task]:
        with self._lock:
            return [t for t in self._tasks.values() if t.status == TaskStatus.FAILED]

    def queued_task_ids(self) -> list[str]:
        """Queue contents in the order they would be considered."""
        with self._lock:
            return self._queue.task_ids()

    def topological_order(self) -> list[str]:
        with self._lock:
            return self.resolver.topological_order()

    def validate(self) -> list[str]:
        """Re-check that every dependency resolves; empty means consistent."""
        with self._lock:
            return self.resolver.validate_all_dependencies()

    @property
    def total_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)

    @property
    def completed_count(self) -> int:
        with self._lock:
            return len(self._completed_task_ids)

    @property
    def pending_count(self) -> int:
        """Number of queue entries, stale ones included."""
        with self._lock:
            return len(self._queue)

    @property
    def completed_task_ids(self) -> set[str]:
        with self._lock:
            return set(self._completed_task_ids)

    @property
    def team_workload(self) -> dict[str, int]:
        """Accumulated execution time in milliseconds per assignee."""
        with self._lock:
            return dict(self._team_workload)

    @property
    def execution_log(self) -> list[ExecutionEvent]:
        with self._lock:
            return list(self._event_log)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._tasks
