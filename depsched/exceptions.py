"""Exception hierarchy raised by the scheduler and dependency resolver."""

from typing import Iterable, Optional, Sequence


class SchedulerError(Exception):
    """Base class for every error raised by the scheduler."""


class InvalidTaskError(SchedulerError, ValueError):
    """Task input was rejected before any state changed."""


class DuplicateTaskError(SchedulerError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Duplicate task ID: {task_id}")


class CircularDependencyError(SchedulerError):
    """Admitting the task would have closed a dependency cycle."""

    def __init__(self, task_id: str, cycle: Optional[Sequence[str]] = None):
        self.task_id = task_id
        self.cycle = list(cycle or [])
        message = f"Circular dependency detected: {task_id}"
        if self.cycle:
            message += f" ({' -> '.join(self.cycle)})"
        super().__init__(message)


class DependencyNotFoundError(SchedulerError):
    """One or more dependencies do not resolve to an admitted task."""

    def __init__(self, task_id: str, missing: Iterable[str], problems: Sequence[str] = ()):
        self.task_id = task_id
        self.missing = sorted(set(missing))
        self.problems = list(problems)
        super().__init__(
            f"Task {task_id!r} has unresolved dependencies: {', '.join(self.missing)}"
        )


class TaskNotFoundError(SchedulerError, KeyError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(task_id)

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"


class TaskExecutionError(SchedulerError):
    """The executor raised while running a task; the task is now FAILED."""

    def __init__(self, task_id: str, reason: str):
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"Task execution failed [{task_id}]: {reason}")


class InvalidTransitionError(SchedulerError):
    """A lifecycle change was requested that the current status does not allow."""

    def __init__(self, task_id: str, current, requested):
        self.task_id = task_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Task {task_id!r} cannot move from {current.value} to {requested.value}"
        )
