"""Dependency-aware task scheduler."""

from depsched.exceptions import (
    CircularDependencyError,
    DependencyNotFoundError,
    DuplicateTaskError,
    InvalidTaskError,
    InvalidTransitionError,
    SchedulerError,
    TaskExecutionError,
    TaskNotFoundError,
)
from depsched.graph.resolver import DependencyResolver
from depsched.models.task import Task, TaskPriority, TaskStatus
from depsched.scheduler.task_scheduler import TaskScheduler

__all__ = [
    "Task", "TaskPriority", "TaskStatus",
    "DependencyResolver", "TaskScheduler",
    "SchedulerError", "InvalidTaskError", "DuplicateTaskError",
    "CircularDependencyError", "DependencyNotFoundError", "TaskNotFoundError",
    "TaskExecutionError", "InvalidTransitionError",
]
