"""Dependency Resolver — graph queries over the scheduler's live task map.

The resolver never copies the mapping it is given: every query reads the
current admitted set, including a task that the scheduler has provisionally
inserted while validating it.

Provides:
- Cycle detection (iterative DFS with an on-path set)
- Dependency existence checks
- Topological ordering via Kahn's algorithm
- Dependent lookup (direct and transitive)
"""

import logging
from collections import deque
from typing import Iterable, Mapping, Optional

from depsched.exceptions import TaskNotFoundError
from depsched.models.task import Task

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Read-only view over an identity → Task mapping owned by someone else."""

    def __init__(self, tasks: Mapping[str, Task]):
        self._tasks = tasks

    # ── Cycle detection ──────────────────────────────────────────────

    def find_cycle(self, start_id: str) -> Optional[list[str]]:
        """Return the first dependency cycle reachable from ``start_id``, or None.

        The returned path starts and ends with the same task id, e.g.
        ``["A", "B", "C", "A"]``. Dependencies that do not resolve to a known
        task are skipped; existence is checked by ``validate_all_dependencies``.
        """
        if start_id not in self._tasks:
            raise TaskNotFoundError(start_id)

        visited: set[str] = {start_id}
        on_path: set[str] = {start_id}
        stack = [(start_id, iter(self._sorted_dependencies(start_id)))]

        while stack:
            task_id, pending = stack[-1]
            for dep_id in pending:
                if dep_id not in self._tasks:
                    logger.warning("Missing dependency %s of task %s", dep_id, task_id)
                    continue
                if dep_id in on_path:
                    path = [node for node, _ in stack]
                    cycle = path[path.index(dep_id):] + [dep_id]
                    logger.warning("Cycle detected at task %s: %s", dep_id, " -> ".join(cycle))
                    return cycle
                if dep_id in visited:
                    continue
                visited.add(dep_id)
                on_path.add(dep_id)
                stack.append((dep_id, iter(self._sorted_dependencies(dep_id))))
                break
            else:
                stack.pop()
                on_path.discard(task_id)

        return None

    def has_cycle(self, start_id: str) -> bool:
        """True if following dependencies from ``start_id`` revisits a task on the current path."""
        return self.find_cycle(start_id) is not None

    # ── Existence checks ─────────────────────────────────────────────

    def missing_dependencies(self) -> dict[str, set[str]]:
        """Map each task id to the dependency ids that are not admitted."""
        missing: dict[str, set[str]] = {}
        for task_id in sorted(self._tasks):
            unknown = {d for d in self._tasks[task_id].dependencies if d not in self._tasks}
            if unknown:
                missing[task_id] = unknown
        return missing

    def validate_all_dependencies(self) -> list[str]:
        """Describe every unresolvable dependency. An empty list means the graph is closed."""
        return [
            f"Task '{task_id}' depends on non-existent task '{dep_id}'"
            for task_id, unknown in self.missing_dependencies().items()
            for dep_id in sorted(unknown)
        ]

    # ── Ordering ─────────────────────────────────────────────────────

    def topological_order(self) -> list[str]:
        """Kahn's algorithm over edges whose target exists.

        Tasks caught in a cycle never reach in-degree zero and are left out of
        the result.
        """
        in_degree: dict[str, int] = {task_id: 0 for task_id in self._tasks}
        adjacency: dict[str, list[str]] = {task_id: [] for task_id in self._tasks}

        for task_id in sorted(self._tasks):
            for dep_id in self._sorted_dependencies(task_id):
                if dep_id in self._tasks:
                    adjacency[dep_id].append(task_id)
                    in_degree[task_id] += 1

        queue = deque(task_id for task_id in sorted(in_degree) if in_degree[task_id] == 0)
        order: list[str] = []
        while queue:
            task_id = queue.popleft()
            order.append(task_id)
            for neighbor in adjacency[task_id]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if len(order) < len(self._tasks):
            logger.warning(
                "Topological order omits %d task(s) caught in a cycle",
                len(self._tasks) - len(order),
            )
        return order

    # ── Reverse lookups ──────────────────────────────────────────────

    def dependents_of(self, task_id: str) -> set[str]:
        """Ids of tasks that list ``task_id`` as a direct dependency."""
        return {other_id for other_id, task in self._tasks.items() if task.depends_on(task_id)}

    def transitive_dependents(self, task_id: str) -> set[str]:
        """Every task that directly or indirectly depends on ``task_id``."""
        seen: set[str] = set()
        frontier = deque([task_id])
        while frontier:
            current = frontier.popleft()
            for dependent in self.dependents_of(current):
                if dependent not in seen:
                    seen.add(dependent)
                    frontier.append(dependent)
        seen.discard(task_id)
        return seen

    def independent_tasks(self) -> set[str]:
        """Ids of tasks with no dependencies at all."""
        return {task_id for task_id, task in self._tasks.items() if not task.has_dependencies}

    # ── Satisfaction ─────────────────────────────────────────────────

    def dependencies_satisfied(self, task_id: str, completed_task_ids: Iterable[str]) -> bool:
        """All dependencies of ``task_id`` must be in the completed set."""
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        completed = completed_task_ids if isinstance(completed_task_ids, (set, frozenset)) else set(completed_task_ids)
        return all(dep_id in completed for dep_id in task.dependencies)

    def _sorted_dependencies(self, task_id: str) -> list[str]:
        return sorted(self._tasks[task_id].dependencies)
