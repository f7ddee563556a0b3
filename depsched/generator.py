"""Scenario generator — reproducible task graphs for demos and tests."""

import random
from datetime import datetime, timedelta
from typing import Optional

from depsched.models.task import Task, TaskPriority


class ScenarioGenerator:
    """Generates deterministic task sets using a seeded RNG."""

    def __init__(self, seed: int = 42, now: Optional[datetime] = None):
        self.rng = random.Random(seed)
        self.now = now or datetime.now()
        self._task_counter = 0

    def generate_tasks(
        self,
        num_tasks: int = 20,
        dependency_density: float = 0.2,
        overdue_fraction: float = 0.1,
        assignees: list[str] | None = None,
    ) -> list[Task]:
        """Generate tasks with random attributes. Dependencies only reference earlier tasks (DAG)."""
        if assignees is None:
            assignees = ["alice", "bob", "charlie", "diana"]

        tasks: list[Task] = []

        for _ in range(num_tasks):
            task_id = f"task-{self._task_counter:04d}"
            self._task_counter += 1

            priority = self.rng.choice(list(TaskPriority))
            if self.rng.random() < overdue_fraction:
                deadline = self.now - timedelta(hours=self.rng.randint(1, 24))
            elif self.rng.random() < 0.2:
                deadline = None
            else:
                deadline = self.now + timedelta(hours=self.rng.randint(1, 72))

            # Dependencies: only on earlier tasks (maintains DAG property)
            dependencies: list[str] = []
            if tasks and dependency_density > 0:
                max_deps = min(3, len(tasks))
                for earlier_task in self.rng.sample(tasks, min(len(tasks), max_deps * 3)):
                    if self.rng.random() < dependency_density:
                        dependencies.append(earlier_task.id)
                        if len(dependencies) >= max_deps:
                            break

            tasks.append(Task(
                id=task_id,
                name=f"Generated task {task_id}",
                priority=priority,
                dependencies=dependencies,
                assigned_to=self.rng.choice(assignees),
                deadline=deadline,
            ))

        return tasks
