"""Entry point for running the dependency scheduler on a demo project.

Usage:
    python scripts/run_pipeline.py --scenario release
    python scripts/run_pipeline.py --scenario generated --tasks 30 --seed 7
"""

import argparse
import logging
import sys
import os
from datetime import datetime, timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rich.console import Console
from rich.logging import RichHandler

from depsched.exceptions import (
    CircularDependencyError,
    DependencyNotFoundError,
    DuplicateTaskError,
    SchedulerError,
)
from depsched.generator import ScenarioGenerator
from depsched.metrics.collector import ReportCollector
from depsched.models.task import Task, TaskPriority
from depsched.scheduler.task_scheduler import TaskScheduler

console = Console()


def load_release_pipeline(scheduler: TaskScheduler) -> None:
    """Seed the 'Software Release Pipeline' project."""
    now = datetime.now()
    deadline = now + timedelta(hours=8)

    scheduler.create_task("DESIGN-001", "Design Architecture", "Create system design docs",
                          TaskPriority.HIGH, [], "Alice", deadline)
    scheduler.create_task("BACKEND-001", "Implement REST API", "Develop backend services",
                          TaskPriority.HIGH, ["DESIGN-001"], "Bob", deadline)
    scheduler.create_task("FRONTEND-001", "Build UI Components", "Develop React UI",
                          TaskPriority.HIGH, ["DESIGN-001"], "Charlie", deadline)
    scheduler.create_task("TESTING-001", "Integration Testing", "Run full system tests",
                          TaskPriority.MEDIUM, ["BACKEND-001", "FRONTEND-001"], "Diana", deadline)
    scheduler.create_task("UAT-001", "User Acceptance Testing", "Review with stakeholders",
                          TaskPriority.MEDIUM, ["TESTING-001"], "Eve", deadline)
    scheduler.create_task("DEPLOY-001", "Deploy to Production", "Deploy and monitor release",
                          TaskPriority.CRITICAL, ["UAT-001"], "Frank", deadline)
    scheduler.create_task("HOTFIX-001", "Critical Bug Fix", "Fix urgent production bug",
                          TaskPriority.CRITICAL, [], "Grace", now - timedelta(hours=1))


def load_generated(scheduler: TaskScheduler, num_tasks: int, seed: int, density: float) -> None:
    generator = ScenarioGenerator(seed=seed)
    for task in generator.generate_tasks(num_tasks=num_tasks, dependency_density=density):
        scheduler.add_task(task)


def run_edge_cases() -> None:
    """Show how invalid insertions are rejected."""
    console.print("\n[bold cyan]Edge cases[/bold cyan]")
    deadline = datetime.now() + timedelta(hours=2)

    scheduler = TaskScheduler()
    try:
        scheduler.create_task("A", "Task A", "", TaskPriority.HIGH, ["C"], "U1", deadline)
    except DependencyNotFoundError as exc:
        console.print(f"  [green]✓[/green] Missing dependency rejected: {exc}")

    scheduler = TaskScheduler()
    scheduler.add_task(Task(id="A", name="Task A", assigned_to="U1"))
    scheduler.add_task(Task(id="B", name="Task B", dependencies=["A"], assigned_to="U2"))
    try:
        scheduler.add_task(Task(id="A", name="Task A again", dependencies=["B"], assigned_to="U3"))
    except DuplicateTaskError as exc:
        console.print(f"  [green]✓[/green] Duplicate ID rejected: {exc}")
    try:
        scheduler.add_task(Task(id="C", name="Self loop", dependencies=["C"], assigned_to="U3"))
    except CircularDependencyError as exc:
        console.print(f"  [green]✓[/green] Cycle rejected: {exc}")
    console.print(f"  Tasks still admitted: {sorted(t.id for t in scheduler.get_all_tasks())}\n")


def main():
    parser = argparse.ArgumentParser(
        description="Dependency-aware task scheduler — demo runner"
    )
    parser.add_argument("--scenario", choices=["release", "generated"], default="release",
                        help="Task set to load (default: release)")
    parser.add_argument("--tasks", type=int, default=20, help="Generated task count (default: 20)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--dependency-density", type=float, default=0.2,
                        help="Dependency probability (default: 0.2)")
    parser.add_argument("--edge-cases", action="store_true", help="Demonstrate rejected insertions")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log lifecycle events")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    scheduler = TaskScheduler()
    try:
        if args.scenario == "release":
            load_release_pipeline(scheduler)
        else:
            load_generated(scheduler, args.tasks, args.seed, args.dependency_density)
    except SchedulerError as exc:
        console.print(f"[red]Failed to load tasks:[/red] {exc}")
        return 1

    collector = ReportCollector(console=console)
    collector.print_tasks(scheduler.get_all_tasks())

    if args.edge_cases:
        run_edge_cases()

    console.print("[bold]Executing all tasks...[/bold]")
    total = scheduler.total_tasks
    done = 0
    while True:
        try:
            task = scheduler.execute_next_task()
        except SchedulerError as exc:
            console.print(f"  [red]✗[/red] {exc}")
            continue
        if task is None:
            break
        done += 1
        console.print(f"  [{done}/{total}] [green]✓[/green] {task.name} ({task.priority.name})")
    console.print(f"Execution complete ({done}/{total})\n")

    collector.calculate(scheduler)
    collector.print_report()
    return 0


if __name__ == "__main__":
    sys.exit(main())
