"""Report Collector — summarises scheduler state for operators."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from depsched.models.task import Task, TaskStatus
from depsched.scheduler.task_scheduler import TaskScheduler


@dataclass
class SchedulerReport:
    """Container for all computed figures."""
    total_tasks: int = 0
    tasks_completed: int = 0
    tasks_failed: int = 0
    tasks_cancelled: int = 0
    tasks_blocked: int = 0
    tasks_ready: int = 0
    tasks_queued: int = 0
    tasks_overdue: int = 0
    completion_rate: float = 0.0
    total_execution_ms: int = 0
    avg_execution_ms: float = 0.0
    per_assignee_workload: dict[str, int] = field(default_factory=dict)
    topological_order: list[str] = field(default_factory=list)


class ReportCollector:
    """Computes and prints a SchedulerReport."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.report: Optional[SchedulerReport] = None

    def calculate(self, scheduler: TaskScheduler, now: Optional[datetime] = None) -> SchedulerReport:
        """Compute every figure from the scheduler's current snapshot."""
        tasks = scheduler.get_all_tasks()
        now = now or datetime.now()

        def count(status: TaskStatus) -> int:
            return sum(1 for t in tasks if t.status == status)

        report = SchedulerReport(
            total_tasks=len(tasks),
            tasks_completed=count(TaskStatus.COMPLETED),
            tasks_failed=count(TaskStatus.FAILED),
            tasks_cancelled=count(TaskStatus.CANCELLED),
            tasks_blocked=count(TaskStatus.BLOCKED),
            tasks_ready=count(TaskStatus.READY),
            tasks_queued=scheduler.pending_count,
            tasks_overdue=sum(1 for t in tasks if not t.is_terminal and t.overdue_at(now)),
            per_assignee_workload=scheduler.team_workload,
            topological_order=scheduler.topological_order(),
        )

        if tasks:
            report.completion_rate = report.tasks_completed / len(tasks)

        durations = [t.execution_time_ms for t in tasks if t.status == TaskStatus.COMPLETED]
        if durations:
            report.total_execution_ms = sum(durations)
            report.avg_execution_ms = report.total_execution_ms / len(durations)

        self.report = report
        return report

    def print_report(self) -> None:
        if self.report is None:
            self.console.print("[yellow]No report calculated yet. Run calculate() first.[/yellow]")
            return

        r = self.report
        self.console.print(Panel(
            "[bold cyan]Task Scheduler — Execution Report[/bold cyan]",
            border_style="cyan",
        ))

        task_table = Table(title="Task Summary", border_style="blue")
        task_table.add_column("Metric", style="bold")
        task_table.add_column("Value", justify="right")
        task_table.add_row("Total Tasks", str(r.total_tasks))
        task_table.add_row("Completed", f"[green]{r.tasks_completed}[/green]")
        task_table.add_row("Failed", f"[red]{r.tasks_failed}[/red]")
        task_table.add_row("Cancelled", f"[magenta]{r.tasks_cancelled}[/magenta]")
        task_table.add_row("Blocked", f"[yellow]{r.tasks_blocked}[/yellow]")
        task_table.add_row("Ready", str(r.tasks_ready))
        task_table.add_row("Queued", str(r.tasks_queued))
        task_table.add_row(
            "Overdue",
            f"[{'red' if r.tasks_overdue else 'green'}]{r.tasks_overdue}[/]",
        )
        task_table.add_row("Completion Rate", f"{r.completion_rate:.1%}")
        task_table.add_row("Total Execution", f"{r.total_execution_ms}ms")
        task_table.add_row("Avg Execution", f"{r.avg_execution_ms:.1f}ms")
        self.console.print(task_table)

        if r.per_assignee_workload:
            workload_table = Table(title="Team Workload", border_style="magenta")
            workload_table.add_column("Assignee", style="bold")
            workload_table.add_column("Execution Time", justify="right")
            for assignee, ms in sorted(r.per_assignee_workload.items()):
                workload_table.add_row(assignee, f"{ms}ms")
            self.console.print(workload_table)

        if r.topological_order:
            self.console.print(f"[dim]Dependency order: {' → '.join(r.topological_order)}[/dim]")

    def print_tasks(self, tasks: list[Task], now: Optional[datetime] = None) -> None:
        """Render a task list with an overdue marker and dependency column."""
        now = now or datetime.now()
        table = Table(title="Current Tasks", border_style="blue")
        table.add_column("ID", style="bold")
        table.add_column("Name")
        table.add_column("Priority")
        table.add_column("Status")
        table.add_column("Assignee")
        table.add_column("Depends On")

        for t in tasks:
            overdue = " [red]⚠ overdue[/red]" if not t.is_terminal and t.overdue_at(now) else ""
            table.add_row(
                t.id,
                t.name,
                f"{t.priority.name}{overdue}",
                t.status.value,
                t.assigned_to,
                ", ".join(sorted(t.dependencies)) or "-",
            )
        self.console.print(table)
