from depsched.scheduler.queue import AdmissionQueue
from depsched.scheduler.task_scheduler import TaskScheduler, TRANSITIONS

__all__ = ["AdmissionQueue", "TaskScheduler", "TRANSITIONS"]
