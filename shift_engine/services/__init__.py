"""Scheduling loop and statistics services."""

from .scheduler import InvalidRangeError, RunState, Scheduler, SchedulerNotLoadedError, SchedulingError, schedule_range
from .statistics import StatsDelta, apply_delta, reassignment_delta

__all__ = [
    "InvalidRangeError",
    "RunState",
    "Scheduler",
    "SchedulerNotLoadedError",
    "SchedulingError",
    "StatsDelta",
    "apply_delta",
    "reassignment_delta",
    "schedule_range",
]
