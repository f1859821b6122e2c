"""Shift engine package exposing primary components."""

from .domain.employee import Employee
from .domain.schedule import DailySchedule, ShiftAssignment
from .domain.shift import Shift
from .services.scheduler import Scheduler
from .services.statistics import StatsDelta

__all__ = ["DailySchedule", "Employee", "Scheduler", "Shift", "ShiftAssignment", "StatsDelta"]
