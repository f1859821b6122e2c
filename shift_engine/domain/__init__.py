"""Domain objects for the shift engine."""

from .calendar import Holiday, HolidayType, LeaveRecord, LeaveStatus, LeaveType, is_excluded_date
from .employee import (
    DEFAULT_SHIFT_CONSTRAINTS,
    Employee,
    EmployeeConstraints,
    PerShiftConstraints,
    resolve_constraints,
)
from .schedule import DailySchedule, ScheduleBook, ShiftAssignment
from .shift import SHIFT_ORDER, Shift, TimeWindow, UnknownShiftError

__all__ = [
    "DEFAULT_SHIFT_CONSTRAINTS",
    "DailySchedule",
    "Employee",
    "EmployeeConstraints",
    "Holiday",
    "HolidayType",
    "LeaveRecord",
    "LeaveStatus",
    "LeaveType",
    "PerShiftConstraints",
    "SHIFT_ORDER",
    "ScheduleBook",
    "Shift",
    "ShiftAssignment",
    "TimeWindow",
    "UnknownShiftError",
    "is_excluded_date",
    "resolve_constraints",
]
