from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, FrozenSet, Mapping

from .shift import Shift


@dataclass(frozen=True)
class PerShiftConstraints:
    max_weekly_shifts: int
    min_interval: int
    available_days: FrozenSet[int]  # ISO weekdays, 1=Mon .. 7=Sun
    max_consecutive_days: int


# Applies whenever an employee holds a shift without a dedicated constraint block.
DEFAULT_SHIFT_CONSTRAINTS = PerShiftConstraints(
    max_weekly_shifts=5,
    min_interval=1,
    available_days=frozenset({1, 2, 3, 4, 5}),
    max_consecutive_days=1,
)


@dataclass(frozen=True)
class EmployeeConstraints:
    unavailable_dates: FrozenSet[date] = frozenset()
    by_shift: Mapping[Shift, PerShiftConstraints] = field(default_factory=dict)

    @property
    def daily_max(self) -> int:
        return 1


@dataclass
class Employee:
    id: str
    name: str
    employee_code: str = ""
    roles: FrozenSet[Shift] = frozenset()
    constraints: EmployeeConstraints = field(default_factory=EmployeeConstraints)
    historical_stats: Dict[Shift, int] = field(default_factory=dict)
    is_active: bool = True

    def historical_count(self, shift: Shift) -> int:
        return int(self.historical_stats.get(shift, 0))


def resolve_constraints(
    employee: Employee,
    shift: Shift,
    default: PerShiftConstraints = DEFAULT_SHIFT_CONSTRAINTS,
) -> PerShiftConstraints:
    """Return the constraints governing *employee* on *shift*.

    Every constraint read in the engine goes through here so the fallback
    stays in one place.
    """

    return employee.constraints.by_shift.get(shift) or default


__all__ = [
    "DEFAULT_SHIFT_CONSTRAINTS",
    "Employee",
    "EmployeeConstraints",
    "PerShiftConstraints",
    "resolve_constraints",
]
