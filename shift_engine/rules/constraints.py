"""Hard constraints deciding whether an employee may take a shift on a day."""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..domain.calendar import LeaveRecord
from ..domain.employee import DEFAULT_SHIFT_CONSTRAINTS, Employee, PerShiftConstraints, resolve_constraints
from ..domain.schedule import ScheduleBook
from ..domain.shift import Shift

logger = logging.getLogger(__name__)


class Rejection(str, Enum):
    INACTIVE = "inactive"
    NOT_CERTIFIED = "not_certified"
    UNAVAILABLE_DATE = "unavailable_date"
    ON_LEAVE = "on_leave"
    ALREADY_ASSIGNED = "already_assigned"
    DAY_NOT_AVAILABLE = "day_not_available"
    MIN_INTERVAL = "min_interval"
    MAX_CONSECUTIVE = "max_consecutive"
    MAX_WEEKLY = "max_weekly"


class ConstraintEvaluator:
    def __init__(
        self,
        leaves: Iterable[LeaveRecord] = (),
        default_constraints: PerShiftConstraints = DEFAULT_SHIFT_CONSTRAINTS,
    ) -> None:
        self.default_constraints = default_constraints
        self._leaves: Dict[str, List[LeaveRecord]] = defaultdict(list)
        for record in leaves:
            self._leaves[record.employee_id].append(record)

    # ------------------------------------------------------------------
    def constraints_for(self, employee: Employee, shift: Shift) -> PerShiftConstraints:
        return resolve_constraints(employee, shift, self.default_constraints)

    def is_on_leave(self, employee_id: str, shift: Shift, day: date) -> bool:
        window = shift.window
        for record in self._leaves.get(employee_id, ()):
            blocked = record.blocked_window(day)
            if blocked and window.overlaps(*blocked):
                return True
        return False

    def check(self, employee: Employee, shift: Shift, day: date, history: ScheduleBook) -> Optional[Rejection]:
        """Return the first failed rule, or ``None`` when *employee* is eligible.

        *history* holds both the persisted schedules and whatever the current
        run has already committed.
        """

        if not employee.is_active:
            return Rejection.INACTIVE
        if shift not in employee.roles:
            return Rejection.NOT_CERTIFIED
        if day in employee.constraints.unavailable_dates:
            return Rejection.UNAVAILABLE_DATE
        if self.is_on_leave(employee.id, shift, day):
            return Rejection.ON_LEAVE
        if history.is_assigned(employee.id, day):
            return Rejection.ALREADY_ASSIGNED

        limits = self.constraints_for(employee, shift)
        if day.isoweekday() not in limits.available_days:
            return Rejection.DAY_NOT_AVAILABLE

        last = history.last_assignment_before(employee.id, shift, day)
        if last is not None and (day - last).days < limits.min_interval:
            return Rejection.MIN_INTERVAL

        run_length = history.consecutive_days_before(employee.id, shift, day) + 1
        if run_length > limits.max_consecutive_days:
            return Rejection.MAX_CONSECUTIVE

        if history.count_in_week(employee.id, shift, day) >= limits.max_weekly_shifts:
            return Rejection.MAX_WEEKLY
        return None

    def is_eligible(self, employee: Employee, shift: Shift, day: date, history: ScheduleBook) -> bool:
        reason = self.check(employee, shift, day, history)
        if reason is not None:
            logger.debug("%s rejected for %s on %s: %s", employee.id, shift.value, day.isoformat(), reason.value)
        return reason is None


__all__ = ["ConstraintEvaluator", "Rejection"]
