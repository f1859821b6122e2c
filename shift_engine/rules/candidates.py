from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..domain.calendar import Holiday, is_excluded_date
from ..domain.employee import Employee
from ..domain.schedule import ScheduleBook
from ..domain.shift import Shift
from .constraints import ConstraintEvaluator

logger = logging.getLogger(__name__)


class CandidateSelector:
    def __init__(self, roster: Sequence[Employee], holidays: Iterable[Holiday], evaluator: ConstraintEvaluator) -> None:
        self.roster = list(roster)
        self.evaluator = evaluator
        self.holidays = list(holidays)

    def is_excluded(self, day: date) -> bool:
        return is_excluded_date(day, self.holidays)

    def get_candidates(
        self,
        shift: Shift,
        day: date,
        history: ScheduleBook,
        current_assignee: Optional[str] = None,
    ) -> List[Employee]:
        """Eligible employees for *shift* on *day*, in roster order.

        ``current_assignee`` is the employee already holding the slot when a
        person edits an existing schedule; they are always offered.
        """

        if self.is_excluded(day):
            return []
        candidates = [
            employee
            for employee in self.roster
            if employee.is_active and self.evaluator.is_eligible(employee, shift, day, history)
        ]
        if current_assignee and all(c.id != current_assignee for c in candidates):
            current = next((e for e in self.roster if e.id == current_assignee), None)
            if current is not None:
                candidates.insert(0, current)
        logger.debug("candidates for %s on %s: %s", shift.value, day.isoformat(), [c.id for c in candidates])
        return candidates


__all__ = ["CandidateSelector"]
