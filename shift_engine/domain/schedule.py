"""Daily schedules and the history aggregate used by the constraint checks."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Iterator, List, MutableMapping, Optional, Sequence

from .shift import SHIFT_ORDER, Shift


@dataclass(frozen=True)
class ShiftAssignment:
    employee_id: str
    assigned_at: datetime
    is_manual: bool = False


@dataclass
class DailySchedule:
    date: date
    shifts: Dict[Shift, ShiftAssignment] = field(default_factory=dict)

    def assign(self, shift: Shift, assignment: ShiftAssignment) -> None:
        self.shifts[shift] = assignment

    def holder(self, shift: Shift) -> Optional[str]:
        assignment = self.shifts.get(shift)
        return assignment.employee_id if assignment else None

    def employee_ids(self) -> List[str]:
        return [assignment.employee_id for assignment in self.shifts.values()]

    def vacancies(self, order: Sequence[Shift] = SHIFT_ORDER) -> List[Shift]:
        return [shift for shift in order if shift not in self.shifts]

    def as_dict(self) -> Dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "shifts": {
                shift.value: {
                    "employee_id": assignment.employee_id,
                    "assigned_at": assignment.assigned_at.isoformat(),
                    "is_manual": assignment.is_manual,
                }
                for shift, assignment in sorted(self.shifts.items(), key=lambda item: SHIFT_ORDER.index(item[0]))
            },
        }


class ScheduleBook(MutableMapping[date, DailySchedule]):
    """Mapping of day to schedule with the history lookups the rules need."""

    def __init__(self, schedules: Iterable[DailySchedule] | None = None) -> None:
        self._data: Dict[date, DailySchedule] = {}
        if schedules:
            for schedule in schedules:
                self.add(schedule)

    # -- MutableMapping protocol -------------------------------------------------
    def __getitem__(self, key: date) -> DailySchedule:
        return self._data[key]

    def __setitem__(self, key: date, value: DailySchedule) -> None:
        self._data[key] = value

    def __delitem__(self, key: date) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[date]:
        return iter(sorted(self._data.keys()))

    def __len__(self) -> int:
        return len(self._data)

    # -- Construction ---------------------------------------------------------------
    def add(self, schedule: DailySchedule) -> None:
        """Merge *schedule* in; shifts already present for that day are kept."""
        current = self._data.get(schedule.date)
        if current is None:
            self._data[schedule.date] = DailySchedule(schedule.date, dict(schedule.shifts))
            return
        for shift, assignment in schedule.shifts.items():
            current.shifts.setdefault(shift, assignment)

    @classmethod
    def layered(cls, *sources: Iterable[DailySchedule]) -> "ScheduleBook":
        """Combine several schedule sources; earlier sources win per (day, shift)."""
        book = cls()
        for source in sources:
            for schedule in source.values() if isinstance(source, ScheduleBook) else source:
                book.add(schedule)
        return book

    # -- Lookups ----------------------------------------------------------------------
    def holder(self, day: date, shift: Shift) -> Optional[str]:
        schedule = self._data.get(day)
        return schedule.holder(shift) if schedule else None

    def holds(self, employee_id: str, day: date, shift: Shift) -> bool:
        return self.holder(day, shift) == employee_id

    def is_assigned(self, employee_id: str, day: date) -> bool:
        schedule = self._data.get(day)
        return schedule is not None and employee_id in schedule.employee_ids()

    def last_assignment_before(self, employee_id: str, shift: Shift, day: date) -> Optional[date]:
        latest: Optional[date] = None
        for current, schedule in self._data.items():
            if current >= day or schedule.holder(shift) != employee_id:
                continue
            if latest is None or current > latest:
                latest = current
        return latest

    def consecutive_days_before(self, employee_id: str, shift: Shift, day: date) -> int:
        count = 0
        current = day - timedelta(days=1)
        while self.holds(employee_id, current, shift):
            count += 1
            current -= timedelta(days=1)
        return count

    def count_in_week(self, employee_id: str, shift: Shift, day: date) -> int:
        monday = day - timedelta(days=day.isoweekday() - 1)
        return sum(
            1
            for offset in range(7)
            if self.holds(employee_id, monday + timedelta(days=offset), shift)
        )

    def schedules(self) -> List[DailySchedule]:
        return [self._data[day] for day in self]


__all__ = ["DailySchedule", "ScheduleBook", "ShiftAssignment"]
