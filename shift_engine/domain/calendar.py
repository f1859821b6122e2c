"""Holidays, leave records and date exclusion rules."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional, Tuple

MINUTES_PER_DAY = 24 * 60


class HolidayType(str, Enum):
    NATIONAL = "national"
    WEEKEND = "weekend"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    MEETING = "meeting"
    OTHER_DUTY = "other_duty"
    COMPENSATORY_LEAVE = "compensatory_leave"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Holiday:
    date: date
    name: str = ""
    type: HolidayType = HolidayType.NATIONAL
    exclude_from_scheduling: bool = True


@dataclass(frozen=True)
class LeaveRecord:
    """An approved absence, normalised to start/end instants."""

    employee_id: str
    start: datetime
    end: datetime

    def covers(self, day: date) -> bool:
        return self.start.date() <= day <= self.end.date()

    def blocked_window(self, day: date) -> Optional[Tuple[int, int]]:
        """Minutes of *day* blocked by this leave, as ``(start, end)``.

        The first day is blocked from the leave's start time, the last day up
        to its end time and any day in between entirely. An end time of 23:59
        counts as the end of the day.
        """

        if not self.covers(day):
            return None
        start = 0
        end = MINUTES_PER_DAY
        if day == self.start.date():
            start = self.start.hour * 60 + self.start.minute
        if day == self.end.date() and (self.end.hour, self.end.minute) < (23, 59):
            end = self.end.hour * 60 + self.end.minute
        return start, end


def is_weekend(day: date) -> bool:
    return day.isoweekday() >= 6


def is_excluded_date(day: date, holidays: Iterable[Holiday]) -> bool:
    if is_weekend(day):
        return True
    return any(h.date == day and h.exclude_from_scheduling for h in holidays)


__all__ = [
    "Holiday",
    "HolidayType",
    "LeaveRecord",
    "LeaveStatus",
    "LeaveType",
    "is_excluded_date",
    "is_weekend",
]
