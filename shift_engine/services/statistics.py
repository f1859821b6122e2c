"""Derive assignment counts from schedules and apply them to stored stats."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..domain.schedule import DailySchedule
from ..domain.shift import SHIFT_ORDER, Shift

StatsTable = Dict[str, Dict[Shift, int]]


@dataclass
class StatsDelta:
    """Per-employee, per-shift count changes to apply to historical stats."""

    counts: StatsTable = field(default_factory=dict)

    @classmethod
    def from_schedules(cls, schedules: Iterable[DailySchedule]) -> "StatsDelta":
        delta = cls()
        for schedule in schedules:
            for shift, assignment in schedule.shifts.items():
                delta.add(assignment.employee_id, shift)
        return delta

    @classmethod
    def from_table(cls, table: Mapping[str, Mapping[Shift, int]]) -> "StatsDelta":
        delta = cls()
        for employee_id, row in table.items():
            for shift, count in row.items():
                if count:
                    delta.add(employee_id, shift, count)
        return delta

    def add(self, employee_id: str, shift: Shift, amount: int = 1) -> None:
        row = self.counts.setdefault(employee_id, {})
        row[shift] = row.get(shift, 0) + amount

    def merge(self, other: "StatsDelta") -> "StatsDelta":
        merged = StatsDelta.from_table(self.counts)
        for employee_id, row in other.counts.items():
            for shift, count in row.items():
                merged.add(employee_id, shift, count)
        return merged

    def negate(self) -> "StatsDelta":
        return StatsDelta({emp: {shift: -count for shift, count in row.items()} for emp, row in self.counts.items()})

    def total(self) -> int:
        return sum(sum(row.values()) for row in self.counts.values())

    def is_empty(self) -> bool:
        return not any(count for row in self.counts.values() for count in row.values())

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            employee_id: {shift.value: row[shift] for shift in SHIFT_ORDER if row.get(shift)}
            for employee_id, row in sorted(self.counts.items())
        }


def apply_delta(stats: Mapping[str, Mapping[Shift, int]], delta: StatsDelta) -> StatsTable:
    """Return a new stats table with *delta* added; counts never drop below zero."""
    result: StatsTable = {emp: dict(row) for emp, row in stats.items()}
    for employee_id, row in delta.counts.items():
        target = result.setdefault(employee_id, {})
        for shift, count in row.items():
            target[shift] = max(0, target.get(shift, 0) + count)
    return result


def reassignment_delta(shift: Shift, previous_employee_id: Optional[str], new_employee_id: str) -> StatsDelta:
    delta = StatsDelta()
    if previous_employee_id == new_employee_id:
        return delta
    if previous_employee_id:
        delta.add(previous_employee_id, shift, -1)
    delta.add(new_employee_id, shift, 1)
    return delta


def count_by_period(schedules: Iterable[DailySchedule], start: date, end: date) -> StatsDelta:
    return StatsDelta.from_schedules(s for s in schedules if start <= s.date <= end)


def vacancy_report(schedules: Iterable[DailySchedule], order: Sequence[Shift] = SHIFT_ORDER) -> List[Tuple[date, Shift]]:
    return [(schedule.date, shift) for schedule in schedules for shift in schedule.vacancies(order)]


def vacancies_by_shift(schedules: Iterable[DailySchedule], order: Sequence[Shift] = SHIFT_ORDER) -> Dict[Shift, int]:
    totals: Dict[Shift, int] = defaultdict(int)
    for _, shift in vacancy_report(schedules, order):
        totals[shift] += 1
    return dict(totals)


__all__ = [
    "StatsDelta",
    "StatsTable",
    "apply_delta",
    "count_by_period",
    "reassignment_delta",
    "vacancies_by_shift",
    "vacancy_report",
]
