"""Bridge between the HTTP layer, the repository and the scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from flask import current_app

from shift_engine.domain.employee import Employee
from shift_engine.domain.schedule import DailySchedule
from shift_engine.domain.shift import Shift, UnknownShiftError
from shift_engine.services.scheduler import Scheduler
from shift_engine.services.statistics import StatsDelta, count_by_period, reassignment_delta, vacancy_report

from ..dao.db import get_repository


class InvalidRequestError(ValueError):
    """Raised when request parameters cannot be interpreted."""


class EmployeeNotFoundError(LookupError):
    """Raised when a referenced employee does not exist."""


@dataclass(slots=True)
class RunResult:
    schedules: List[DailySchedule]
    delta: StatsDelta
    committed: bool
    vacancies: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "schedules": [schedule.as_dict() for schedule in self.schedules],
            "stats_delta": self.delta.as_dict(),
            "committed": self.committed,
            "days": len(self.schedules),
            "vacancies": self.vacancies,
        }


def parse_date(value: Optional[str], field: str = "date") -> date:
    if not value:
        raise InvalidRequestError(f"{field} is required")
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise InvalidRequestError(f"{field} must be in YYYY-MM-DD format") from exc


def parse_shift(value: Optional[str]) -> Shift:
    if not value:
        raise InvalidRequestError("shift is required")
    try:
        return Shift.parse(value)
    except UnknownShiftError as exc:
        raise InvalidRequestError(str(exc)) from exc


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidRequestError("start must not be after end")


def _build_scheduler(start: date, end: date) -> Scheduler:
    """Fresh scheduler loaded with the stored snapshot around ``start..end``."""
    config = current_app.config["SCHEDULING"]
    repository = get_repository()
    lookback = int(config.get("lookback_days", 31))
    scheduler = Scheduler(config)
    scheduler.load_data(
        repository.list_employees(),
        repository.list_holidays(),
        repository.list_approved_leaves(),
        repository.load_schedules(start - timedelta(days=lookback), end),
    )
    return scheduler


def run(start: date, end: date, *, commit: bool = False) -> RunResult:
    _check_range(start, end)
    scheduler = _build_scheduler(start, end)
    schedules = scheduler.run(start, end)
    delta = scheduler.stats_delta()
    if commit:
        get_repository().commit_run(schedules, delta)
    return RunResult(
        schedules=schedules,
        delta=delta,
        committed=commit,
        vacancies=len(vacancy_report(schedules, scheduler.shift_order)),
    )


def list_candidates(day: date, shift: Shift) -> List[Employee]:
    scheduler = _build_scheduler(day, day)
    current = scheduler.state.history.holder(day, shift)
    return scheduler.get_candidates(shift, day, current_assignee=current)


def reassign(day: date, shift: Shift, employee_id: str) -> Dict[str, Any]:
    repository = get_repository()
    employee = next((e for e in repository.list_employees() if e.id == employee_id), None)
    if employee is None:
        raise EmployeeNotFoundError(f"Employee {employee_id} does not exist")
    if shift not in employee.roles:
        raise InvalidRequestError(f"Employee {employee_id} is not certified for {shift.value}")
    previous = repository.update_assignment(day, shift, employee_id)
    delta = reassignment_delta(shift, previous, employee_id)
    return {
        "date": day.isoformat(),
        "shift": shift.value,
        "employee_id": employee_id,
        "previous_employee_id": previous,
        "stats_delta": delta.as_dict(),
    }


def list_schedules(start: date, end: date) -> Dict[str, Any]:
    """Stored schedules in ``start..end`` with the assignment counts of that period."""
    _check_range(start, end)
    schedules = get_repository().load_schedules(start, end)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "schedules": [schedule.as_dict() for schedule in schedules],
        "stats": count_by_period(schedules, start, end).as_dict(),
    }


def delete_schedules(start: date, end: date) -> Dict[str, Any]:
    _check_range(start, end)
    delta = get_repository().delete_schedules(start, end)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "deleted": -delta.total(),
        "stats_delta": delta.as_dict(),
    }


def historical_stats() -> List[Dict[str, Any]]:
    return [
        {
            "id": employee.id,
            "name": employee.name,
            "is_active": employee.is_active,
            "stats": {shift.value: employee.historical_count(shift) for shift in Shift},
        }
        for employee in get_repository().list_employees()
    ]


def employee_view(employee: Employee) -> Dict[str, Any]:
    return {"id": employee.id, "name": employee.name, "employee_code": employee.employee_code}
