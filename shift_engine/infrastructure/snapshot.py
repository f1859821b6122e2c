"""Conversion between plain payloads (JSON, YAML, SQLite rows) and domain objects."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Mapping

from ..domain.calendar import Holiday, HolidayType, LeaveRecord, LeaveStatus
from ..domain.employee import Employee, EmployeeConstraints, PerShiftConstraints
from ..domain.schedule import DailySchedule, ShiftAssignment
from ..domain.shift import Shift, UnknownShiftError

logger = logging.getLogger(__name__)

_STATS_META_KEYS = {"last_updated", "lastUpdated"}


class SnapshotError(ValueError):
    """Raised when an input record cannot be interpreted."""


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise SnapshotError(f"Unsupported date value: {value!r}")


def as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise SnapshotError(f"Unsupported datetime value: {value!r}")


def _shift(value: Any) -> Shift:
    try:
        return Shift.parse(value)
    except UnknownShiftError as exc:
        raise SnapshotError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------

def constraints_from_dict(payload: Mapping[str, Any]) -> PerShiftConstraints:
    try:
        days = frozenset(int(day) for day in _pick(payload, "available_days", "availableDays", default=()))
        return PerShiftConstraints(
            max_weekly_shifts=int(_pick(payload, "max_weekly_shifts", "maxWeeklyShifts")),
            min_interval=int(_pick(payload, "min_interval", "minInterval")),
            available_days=days,
            max_consecutive_days=int(_pick(payload, "max_consecutive_days", "maxConsecutiveDays")),
        )
    except (TypeError, ValueError) as exc:
        raise SnapshotError(f"Invalid shift constraints: {payload!r}") from exc


def constraints_to_dict(constraints: PerShiftConstraints) -> Dict[str, Any]:
    return {
        "max_weekly_shifts": constraints.max_weekly_shifts,
        "min_interval": constraints.min_interval,
        "available_days": sorted(constraints.available_days),
        "max_consecutive_days": constraints.max_consecutive_days,
    }


def _roles(raw: Any) -> frozenset:
    if isinstance(raw, Mapping):
        return frozenset(_shift(key) for key, enabled in raw.items() if enabled)
    return frozenset(_shift(key) for key in raw or ())


def _by_shift(employee_id: str, raw: Mapping[str, Any]) -> Dict[Shift, PerShiftConstraints]:
    result: Dict[Shift, PerShiftConstraints] = {}
    for key, block in (raw or {}).items():
        shift = _shift(key)
        if not block:
            continue
        try:
            result[shift] = constraints_from_dict(block)
        except SnapshotError:
            logger.warning("employee %s: malformed %s constraints, using scheduler defaults", employee_id, shift.value)
    return result


def employee_from_dict(payload: Mapping[str, Any]) -> Employee:
    if "id" not in payload:
        raise SnapshotError(f"Employee record without id: {payload!r}")
    employee_id = str(payload["id"])
    raw_constraints = payload.get("constraints") or {}
    constraints = EmployeeConstraints(
        unavailable_dates=frozenset(
            as_date(value) for value in _pick(raw_constraints, "unavailable_dates", "unavailableDates", default=())
        ),
        by_shift=_by_shift(employee_id, _pick(raw_constraints, "by_shift", "byShift", default={})),
    )
    stats: Dict[Shift, int] = {}
    for key, count in (_pick(payload, "historical_stats", "historicalStats", default={}) or {}).items():
        if key in _STATS_META_KEYS:
            continue
        shift = _shift(key)
        stats[shift] = stats.get(shift, 0) + int(count or 0)
    return Employee(
        id=employee_id,
        name=str(payload.get("name", employee_id)),
        employee_code=str(_pick(payload, "employee_code", "employeeId", default="")),
        roles=_roles(payload.get("roles")),
        constraints=constraints,
        historical_stats=stats,
        is_active=bool(_pick(payload, "is_active", "isActive", default=True)),
    )


def employee_to_dict(employee: Employee) -> Dict[str, Any]:
    return {
        "id": employee.id,
        "name": employee.name,
        "employee_code": employee.employee_code,
        "roles": sorted(shift.value for shift in employee.roles),
        "constraints": {
            "unavailable_dates": sorted(day.isoformat() for day in employee.constraints.unavailable_dates),
            "by_shift": {
                shift.value: constraints_to_dict(block) for shift, block in employee.constraints.by_shift.items()
            },
        },
        "historical_stats": {shift.value: count for shift, count in employee.historical_stats.items()},
        "is_active": employee.is_active,
    }


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

def holiday_from_dict(payload: Mapping[str, Any]) -> Holiday:
    try:
        holiday_type = HolidayType(payload.get("type", HolidayType.NATIONAL.value))
    except ValueError as exc:
        raise SnapshotError(f"Unknown holiday type: {payload.get('type')!r}") from exc
    return Holiday(
        date=as_date(payload["date"]),
        name=str(payload.get("name", "")),
        type=holiday_type,
        exclude_from_scheduling=bool(
            _pick(payload, "exclude_from_scheduling", "excludeFromScheduling", default=True)
        ),
    )


def leave_from_dict(payload: Mapping[str, Any]) -> LeaveRecord:
    start = _pick(payload, "start", "start_time", "startTime")
    end = _pick(payload, "end", "end_time", "endTime")
    employee_id = _pick(payload, "employee_id", "employeeId")
    if start is None or end is None or employee_id is None:
        raise SnapshotError(f"Incomplete leave record: {payload!r}")
    record = LeaveRecord(employee_id=str(employee_id), start=as_datetime(start), end=as_datetime(end))
    if record.end < record.start:
        raise SnapshotError(f"Leave ends before it starts: {payload!r}")
    return record


def approved_leaves(payloads: Iterable[Mapping[str, Any]]) -> List[LeaveRecord]:
    """Normalise leave applications, keeping approved ones (records without a status count as approved)."""
    return [
        leave_from_dict(payload)
        for payload in payloads
        if payload.get("status", LeaveStatus.APPROVED.value) == LeaveStatus.APPROVED.value
    ]


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

def daily_schedule_from_dict(payload: Mapping[str, Any]) -> DailySchedule:
    day = as_date(payload["date"])
    schedule = DailySchedule(date=day)
    for key, raw in (payload.get("shifts") or {}).items():
        if not raw:
            continue
        employee_id = _pick(raw, "employee_id", "employeeId")
        if employee_id is None:
            raise SnapshotError(f"Assignment without employee on {day.isoformat()}: {raw!r}")
        assigned_at = _pick(raw, "assigned_at", "assignedAt")
        schedule.assign(
            _shift(key),
            ShiftAssignment(
                employee_id=str(employee_id),
                assigned_at=as_datetime(assigned_at) if assigned_at else datetime.combine(day, time.min, timezone.utc),
                is_manual=bool(_pick(raw, "is_manual", "isManual", default=False)),
            ),
        )
    return schedule


def load_snapshot(payload: Mapping[str, Any]) -> Dict[str, list]:
    """Parse a scenario-style mapping with ``employees``/``holidays``/``leaves``/``schedules`` lists."""
    return {
        "employees": [employee_from_dict(item) for item in payload.get("employees") or []],
        "holidays": [holiday_from_dict(item) for item in payload.get("holidays") or []],
        "leaves": approved_leaves(payload.get("leaves") or []),
        "schedules": [daily_schedule_from_dict(item) for item in payload.get("schedules") or []],
    }


__all__ = [
    "SnapshotError",
    "approved_leaves",
    "as_date",
    "as_datetime",
    "constraints_from_dict",
    "constraints_to_dict",
    "daily_schedule_from_dict",
    "employee_from_dict",
    "employee_to_dict",
    "holiday_from_dict",
    "leave_from_dict",
    "load_snapshot",
]
