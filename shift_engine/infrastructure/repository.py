"""SQLite repository for rosters, calendars, schedules and historical stats."""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from ..domain.calendar import Holiday, HolidayType, LeaveRecord, LeaveStatus, LeaveType
from ..domain.employee import Employee
from ..domain.schedule import DailySchedule, ScheduleBook, ShiftAssignment
from ..domain.shift import Shift
from ..services.statistics import StatsDelta, apply_delta, reassignment_delta
from .snapshot import employee_from_dict, employee_to_dict

SCHEMA = """
CREATE TABLE IF NOT EXISTS employees (
    id TEXT PRIMARY KEY,
    payload_json TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1
);
CREATE TABLE IF NOT EXISTS holidays (
    date TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    exclude_from_scheduling INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS leaves (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    employee_id TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    leave_type TEXT NOT NULL,
    status TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS schedule_assignments (
    day TEXT NOT NULL,
    shift TEXT NOT NULL,
    employee_id TEXT NOT NULL,
    assigned_at TEXT NOT NULL,
    is_manual INTEGER NOT NULL,
    PRIMARY KEY (day, shift)
);
"""


class ScheduleRepository:
    def __init__(self, path: str | Path = "shift_engine.db") -> None:
        self.path = Path(path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Connection committed on success, rolled back on error, always closed."""
        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._session() as conn:
            conn.executescript(SCHEMA)

    # -- Employees ------------------------------------------------------------------
    def save_employee(self, employee: Employee) -> None:
        with self._session() as conn:
            self._write_employee(conn, employee)

    @staticmethod
    def _write_employee(conn: sqlite3.Connection, employee: Employee) -> None:
        conn.execute(
            "INSERT INTO employees(id, payload_json, is_active) VALUES (?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET payload_json=excluded.payload_json, is_active=excluded.is_active",
            (employee.id, json.dumps(employee_to_dict(employee), ensure_ascii=False), int(employee.is_active)),
        )

    def list_employees(self, *, active_only: bool = False) -> List[Employee]:
        sql = "SELECT payload_json FROM employees"
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY id"
        with self._session() as conn:
            rows = conn.execute(sql).fetchall()
        return [employee_from_dict(json.loads(row[0])) for row in rows]

    # -- Calendar -------------------------------------------------------------------
    def save_holiday(self, holiday: Holiday) -> None:
        with self._session() as conn:
            conn.execute(
                "INSERT INTO holidays(date, name, type, exclude_from_scheduling) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(date) DO UPDATE SET name=excluded.name, type=excluded.type, "
                "exclude_from_scheduling=excluded.exclude_from_scheduling",
                (holiday.date.isoformat(), holiday.name, holiday.type.value, int(holiday.exclude_from_scheduling)),
            )

    def list_holidays(self) -> List[Holiday]:
        with self._session() as conn:
            rows = conn.execute("SELECT date, name, type, exclude_from_scheduling FROM holidays ORDER BY date").fetchall()
        return [
            Holiday(date=date.fromisoformat(row[0]), name=row[1], type=HolidayType(row[2]), exclude_from_scheduling=bool(row[3]))
            for row in rows
        ]

    def save_leave(
        self,
        record: LeaveRecord,
        *,
        leave_type: LeaveType = LeaveType.ANNUAL,
        status: LeaveStatus = LeaveStatus.APPROVED,
    ) -> int:
        with self._session() as conn:
            cursor = conn.execute(
                "INSERT INTO leaves(employee_id, start_time, end_time, leave_type, status) VALUES (?, ?, ?, ?, ?)",
                (record.employee_id, record.start.isoformat(), record.end.isoformat(), leave_type.value, status.value),
            )
            return int(cursor.lastrowid)

    def list_approved_leaves(self) -> List[LeaveRecord]:
        with self._session() as conn:
            rows = conn.execute(
                "SELECT employee_id, start_time, end_time FROM leaves WHERE status = ? ORDER BY start_time",
                (LeaveStatus.APPROVED.value,),
            ).fetchall()
        return [
            LeaveRecord(employee_id=row[0], start=datetime.fromisoformat(row[1]), end=datetime.fromisoformat(row[2]))
            for row in rows
        ]

    # -- Schedules ------------------------------------------------------------------
    @staticmethod
    def _write_schedules(conn: sqlite3.Connection, schedules: Iterable[DailySchedule]) -> int:
        rows = [
            (
                schedule.date.isoformat(),
                shift.value,
                assignment.employee_id,
                assignment.assigned_at.isoformat(),
                int(assignment.is_manual),
            )
            for schedule in schedules
            for shift, assignment in schedule.shifts.items()
        ]
        conn.executemany(
            "INSERT INTO schedule_assignments(day, shift, employee_id, assigned_at, is_manual) VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(day, shift) DO UPDATE SET employee_id=excluded.employee_id, "
            "assigned_at=excluded.assigned_at, is_manual=excluded.is_manual",
            rows,
        )
        return len(rows)

    def save_schedules(self, schedules: Iterable[DailySchedule]) -> int:
        with self._session() as conn:
            return self._write_schedules(conn, schedules)

    @staticmethod
    def _read_schedules(conn: sqlite3.Connection, start: date, end: date) -> List[DailySchedule]:
        rows = conn.execute(
            "SELECT day, shift, employee_id, assigned_at, is_manual FROM schedule_assignments "
            "WHERE day >= ? AND day <= ? ORDER BY day",
            (start.isoformat(), end.isoformat()),
        ).fetchall()
        book = ScheduleBook()
        for day_raw, shift_raw, employee_id, assigned_at, is_manual in rows:
            schedule = DailySchedule(date=date.fromisoformat(day_raw))
            schedule.assign(
                Shift.parse(shift_raw),
                ShiftAssignment(employee_id=employee_id, assigned_at=datetime.fromisoformat(assigned_at), is_manual=bool(is_manual)),
            )
            book.add(schedule)
        return book.schedules()

    def load_schedules(self, start: date, end: date) -> List[DailySchedule]:
        with self._session() as conn:
            return self._read_schedules(conn, start, end)

    @staticmethod
    def _holder(conn: sqlite3.Connection, day: date, shift: Shift) -> Optional[str]:
        row = conn.execute(
            "SELECT employee_id FROM schedule_assignments WHERE day = ? AND shift = ?",
            (day.isoformat(), shift.value),
        ).fetchone()
        return row[0] if row else None

    def update_assignment(
        self,
        day: date,
        shift: Shift,
        employee_id: str,
        *,
        assigned_at: Optional[datetime] = None,
    ) -> Optional[str]:
        """Manually set the holder of a slot and move its count in the same transaction.

        Returns the previous holder, if any.
        """
        assigned_at = assigned_at or datetime.now(timezone.utc)
        with self._session() as conn:
            previous = self._holder(conn, day, shift)
            schedule = DailySchedule(date=day)
            schedule.assign(shift, ShiftAssignment(employee_id=employee_id, assigned_at=assigned_at, is_manual=True))
            self._write_schedules(conn, [schedule])
            self._apply_stats(conn, reassignment_delta(shift, previous, employee_id))
        return previous

    def delete_schedules(self, start: date, end: date) -> StatsDelta:
        """Remove the assignments in ``start..end`` and take their counts back off historical stats.

        Returns the delta that was applied.
        """
        with self._session() as conn:
            removed = self._read_schedules(conn, start, end)
            delta = StatsDelta.from_schedules(removed).negate()
            conn.execute(
                "DELETE FROM schedule_assignments WHERE day >= ? AND day <= ?",
                (start.isoformat(), end.isoformat()),
            )
            self._apply_stats(conn, delta)
        return delta

    # -- Historical stats -------------------------------------------------------------
    def _apply_stats(self, conn: sqlite3.Connection, delta: StatsDelta) -> None:
        for employee_id in delta.counts:
            row = conn.execute("SELECT payload_json FROM employees WHERE id = ?", (employee_id,)).fetchone()
            if row is None:
                continue
            employee = employee_from_dict(json.loads(row[0]))
            updated = apply_delta({employee.id: employee.historical_stats}, delta)
            employee.historical_stats = updated[employee.id]
            self._write_employee(conn, employee)

    def commit_run(self, schedules: Iterable[DailySchedule], delta: StatsDelta) -> int:
        """Persist a run's schedules and its stats delta in a single transaction.

        Stored holders of the slots being overwritten lose their count, so a
        slot is never counted twice.
        """
        schedules = list(schedules)
        with self._session() as conn:
            replaced = StatsDelta()
            for schedule in schedules:
                for shift in schedule.shifts:
                    previous = self._holder(conn, schedule.date, shift)
                    if previous is not None:
                        replaced.add(previous, shift, -1)
            written = self._write_schedules(conn, schedules)
            self._apply_stats(conn, delta.merge(replaced))
        return written


__all__ = ["ScheduleRepository"]
