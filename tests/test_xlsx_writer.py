from datetime import date, datetime, timezone

from openpyxl import load_workbook

from shift_engine.domain.employee import Employee
from shift_engine.domain.schedule import DailySchedule, ShiftAssignment
from shift_engine.domain.shift import Shift
from shift_engine.presentation.xlsx_writer import VACANT_LABEL, write_run


def test_write_run_grid_and_stats(tmp_path):
    employees = [Employee(id="E01", name="Alice"), Employee(id="E02", name="Bob")]
    schedule = DailySchedule(date=date(2025, 9, 1))
    schedule.assign(Shift.NOON, ShiftAssignment("E02", datetime(2025, 8, 31, tzinfo=timezone.utc)))
    order = [Shift.NOON, Shift.PHONE]

    path = write_run(
        tmp_path / "run.xlsx",
        [schedule],
        employees,
        order=order,
        stats={"E02": {Shift.NOON: 3}},
        title="September",
    )

    wb = load_workbook(path)
    ws = wb["September"]
    assert [cell.value for cell in ws[1]] == ["Date", Shift.NOON.display_name, Shift.PHONE.display_name]
    assert [cell.value for cell in ws[2]] == ["2025-09-01", "Bob", VACANT_LABEL]

    stats = wb["Stats"]
    assert [cell.value for cell in stats[3]] == ["E02 Bob", 3, 0]
