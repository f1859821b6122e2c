"""Excel writer for a run's daily grid."""
from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from ..domain.employee import Employee
from ..domain.schedule import DailySchedule
from ..domain.shift import SHIFT_ORDER, Shift

HEADER_FONT = Font(bold=True)
CENTER = Alignment(horizontal="center", vertical="center")
VACANT_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
VACANT_LABEL = "—"


def write_run(
    path: str | Path,
    schedules: Sequence[DailySchedule],
    employees: Sequence[Employee],
    *,
    order: Sequence[Shift] = SHIFT_ORDER,
    stats: Mapping[str, Mapping[Shift, int]] | None = None,
    title: str | None = None,
) -> Path:
    names = {employee.id: employee.name for employee in employees}

    wb = Workbook()
    ws = wb.active
    ws.title = title or "Schedule"

    ws.cell(row=1, column=1, value="Date").font = HEADER_FONT
    for col_idx, shift in enumerate(order, start=2):
        cell = ws.cell(row=1, column=col_idx, value=shift.display_name)
        cell.font = HEADER_FONT
        cell.alignment = CENTER

    for row_idx, schedule in enumerate(schedules, start=2):
        ws.cell(row=row_idx, column=1, value=schedule.date.isoformat()).font = HEADER_FONT
        for col_idx, shift in enumerate(order, start=2):
            holder = schedule.holder(shift)
            cell = ws.cell(row=row_idx, column=col_idx, value=names.get(holder, holder) if holder else VACANT_LABEL)
            cell.alignment = CENTER
            if holder is None:
                cell.fill = VACANT_FILL

    if stats is not None:
        sheet = wb.create_sheet("Stats")
        sheet.cell(row=1, column=1, value="Employee").font = HEADER_FONT
        for col_idx, shift in enumerate(order, start=2):
            sheet.cell(row=1, column=col_idx, value=shift.display_name).font = HEADER_FONT
        for row_idx, employee in enumerate(employees, start=2):
            sheet.cell(row=row_idx, column=1, value=f"{employee.id} {employee.name}")
            row = stats.get(employee.id, {})
            for col_idx, shift in enumerate(order, start=2):
                sheet.cell(row=row_idx, column=col_idx, value=int(row.get(shift, 0))).alignment = CENTER

    path = Path(path)
    wb.save(path)
    return path
