"""Command line entry points for running the scheduler outside the web app."""
from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Sequence

import click

from ..domain.employee import Employee
from ..domain.schedule import DailySchedule
from ..domain.shift import Shift
from ..infrastructure.config_loader import load_config, merge_config
from ..infrastructure.logging_setup import configure_logging
from ..infrastructure.repository import ScheduleRepository
from ..infrastructure.snapshot import as_date, load_snapshot
from ..presentation import xlsx_writer
from ..services.scheduler import Scheduler
from ..services.statistics import vacancies_by_shift


def _echo_table(schedules: Sequence[DailySchedule], employees: Sequence[Employee], order: Sequence[Shift]) -> None:
    names = {employee.id: employee.name for employee in employees}
    click.echo("date        " + " ".join(f"{shift.value:<10}" for shift in order))
    for schedule in schedules:
        cells = []
        for shift in order:
            holder = schedule.holder(shift)
            cells.append(f"{(names.get(holder, holder) if holder else '-'):<10}")
        click.echo(f"{schedule.date.isoformat()}  " + " ".join(cells))


def _summary(scheduler: Scheduler, schedules: Sequence[DailySchedule]) -> None:
    vacant = vacancies_by_shift(schedules, scheduler.shift_order)
    click.echo(f"days: {len(schedules)}  assignments: {scheduler.stats_delta().total()}")
    if vacant:
        click.echo("vacancies: " + ", ".join(f"{shift.value}={count}" for shift, count in vacant.items()))


@click.group()
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """Shift engine command line."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level


@cli.command("run")
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--start", "start_raw", default=None, help="First day (YYYY-MM-DD); defaults to the scenario's start.")
@click.option("--end", "end_raw", default=None, help="Last day (YYYY-MM-DD); defaults to the scenario's end.")
@click.option("--xlsx", "xlsx_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--json", "as_json", is_flag=True, help="Print the schedules as JSON instead of a table.")
@click.pass_context
def run_scenario(
    ctx: click.Context,
    scenario: Path,
    start_raw: Optional[str],
    end_raw: Optional[str],
    xlsx_path: Optional[Path],
    as_json: bool,
) -> None:
    """Run the scheduler over a YAML/JSON scenario file."""
    payload = load_config(scenario)
    config = merge_config(payload.get("config"))
    configure_logging(config, level=ctx.obj.get("log_level"))

    start_value = start_raw or payload.get("start")
    end_value = end_raw or payload.get("end")
    if not start_value or not end_value:
        raise click.UsageError("start and end dates are required (options or scenario keys)")
    start, end = as_date(start_value), as_date(end_value)

    snapshot = load_snapshot(payload)
    scheduler = Scheduler(config)
    scheduler.load_data(snapshot["employees"], snapshot["holidays"], snapshot["leaves"], snapshot["schedules"])
    schedules = scheduler.run(start, end)

    if as_json:
        click.echo(json.dumps(
            {
                "schedules": [schedule.as_dict() for schedule in schedules],
                "stats_delta": scheduler.stats_delta().as_dict(),
            },
            ensure_ascii=False,
            indent=2,
        ))
    else:
        _echo_table(schedules, snapshot["employees"], scheduler.shift_order)
        _summary(scheduler, schedules)

    if xlsx_path:
        xlsx_writer.write_run(
            xlsx_path,
            schedules,
            snapshot["employees"],
            order=scheduler.shift_order,
            stats=scheduler.get_historical_stats(),
            title=payload.get("name") or scenario.stem,
        )
        click.echo(f"written {xlsx_path}")


@cli.command("import")
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("database", type=click.Path(dir_okay=False, path_type=Path))
def import_scenario(scenario: Path, database: Path) -> None:
    """Seed a SQLite database with the roster, calendar and history of a scenario."""
    snapshot = load_snapshot(load_config(scenario))
    repository = ScheduleRepository(database)
    for employee in snapshot["employees"]:
        repository.save_employee(employee)
    for holiday in snapshot["holidays"]:
        repository.save_holiday(holiday)
    for leave in snapshot["leaves"]:
        repository.save_leave(leave)
    written = repository.save_schedules(snapshot["schedules"])
    click.echo(
        f"imported {len(snapshot['employees'])} employees, {len(snapshot['holidays'])} holidays, "
        f"{len(snapshot['leaves'])} leaves, {written} assignments"
    )


@cli.command("run-db")
@click.argument("database", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--start", "start_raw", required=True)
@click.option("--end", "end_raw", required=True)
@click.option("--lookback", type=int, default=None, help="Days of stored history to load before start.")
@click.option("--commit", is_flag=True, help="Persist the schedules and update historical stats.")
@click.pass_context
def run_database(
    ctx: click.Context,
    database: Path,
    start_raw: str,
    end_raw: str,
    lookback: Optional[int],
    commit: bool,
) -> None:
    """Run the scheduler against a SQLite database."""
    config = merge_config()
    configure_logging(config, level=ctx.obj.get("log_level"))
    start, end = as_date(start_raw), as_date(end_raw)
    lookback_days = lookback if lookback is not None else int(config["lookback_days"])

    repository = ScheduleRepository(database)
    employees: List[Employee] = repository.list_employees()
    scheduler = Scheduler(config)
    scheduler.load_data(
        employees,
        repository.list_holidays(),
        repository.list_approved_leaves(),
        repository.load_schedules(start - timedelta(days=lookback_days), end),
    )
    schedules = scheduler.run(start, end)
    _echo_table(schedules, employees, scheduler.shift_order)
    _summary(scheduler, schedules)

    if commit:
        written = repository.commit_run(schedules, scheduler.stats_delta())
        click.echo(f"committed {written} assignments")


def main() -> None:  # pragma: no cover - console entry point
    cli(obj={})


if __name__ == "__main__":  # pragma: no cover
    main()
