"""Repository access for the web application."""

from __future__ import annotations

from pathlib import Path

import click
from flask import Flask, current_app, g
from flask.cli import with_appcontext

from shift_engine.infrastructure.config_loader import load_config
from shift_engine.infrastructure.repository import ScheduleRepository
from shift_engine.infrastructure.snapshot import load_snapshot

SEED_PATH = Path(__file__).resolve().parent.parent / "seeds" / "seed.yaml"


def get_repository() -> ScheduleRepository:
    """Return the repository bound to the current application context."""
    if "repository" not in g:
        g.repository = ScheduleRepository(current_app.config["DATABASE"])
    return g.repository  # type: ignore[return-value]


def close_repository(_: object | None = None) -> None:
    g.pop("repository", None)


def init_app(app: Flask) -> None:
    """Attach teardown handlers and CLI commands to the app."""
    app.teardown_appcontext(close_repository)
    app.cli.add_command(init_db_command)


def seed_database(repository: ScheduleRepository, seed_path: Path = SEED_PATH) -> int:
    snapshot = load_snapshot(load_config(seed_path))
    for employee in snapshot["employees"]:
        repository.save_employee(employee)
    for holiday in snapshot["holidays"]:
        repository.save_holiday(holiday)
    for leave in snapshot["leaves"]:
        repository.save_leave(leave)
    repository.save_schedules(snapshot["schedules"])
    return len(snapshot["employees"])


def ensure_seeded(app: Flask) -> None:
    """Seed the bundled demo roster into an empty database."""
    with app.app_context():
        repository = get_repository()
        if not repository.list_employees():
            seed_database(repository, Path(app.config.get("SEED_PATH", SEED_PATH)))


@click.command("init-db")
@click.option("--force", is_flag=True, help="Recreate the database from scratch.")
@with_appcontext
def init_db_command(force: bool) -> None:
    """Initialize the database with the bundled seed roster."""
    database_path = Path(current_app.config["DATABASE"])
    if force and database_path.exists():
        database_path.unlink()
    close_repository()
    count = seed_database(get_repository(), Path(current_app.config.get("SEED_PATH", SEED_PATH)))
    click.echo(f"Database initialized with {count} employees.")
