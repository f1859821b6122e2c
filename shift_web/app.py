"""Application factory for the shift engine web interface."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from flask import Flask

from shift_engine.infrastructure.config_loader import merge_config
from shift_engine.infrastructure.logging_setup import configure_logging

from .blueprints.scheduling.routes import bp as scheduling_bp
from .dao import db as db_module


DEFAULT_CONFIG: dict[str, Any] = {
    "SECRET_KEY": "dev",
    "AUTO_SEED": True,
    "SCHEDULING": {},
}


def create_app(config: dict[str, Any] | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_mapping(DEFAULT_CONFIG)

    if config:
        app.config.update(config)

    database_path = app.config.get(
        "DATABASE",
        Path(app.instance_path) / "shift_web.sqlite",
    )
    if isinstance(database_path, Path):
        database_path = str(database_path)
    app.config["DATABASE"] = database_path
    app.config["SCHEDULING"] = merge_config(app.config.get("SCHEDULING"))

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    if not app.config.get("TESTING"):
        configure_logging(app.config["SCHEDULING"])

    db_module.init_app(app)
    if app.config.get("AUTO_SEED"):
        db_module.ensure_seeded(app)

    app.register_blueprint(scheduling_bp)

    @app.get("/healthz")
    def healthcheck() -> tuple[str, int]:
        return "OK", 200

    return app
