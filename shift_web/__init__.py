"""Flask web interface for the shift engine."""

from .app import create_app

__all__ = ["create_app"]
