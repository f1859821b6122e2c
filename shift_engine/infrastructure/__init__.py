"""Configuration, snapshot parsing and persistence for the shift engine."""
