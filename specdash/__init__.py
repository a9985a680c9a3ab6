"""specdash: structured mirror of spec-driven feature documents."""

__version__ = "0.1.0"
