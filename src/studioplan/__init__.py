"""Studioplan - Contract and project-schedule tracking for design studios.

This package provides the work-day schedule engine, the studio state
aggregate with its JSON document store, a Typer CLI and a FastAPI service.
"""

__version__ = "0.1.0"
