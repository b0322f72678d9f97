"""HTTP interface for Studioplan.

This module provides the FastAPI application factory and the request
logging middleware.
"""

from __future__ import annotations

from studioplan.web.app import create_app
from studioplan.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
]
