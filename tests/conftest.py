"""Shared pytest fixtures for Studioplan tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from studioplan.logging import set_correlation_id


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Start and end every test with default, uncached structlog settings.

    Loggers bound while ``cache_logger_on_first_use`` is active would keep
    their processors, which breaks ``structlog.testing.capture_logs`` in
    later tests.
    """
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)
