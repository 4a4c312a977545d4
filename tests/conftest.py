"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable so no .env file is loaded, and
pins the limiter settings the tests rely on.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "60")
os.environ.setdefault("RATE_LIMIT_PERIOD_MINUTES", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from ratewindow.core import rate_limit as rate_limit_module  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_cached_limiter():
    """Give every test a fresh process-wide limiter and store."""
    rate_limit_module.reset_rate_limiter()
    yield
    rate_limit_module.reset_rate_limiter()
