"""Pytest fixtures for sheet_risk tests."""

import tempfile
from pathlib import Path

import pytest

from sheet_risk.retry import RetryPolicy


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by no_sleep_policy."""
    return []


@pytest.fixture
def no_sleep_policy(sleeps: list[float]) -> RetryPolicy:
    """RetryPolicy with 3 attempts that records delays instead of sleeping."""

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return RetryPolicy(max_attempts=3, base_delay=1.0, sleep=_sleep, random_fn=lambda: 0.0)


@pytest.fixture
def temp_db() -> Path:
    """Temporary database path for isolated tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    path.unlink(missing_ok=True)
