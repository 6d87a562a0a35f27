"""Shared test fixtures for all test modules."""

from datetime import UTC, datetime

import pytest

from revenue_pulse.core.config import Settings

# Fixed evaluation instant used across all tests
FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays in seconds."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        WHOP_COMPANY_ID="biz_test",
        WHOP_API_KEY="test-key",
        FETCH_MAX_ATTEMPTS=3,
        FETCH_INITIAL_DELAY_MS=1000,
    )
