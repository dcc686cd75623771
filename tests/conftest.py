"""
Pytest configuration and fixtures
"""

from unittest.mock import AsyncMock
import httpx
import pytest
from core.config import Settings
from fakes import FakeProvider
from ingestion.provider.client import FootballApiClient
from ingestion.services.base import ServiceContext
from storage.memory import MemoryStore


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Settings with no spacing between provider calls"""
    return Settings(
        _env_file=None,
        FOOTBALL_API_KEY="test-key",
        FOOTBALL_API_BASE_URL="https://football.test",
        DAILY_LIMIT=100,
        RATE_LIMIT_MIN_TIME_SECONDS=0,
        TOP_LEAGUE_IDS=[39, 140],
        DEFAULT_SEASON="2024",
        SCHEDULER_ENABLED=True,
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def api_client(provider, settings):
    return FootballApiClient(
        base_url=settings.FOOTBALL_API_BASE_URL,
        api_key=settings.FOOTBALL_API_KEY,
        transport=httpx.MockTransport(provider.handler),
    )


@pytest.fixture
def retry_sleep():
    return AsyncMock()


@pytest.fixture
def ctx(store, api_client, settings, retry_sleep):
    """ServiceContext over the in-memory store and the fake provider"""
    return ServiceContext(store, api_client, settings, retry_sleep=retry_sleep)
