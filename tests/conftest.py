"""Pytest configuration and fixtures."""

import os
import sys
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domains.taskmaster.state import MemoryStateStore
from domains.taskmaster.transport import Transport


@pytest.fixture
def now():
    """Fixed reference time: Wednesday 15 Jan 2025 10:00 UTC."""
    return datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def memory_store():
    """Store with an empty "test" session."""
    store = MemoryStateStore()
    store.create_session("test")
    return store


@pytest.fixture
def mock_transport():
    """Transport whose send() accepts every message."""
    transport = Mock(spec=Transport)
    transport.name = "mock"
    transport.send = AsyncMock(return_value=True)
    return transport


@pytest.fixture
def mock_discord_client():
    """Create a mock Discord client."""
    client = Mock()
    client.get_channel = Mock(return_value=Mock(send=AsyncMock()))
    client.fetch_channel = AsyncMock()
    return client


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx client."""
    with patch('httpx.AsyncClient') as mock:
        client = AsyncMock()
        mock.return_value.__aenter__.return_value = client
        yield client
