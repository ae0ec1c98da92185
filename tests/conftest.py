"""Shared fixtures for pagesmith tests.

The model backend is faked at the httpx level with ``MockTransport``:
each canned response streams its body chunk by chunk, exactly as given,
so tests control where network chunk boundaries fall.
"""

from collections.abc import AsyncIterator

import pytest

from pagesmith.config import GeneratorConfig
from tests.helpers import FakeBackend


@pytest.fixture
def config() -> GeneratorConfig:
    return GeneratorConfig(endpoint="https://backend.test/generate", api_key="test-key")


@pytest.fixture
async def backend() -> AsyncIterator[FakeBackend]:
    fake = FakeBackend()
    yield fake
    await fake.client.aclose()
