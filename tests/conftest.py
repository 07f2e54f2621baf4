from unittest.mock import AsyncMock

import pytest

from petrecords.core.config import Settings

TEST_SETTINGS = Settings(
    API_BASE_URL="http://test-api/api",
    REQUEST_TIMEOUT=5.0,
    REDIS_URL="redis://localhost:6379",
    LOG_LEVEL="debug",
    ENVIRONMENT="test",
)

API = TEST_SETTINGS.API_BASE_URL


@pytest.fixture(autouse=True)
def kv_store():
    """Replace the module-level Redis client with a dict-backed AsyncMock.

    Yields the backing dict so tests can seed or inspect stored values.
    """
    import petrecords.core.redis as redis_module

    data: dict[str, str] = {}

    async def _get(key):
        return data.get(key)

    async def _set(key, value):
        data[key] = value
        return True

    async def _delete(*keys):
        return sum(1 for key in keys if data.pop(key, None) is not None)

    client = AsyncMock()
    client.get = AsyncMock(side_effect=_get)
    client.set = AsyncMock(side_effect=_set)
    client.delete = AsyncMock(side_effect=_delete)

    previous = redis_module._client
    redis_module._client = client
    yield data
    redis_module._client = previous


@pytest.fixture
def redis_client(kv_store):
    import petrecords.core.redis as redis_module

    return redis_module._client


@pytest.fixture
def records():
    from petrecords.services.medical_records import MedicalRecords

    return MedicalRecords(TEST_SETTINGS)
