import os
import uuid
from collections.abc import AsyncGenerator

import pytest

from smartcapture.config.settings import Settings
from smartcapture.database.connection import close_pool, get_connection, init_pool
from smartcapture.database.postgres_store import PostgresRecordStore


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "smartcapture_test")
    return Settings(storage_backend="postgres")


@pytest.fixture
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture
async def record_store(test_settings: Settings) -> AsyncGenerator[PostgresRecordStore, None]:
    try:
        await init_pool(test_settings)
        store = PostgresRecordStore()
        await store.ensure_schema()
    except Exception as e:
        await close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run integration tests")
    try:
        yield store
    finally:
        await close_pool()


@pytest.fixture
async def collection(record_store: PostgresRecordStore) -> AsyncGenerator[str, None]:
    """A collection name unique to the test; its rows are deleted afterwards."""
    name = f"test_{uuid.uuid4().hex}"
    yield name
    async with get_connection() as conn:
        await conn.execute("DELETE FROM capture_records WHERE collection = %s", (name,))
        await conn.commit()
