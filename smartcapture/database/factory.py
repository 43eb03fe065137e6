from smartcapture.config.settings import Settings
from smartcapture.database.base import BaseRecordStore
from smartcapture.database.memory_store import InMemoryRecordStore
from smartcapture.database.postgres_store import PostgresRecordStore


class RecordStoreFactory:
    """Creates the configured record store."""

    @classmethod
    def create(cls, settings: Settings) -> BaseRecordStore:
        backend = settings.storage_backend.lower()
        if backend == "postgres":
            return PostgresRecordStore()
        if backend == "memory":
            return InMemoryRecordStore()
        raise ValueError(f"Unknown storage backend '{backend}'. Choose from: ['memory', 'postgres']")
