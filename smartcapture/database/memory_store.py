import copy

from smartcapture.database.base import BaseRecordStore, Record


class InMemoryRecordStore(BaseRecordStore):
    """Process-local store. Records are copied in and out."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Record]] = {}

    async def save(self, collection: str, record_id: str, record: Record) -> None:
        self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(record)

    async def load_all(self, collection: str, filters: Record | None = None) -> list[Record]:
        records = self._collections.get(collection, {}).values()
        return [
            copy.deepcopy(record)
            for record in records
            if all(record.get(key) == value for key, value in (filters or {}).items())
        ]

    async def delete(self, collection: str, record_id: str) -> bool:
        return self._collections.get(collection, {}).pop(record_id, None) is not None
