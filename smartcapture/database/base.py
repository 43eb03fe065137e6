from abc import ABC, abstractmethod
from typing import Any

Record = dict[str, Any]


class BaseRecordStore(ABC):
    """Contract for document storage keyed by (collection, id).

    Records are JSON-compatible dicts.
    """

    @abstractmethod
    async def save(self, collection: str, record_id: str, record: Record) -> None:
        """Insert or replace a record.

        Raises:
            PersistenceError: on any storage failure.
        """

    @abstractmethod
    async def load_all(self, collection: str, filters: Record | None = None) -> list[Record]:
        """Return records whose top-level fields equal every ``filters`` item,
        oldest first.

        Raises:
            PersistenceError: on any storage failure.
        """

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record; return False if it did not exist.

        Raises:
            PersistenceError: on any storage failure.
        """
