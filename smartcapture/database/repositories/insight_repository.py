from pydantic import ValidationError

from smartcapture.database.base import BaseRecordStore
from smartcapture.documents.models import DocumentType
from smartcapture.logging.logger import Log
from smartcapture.processor.models import CapturedInsight


class InsightRepository:
    """Storage operations for captured insights.

    Store failures surface as PersistenceError; they are fatal to the caller.
    """

    COLLECTION = "insights"

    def __init__(self, store: BaseRecordStore) -> None:
        self._store = store

    async def save(self, insight: CapturedInsight) -> None:
        await self._store.save(self.COLLECTION, insight.id, insight.to_record())

    async def load_all(self, document_type: DocumentType | None = None) -> list[CapturedInsight]:
        """Stored insights, newest first. Malformed records are skipped."""
        filters = {"document_type": document_type.value} if document_type else None
        records = await self._store.load_all(self.COLLECTION, filters)
        insights: list[CapturedInsight] = []
        for record in records:
            try:
                insights.append(CapturedInsight.from_record(record))
            except ValidationError as exc:
                Log.warning(
                    "Skipping malformed insight record",
                    insight_id=record.get("id"),
                    errors=exc.error_count(),
                )
        insights.sort(key=lambda insight: insight.timestamp, reverse=True)
        return insights

    async def find_by_document_id(self, document_id: str) -> CapturedInsight | None:
        records = await self._store.load_all(self.COLLECTION, {"document_id": document_id})
        if not records:
            return None
        return CapturedInsight.from_record(records[-1])

    async def delete(self, insight_id: str) -> bool:
        return await self._store.delete(self.COLLECTION, insight_id)
