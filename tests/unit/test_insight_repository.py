from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from smartcapture.database.base import BaseRecordStore
from smartcapture.database.exceptions import PersistenceError
from smartcapture.database.memory_store import InMemoryRecordStore
from smartcapture.database.repositories.insight_repository import InsightRepository
from smartcapture.documents.models import DocumentType
from smartcapture.processor.models import CapturedInsight
from smartcapture.templates.models import TemplateAnalysisResult
from smartcapture.vision.models import OnDeviceResult


def _make_insight(
    document_type: DocumentType = DocumentType.GENERIC,
    document_id: str = "doc-1",
    age_minutes: int = 0,
) -> CapturedInsight:
    return CapturedInsight(
        document_id=document_id,
        document_type=document_type,
        on_device_result=OnDeviceResult(text="text", confidence=0.9),
        template_analysis=TemplateAnalysisResult(template_type=document_type),
        unified_text="text",
        timestamp=datetime.now(timezone.utc) - timedelta(minutes=age_minutes),
    )


class TestInsightRepository:
    async def test_load_all_newest_first(self) -> None:
        repo = InsightRepository(InMemoryRecordStore())
        old = _make_insight(age_minutes=10)
        new = _make_insight(age_minutes=1)
        await repo.save(old)
        await repo.save(new)

        assert [i.id for i in await repo.load_all()] == [new.id, old.id]

    async def test_load_all_filters_by_type(self) -> None:
        repo = InsightRepository(InMemoryRecordStore())
        lab = _make_insight(DocumentType.LAB_REPORT)
        await repo.save(lab)
        await repo.save(_make_insight(DocumentType.GENERIC))

        assert await repo.load_all(DocumentType.LAB_REPORT) == [lab]

    async def test_malformed_records_skipped(self) -> None:
        store = InMemoryRecordStore()
        repo = InsightRepository(store)
        insight = _make_insight()
        await repo.save(insight)
        await store.save(InsightRepository.COLLECTION, "bad", {"id": "bad", "pages": "many"})

        assert await repo.load_all() == [insight]

    async def test_find_by_document_id(self) -> None:
        repo = InsightRepository(InMemoryRecordStore())
        insight = _make_insight(document_id="doc-42")
        await repo.save(insight)

        assert await repo.find_by_document_id("doc-42") == insight
        assert await repo.find_by_document_id("missing") is None

    async def test_delete(self) -> None:
        repo = InsightRepository(InMemoryRecordStore())
        insight = _make_insight()
        await repo.save(insight)
        assert await repo.delete(insight.id) is True
        assert await repo.load_all() == []

    async def test_store_errors_propagate(self) -> None:
        store = MagicMock(spec=BaseRecordStore)
        store.save = AsyncMock(side_effect=PersistenceError("disk full"))
        with pytest.raises(PersistenceError):
            await InsightRepository(store).save(_make_insight())
