from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from smartcapture.database.base import BaseRecordStore
from smartcapture.database.exceptions import PersistenceError
from smartcapture.database.memory_store import InMemoryRecordStore
from smartcapture.documents.models import DocumentType
from smartcapture.offline.exceptions import JobNotFoundError
from smartcapture.offline.job_queue import OfflineJobQueue
from smartcapture.offline.models import JobPayload, JobStatus, JobType, OfflineCaptureJob


def _make_job(priority: int = 5, document_id: str = "doc-1", **kwargs: object) -> OfflineCaptureJob:
    return OfflineCaptureJob(
        document_id=document_id,
        job_type=JobType.CLOUD_OCR,
        payload=JobPayload.from_image(b"img", DocumentType.LAB_REPORT, "Glucose: 40"),
        priority=priority,
        **kwargs,
    )


def _failing_store() -> MagicMock:
    store = MagicMock(spec=BaseRecordStore)
    store.save = AsyncMock(side_effect=PersistenceError("disk full"))
    store.load_all = AsyncMock(side_effect=PersistenceError("db down"))
    return store


class TestJobPayload:
    def test_image_round_trip(self) -> None:
        payload = JobPayload.from_image(b"\x00\xffimage", DocumentType.GENERIC)
        assert payload.image == b"\x00\xffimage"
        assert payload.text is None

    def test_job_record_round_trip(self) -> None:
        job = _make_job(priority=9)
        record = job.to_record()
        assert record["job_type"] == "cloud_ocr"
        assert record["payload"]["document_type"] == "lab_report"
        assert OfflineCaptureJob.from_record(record) == job


class TestOfflineJobQueue:
    async def test_pending_order_is_priority_then_fifo(self) -> None:
        queue = OfflineJobQueue(InMemoryRecordStore())
        low_first = _make_job(priority=5, document_id="a")
        high = _make_job(priority=9, document_id="b")
        low_second = _make_job(priority=5, document_id="c")
        for job in (low_first, high, low_second):
            await queue.enqueue(job)

        assert [job.document_id for job in queue.get_pending_jobs()] == ["b", "a", "c"]

    async def test_enqueue_persists(self) -> None:
        store = InMemoryRecordStore()
        queue = OfflineJobQueue(store)
        job = _make_job()
        await queue.enqueue(job)

        records = await store.load_all(OfflineJobQueue.COLLECTION)
        assert [record["id"] for record in records] == [job.id]
        assert queue.degraded is False

    async def test_mark_failed_records_attempt(self) -> None:
        queue = OfflineJobQueue(InMemoryRecordStore())
        job = _make_job()
        await queue.enqueue(job)
        await queue.mark_processing(job.id)
        await queue.mark_failed(job.id, "HTTP 503")

        stored = queue.get(job.id)
        assert stored.status is JobStatus.FAILED
        assert stored.retry_count == 1
        assert stored.last_error == "HTTP 503"
        assert stored.last_retry_at is not None
        assert queue.get_pending_jobs() == []

    async def test_mark_completed_clears_error(self) -> None:
        queue = OfflineJobQueue(InMemoryRecordStore())
        job = _make_job(last_error="old")
        await queue.enqueue(job)
        await queue.mark_completed(job.id)
        assert queue.get(job.id).status is JobStatus.COMPLETED
        assert queue.get(job.id).last_error is None

    async def test_requeue_failed(self) -> None:
        queue = OfflineJobQueue(InMemoryRecordStore())
        job = _make_job()
        await queue.enqueue(job)
        await queue.mark_failed(job.id, "boom")

        assert await queue.requeue_failed() == 1
        assert queue.get_pending_jobs() == [job]
        assert queue.get(job.id).retry_count == 1

    async def test_unknown_job_raises(self) -> None:
        queue = OfflineJobQueue(InMemoryRecordStore())
        with pytest.raises(JobNotFoundError):
            await queue.mark_completed("missing")

    async def test_store_failure_degrades_to_memory(self) -> None:
        queue = OfflineJobQueue(_failing_store())
        job = _make_job()
        await queue.enqueue(job)

        assert queue.degraded is True
        assert queue.get_pending_jobs() == [job]

    async def test_load_failure_degrades(self) -> None:
        queue = OfflineJobQueue(_failing_store())
        assert await queue.load() == 0
        assert queue.degraded is True


class TestOfflineJobQueueLoad:
    async def test_load_restores_jobs_oldest_first(self) -> None:
        store = InMemoryRecordStore()
        now = datetime.now(timezone.utc)
        newer = _make_job(document_id="newer", created_at=now)
        older = _make_job(document_id="older", created_at=now - timedelta(minutes=5))
        for job in (newer, older):
            await store.save(OfflineJobQueue.COLLECTION, job.id, job.to_record())

        queue = OfflineJobQueue(store)
        assert await queue.load() == 2
        assert [job.document_id for job in queue.get_pending_jobs()] == ["older", "newer"]

    async def test_load_skips_malformed_records(self) -> None:
        store = InMemoryRecordStore()
        job = _make_job()
        await store.save(OfflineJobQueue.COLLECTION, job.id, job.to_record())
        await store.save(OfflineJobQueue.COLLECTION, "bad", {"id": "bad", "job_type": "teleport"})

        queue = OfflineJobQueue(store)
        assert await queue.load() == 1
        assert [j.id for j in queue.jobs] == [job.id]

    async def test_interrupted_processing_job_is_pending_again(self) -> None:
        store = InMemoryRecordStore()
        first = OfflineJobQueue(store)
        job = _make_job()
        await first.enqueue(job)
        await first.mark_processing(job.id)

        restarted = OfflineJobQueue(store)
        await restarted.load()

        assert [j.id for j in restarted.get_pending_jobs()] == [job.id]
        reloaded = OfflineJobQueue(store)
        await reloaded.load()
        assert reloaded.get(job.id).status is JobStatus.PENDING

    async def test_payload_keeps_sensitive_words(self) -> None:
        store = InMemoryRecordStore()
        job = OfflineCaptureJob(
            document_id="doc-1",
            job_type=JobType.CLOUD_OCR,
            payload=JobPayload.from_image(
                b"img", DocumentType.LAB_REPORT, "***** Smith", sensitive_words=["alice"]
            ),
        )
        await OfflineJobQueue(store).enqueue(job)

        queue = OfflineJobQueue(store)
        await queue.load()

        assert queue.get(job.id).payload.sensitive_words == ["alice"]
