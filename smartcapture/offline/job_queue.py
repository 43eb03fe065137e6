"""Durable queue of provider calls deferred while offline or after failure.

Mutations are serialized through one ``asyncio.Lock``; reads take a snapshot
without locking. When the store fails, the queue logs the error, keeps the
job in memory and stays marked ``degraded`` for the rest of the process.
"""

import asyncio
from datetime import datetime, timezone

from pydantic import ValidationError

from smartcapture.database.base import BaseRecordStore
from smartcapture.database.exceptions import PersistenceError
from smartcapture.logging.logger import Log
from smartcapture.offline.exceptions import JobNotFoundError
from smartcapture.offline.models import JobStatus, OfflineCaptureJob


class OfflineJobQueue:
    COLLECTION = "offline_jobs"

    def __init__(self, store: BaseRecordStore) -> None:
        self._store = store
        self._jobs: dict[str, OfflineCaptureJob] = {}
        self._lock = asyncio.Lock()
        self.degraded = False

    @property
    def jobs(self) -> list[OfflineCaptureJob]:
        return list(self._jobs.values())

    def get(self, job_id: str) -> OfflineCaptureJob:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(f"Offline job {job_id} not found") from None

    async def load(self) -> int:
        """Load persisted jobs into memory; return how many were loaded."""
        try:
            records = await self._store.load_all(self.COLLECTION)
        except PersistenceError as exc:
            Log.error("Offline queue could not be loaded, continuing in memory", error=str(exc))
            self.degraded = True
            return 0

        loaded: list[OfflineCaptureJob] = []
        for record in records:
            try:
                loaded.append(OfflineCaptureJob.from_record(record))
            except ValidationError as exc:
                Log.warning(
                    "Skipping malformed offline job record",
                    job_id=record.get("id"),
                    errors=exc.error_count(),
                )
        loaded.sort(key=lambda job: job.created_at)
        interrupted = 0
        async with self._lock:
            for job in loaded:
                if job.id in self._jobs:
                    continue
                # A job still marked processing was cut off by a previous process.
                if job.status is JobStatus.PROCESSING:
                    job.status = JobStatus.PENDING
                    await self._persist(job)
                    interrupted += 1
                self._jobs[job.id] = job
        Log.info("Offline queue loaded", jobs=len(loaded), interrupted=interrupted)
        return len(loaded)

    async def enqueue(self, job: OfflineCaptureJob) -> None:
        async with self._lock:
            self._jobs[job.id] = job
            await self._persist(job)
        Log.info(
            "Offline job enqueued",
            job_id=job.id,
            document_id=job.document_id,
            job_type=job.job_type.value,
            priority=job.priority,
        )

    def get_pending_jobs(self) -> list[OfflineCaptureJob]:
        """Pending jobs, highest priority first, FIFO within a priority."""
        pending = [job for job in self._jobs.values() if job.status is JobStatus.PENDING]
        return sorted(pending, key=lambda job: -job.priority)

    async def mark_processing(self, job_id: str) -> None:
        async with self._lock:
            job = self.get(job_id)
            job.status = JobStatus.PROCESSING
            await self._persist(job)

    async def mark_completed(self, job_id: str) -> None:
        async with self._lock:
            job = self.get(job_id)
            job.status = JobStatus.COMPLETED
            job.last_error = None
            await self._persist(job)

    async def mark_failed(self, job_id: str, error: str) -> None:
        """Record a failed attempt. The job is not rescheduled automatically."""
        async with self._lock:
            job = self.get(job_id)
            job.status = JobStatus.FAILED
            job.retry_count += 1
            job.last_retry_at = datetime.now(timezone.utc)
            job.last_error = error
            await self._persist(job)
        Log.warning("Offline job failed", job_id=job_id, retry_count=job.retry_count)

    async def requeue_failed(self) -> int:
        """Move every failed job back to pending; return how many moved."""
        async with self._lock:
            failed = [job for job in self._jobs.values() if job.status is JobStatus.FAILED]
            for job in failed:
                job.status = JobStatus.PENDING
                await self._persist(job)
        if failed:
            Log.info("Failed offline jobs requeued", jobs=len(failed))
        return len(failed)

    async def _persist(self, job: OfflineCaptureJob) -> None:
        try:
            await self._store.save(self.COLLECTION, job.id, job.to_record())
        except PersistenceError as exc:
            if not self.degraded:
                Log.error(
                    "Offline queue persistence failed, keeping jobs in memory",
                    job_id=job.id,
                    error=str(exc),
                )
            self.degraded = True
