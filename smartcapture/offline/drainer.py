import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from smartcapture.cloud.compliance_client import ComplianceAnalysisClient
from smartcapture.cloud.exceptions import CloudClientError
from smartcapture.cloud.ocr_client import CloudOcrClient
from smartcapture.cloud.vision_client import VisionAnalysisClient
from smartcapture.logging.logger import Log
from smartcapture.offline.job_queue import OfflineJobQueue
from smartcapture.offline.models import JobType, OfflineCaptureJob
from smartcapture.vision.exceptions import InvalidInputError

ResultHandler = Callable[[OfflineCaptureJob, object], Awaitable[None]]


@dataclass
class DrainReport:
    completed: int = 0
    failed: int = 0
    skipped: int = 0


class QueueDrainer:
    """Replays pending offline jobs against their provider clients."""

    def __init__(
        self,
        queue: OfflineJobQueue,
        ocr_client: CloudOcrClient | None = None,
        vision_client: VisionAnalysisClient | None = None,
        compliance_client: ComplianceAnalysisClient | None = None,
        on_result: ResultHandler | None = None,
    ) -> None:
        self._queue = queue
        self._ocr_client = ocr_client
        self._vision_client = vision_client
        self._compliance_client = compliance_client
        self._on_result = on_result
        self._lock = asyncio.Lock()

    def _has_client(self, job_type: JobType) -> bool:
        clients = {
            JobType.CLOUD_OCR: self._ocr_client,
            JobType.VISION_ANALYSIS: self._vision_client,
            JobType.COMPLIANCE_ANALYSIS: self._compliance_client,
        }
        return clients[job_type] is not None

    async def drain(self) -> DrainReport:
        """Process every pending job once, highest priority first.

        A drain already in progress makes this call a no-op.
        """
        report = DrainReport()
        if self._lock.locked():
            Log.debug("Drain already running, skipping")
            return report

        async with self._lock:
            pending = self._queue.get_pending_jobs()
            if pending:
                Log.info("Draining offline queue", jobs=len(pending))
            for job in pending:
                if not self._has_client(job.job_type):
                    report.skipped += 1
                    continue
                await self._queue.mark_processing(job.id)
                try:
                    result = await self._dispatch(job)
                    if self._on_result is not None:
                        await self._on_result(job, result)
                except (CloudClientError, InvalidInputError) as exc:
                    await self._queue.mark_failed(job.id, str(exc))
                    report.failed += 1
                    continue
                except Exception as exc:
                    Log.exception("Applying offline job result failed", job_id=job.id)
                    await self._queue.mark_failed(job.id, str(exc))
                    report.failed += 1
                    continue
                await self._queue.mark_completed(job.id)
                report.completed += 1

        Log.info(
            "Offline queue drained",
            completed=report.completed,
            failed=report.failed,
            skipped=report.skipped,
        )
        return report

    async def _dispatch(self, job: OfflineCaptureJob) -> object:
        payload = job.payload
        if job.job_type is JobType.CLOUD_OCR:
            return await self._ocr_client.extract_text(payload.image, payload.document_type)
        if job.job_type is JobType.VISION_ANALYSIS:
            return await self._vision_client.analyze(
                payload.image, payload.document_type, payload.text
            )
        return await self._compliance_client.analyze(
            payload.image, payload.document_type, payload.text
        )
