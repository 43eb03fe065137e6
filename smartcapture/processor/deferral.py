from smartcapture.cloud.retry import is_retryable
from smartcapture.logging.logger import Log
from smartcapture.offline.job_queue import OfflineJobQueue
from smartcapture.offline.models import JobPayload, JobType, OfflineCaptureJob
from smartcapture.processor.pipeline import PipelineContext


class JobDeferrer:
    """Turns provider calls that cannot complete now into offline jobs."""

    def __init__(self, queue: OfflineJobQueue, priority: int = 5) -> None:
        self._queue = queue
        self._priority = priority

    async def defer(self, context: PipelineContext, job_type: JobType) -> OfflineCaptureJob:
        job = OfflineCaptureJob(
            document_id=context.document.id,
            job_type=job_type,
            payload=JobPayload.from_image(
                context.cloud_image,
                context.document_type,
                context.sanitized_text,
                context.sensitive_words if context.redact else None,
            ),
            priority=self._priority,
        )
        await self._queue.enqueue(job)
        return job

    async def defer_on_failure(
        self,
        context: PipelineContext,
        job_type: JobType,
        exc: Exception,
    ) -> None:
        """Queue the call again only when the failure is transient.

        Client errors and unparseable answers would fail the same way on
        replay, so that provider's result is simply left out.
        """
        if is_retryable(exc):
            Log.warning(
                "Cloud call failed, deferring",
                document_id=context.document.id,
                job_type=job_type.value,
                error=type(exc).__name__,
            )
            await self.defer(context, job_type)
            return
        Log.warning(
            "Cloud call failed, result dropped",
            document_id=context.document.id,
            job_type=job_type.value,
            error=str(exc),
        )
