import asyncio
from collections.abc import Callable
from dataclasses import replace

from smartcapture.cloud.compliance_client import ComplianceAnalysisClient
from smartcapture.cloud.factory import CloudClientFactory
from smartcapture.cloud.models import CloudOcrResult, ComplianceAnalysis, VisionAnalysis
from smartcapture.cloud.ocr_client import CloudOcrClient
from smartcapture.cloud.vision_client import VisionAnalysisClient
from smartcapture.compliance.base import BaseAuditSink
from smartcapture.compliance.factory import AuditSinkFactory
from smartcapture.config.settings import Settings
from smartcapture.database.base import BaseRecordStore
from smartcapture.database.factory import RecordStoreFactory
from smartcapture.database.repositories.insight_repository import InsightRepository
from smartcapture.documents.models import (
    CaptureMetadata,
    CapturedDocument,
    DocumentType,
    ProcessingStage,
)
from smartcapture.logging.logger import Log
from smartcapture.offline.connectivity import ConnectivityMonitor
from smartcapture.offline.drainer import QueueDrainer
from smartcapture.offline.job_queue import OfflineJobQueue
from smartcapture.offline.models import JobType, OfflineCaptureJob
from smartcapture.processor.aggregator import aggregate, merged_entities
from smartcapture.processor.deferral import JobDeferrer
from smartcapture.processor.exceptions import EmptyBatchError
from smartcapture.processor.models import CapturedInsight, ProgressUpdate
from smartcapture.processor.pipeline import PipelineContext, PipelineStep
from smartcapture.processor.redaction import TextRedactor
from smartcapture.processor.steps import (
    AggregateStep,
    CloudOcrStep,
    MultimodalAnalysisStep,
    OnDeviceVisionStep,
    TemplateAnalysisStep,
)
from smartcapture.templates.engine import TemplateEngine
from smartcapture.vision.factory import VisionProcessorFactory
from smartcapture.vision.processor import OnDeviceVisionProcessor

ACCESS_TYPE = "intelligent_capture"

ProgressCallback = Callable[[ProgressUpdate], None]


class CaptureOrchestrator:
    """Runs captured documents through the full pipeline.

    Pipeline: on-device vision -> cloud OCR -> multimodal analysis ->
    template analysis -> aggregate -> audit -> persist. Cloud providers that
    are offline or fail transiently are deferred to the offline queue; the
    pipeline only fails on unusable input or when the insight cannot be saved.
    """

    def __init__(
        self,
        vision: OnDeviceVisionProcessor,
        template_engine: TemplateEngine,
        insights: InsightRepository,
        queue: OfflineJobQueue,
        ocr_client: CloudOcrClient | None = None,
        vision_client: VisionAnalysisClient | None = None,
        compliance_client: ComplianceAnalysisClient | None = None,
        audit_sink: BaseAuditSink | None = None,
        monitor: ConnectivityMonitor | None = None,
        job_priority: int = 5,
    ) -> None:
        self._vision = vision
        self._template_engine = template_engine
        self._insights = insights
        self._queue = queue
        self._ocr_client = ocr_client
        self._vision_client = vision_client
        self._compliance_client = compliance_client
        self._audit_sink = audit_sink
        self._monitor = monitor
        self._progress: ProgressUpdate | None = None
        self._subscribers: list[ProgressCallback] = []

        deferrer = JobDeferrer(queue, job_priority)
        self._steps: list[PipelineStep] = [
            OnDeviceVisionStep(vision),
            CloudOcrStep(ocr_client, deferrer, vision),
            MultimodalAnalysisStep(vision_client, compliance_client, deferrer),
            TemplateAnalysisStep(template_engine),
            AggregateStep(),
        ]

    @property
    def queue(self) -> OfflineJobQueue:
        return self._queue

    @property
    def progress(self) -> ProgressUpdate | None:
        """The most recent progress update across all documents."""
        return self._progress

    @property
    def is_online(self) -> bool:
        return self._monitor.is_online if self._monitor is not None else True

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a progress callback; return a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, update: ProgressUpdate) -> None:
        self._progress = update
        for callback in list(self._subscribers):
            try:
                callback(update)
            except Exception as exc:
                Log.warning("Progress subscriber failed", error=str(exc))

    async def process_document(
        self,
        image: bytes,
        document_type: DocumentType = DocumentType.GENERIC,
        user_consent: bool = False,
        sensitive_words: list[str] | None = None,
    ) -> CapturedInsight:
        """Process one encoded image.

        Raises:
            InvalidInputError: if the image is empty or cannot be decoded.
            PersistenceError: if the insight cannot be saved.
        """
        document = CapturedDocument(
            image_data=image,
            document_type=document_type,
            metadata=CaptureMetadata(capture_mode="intelligent", file_size=len(image)),
            offline_mode=not self.is_online,
        )
        return await self.process_captured(document, user_consent, sensitive_words)

    async def process_multi_page(
        self,
        images: list[bytes],
        document_type: DocumentType = DocumentType.GENERIC,
        user_consent: bool = False,
        sensitive_words: list[str] | None = None,
    ) -> CapturedInsight:
        """Process a batch as one document.

        Every page is recognized on-device; cloud analysis sees the first page only.
        """
        if not images:
            raise EmptyBatchError("A multi-page document needs at least one page")
        document = CapturedDocument(
            image_data=images[0],
            document_type=document_type,
            pages=len(images),
            metadata=CaptureMetadata(
                capture_mode="batch", file_size=sum(len(image) for image in images)
            ),
            offline_mode=not self.is_online,
            page_images=list(images),
        )
        return await self.process_captured(document, user_consent, sensitive_words)

    async def process_captured(
        self,
        document: CapturedDocument,
        user_consent: bool = False,
        sensitive_words: list[str] | None = None,
    ) -> CapturedInsight:
        """Run the pipeline for a document produced by a capture session."""
        Log.info(
            "Processing captured document",
            document_id=document.id,
            document_type=document.document_type.value,
            pages=document.pages,
        )
        context = PipelineContext(
            document=document,
            user_consent=user_consent,
            sensitive_words=list(sensitive_words or []),
            online=self.is_online and not document.offline_mode,
            on_progress=self._publish,
        )
        try:
            for step in self._steps:
                context = await step.run(context)

            insight = context.insight
            insight.audit_log_id = await self._audit(context)
            await self._insights.save(insight)
        except Exception:
            if not context.document.processing_stage.is_terminal:
                context.document.advance_stage(ProcessingStage.FAILED)
            context.report_progress(ProcessingStage.FAILED, 1.0)
            Log.exception("Document processing failed", document_id=document.id)
            raise

        context.document.advance_stage(ProcessingStage.COMPLETED)
        context.report_progress(ProcessingStage.COMPLETED, 1.0)
        Log.info(
            "Document processed",
            document_id=document.id,
            insight_id=insight.id,
            confidence=round(insight.overall_confidence, 3),
            deferred=insight.deferred_cloud_analysis,
        )
        return insight

    async def _audit(self, context: PipelineContext) -> str | None:
        if self._audit_sink is None:
            return None
        metadata: dict[str, object] = {
            "document_type": context.document_type.value,
            "phi_detected": bool(context.phi_detections),
            "phi_redacted": context.redact,
            "offline_mode": not context.online,
        }
        try:
            return await self._audit_sink.log_document_access(
                context.document.id, ACCESS_TYPE, metadata
            )
        except Exception as exc:
            Log.warning("Audit log failed", document_id=context.document.id, error=str(exc))
            return None

    async def apply_deferred_result(self, job: OfflineCaptureJob, result: object) -> None:
        """Fold a replayed provider result into the stored insight of its document."""
        insight = await self._insights.find_by_document_id(job.document_id)
        if insight is None:
            Log.warning(
                "Deferred result has no stored insight",
                document_id=job.document_id,
                job_type=job.job_type.value,
            )
            return

        ocr = insight.cloud_ocr_result
        vision_analysis = insight.vision_analysis
        compliance_analysis = insight.compliance_analysis
        if job.job_type is JobType.CLOUD_OCR and isinstance(result, CloudOcrResult):
            ocr = result
            if insight.phi_redacted:
                redactor = TextRedactor(self._vision, job.payload.sensitive_words)
                ocr = await asyncio.to_thread(redactor.apply_to_cloud_ocr, result)
        elif job.job_type is JobType.VISION_ANALYSIS and isinstance(result, VisionAnalysis):
            vision_analysis = result
        elif job.job_type is JobType.COMPLIANCE_ANALYSIS and isinstance(result, ComplianceAnalysis):
            compliance_analysis = result
        else:
            Log.warning("Unexpected deferred result", job_id=job.id, job_type=job.job_type.value)
            return

        template_analysis = self._template_engine.analyze(
            insight.document_type,
            ocr.text if ocr else insight.on_device_result.text,
            tables=ocr.tables if ocr else [],
            entities=merged_entities(vision_analysis, compliance_analysis),
        )
        rebuilt = aggregate(
            document_id=insight.document_id,
            document_type=insight.document_type,
            on_device_result=insight.on_device_result,
            template_analysis=template_analysis,
            cloud_ocr_result=ocr,
            vision_analysis=vision_analysis,
            compliance_analysis=compliance_analysis,
            phi_redacted=insight.phi_redacted,
            phi_types=insight.phi_types,
            pages=insight.pages,
        )
        updated = replace(
            rebuilt,
            id=insight.id,
            timestamp=insight.timestamp,
            audit_log_id=insight.audit_log_id,
        )
        await self._insights.save(updated)
        Log.info(
            "Deferred result applied",
            insight_id=updated.id,
            job_type=job.job_type.value,
            deferred=updated.deferred_cloud_analysis,
        )

    async def load_insights(self, document_type: DocumentType | None = None) -> list[CapturedInsight]:
        return await self._insights.load_all(document_type)

    async def delete_insight(self, insight_id: str) -> bool:
        deleted = await self._insights.delete(insight_id)
        if deleted:
            Log.info("Insight deleted", insight_id=insight_id)
        return deleted

    def build_drainer(self) -> QueueDrainer:
        """A drainer replaying this orchestrator's queue into its stored insights."""
        return QueueDrainer(
            self._queue,
            ocr_client=self._ocr_client,
            vision_client=self._vision_client,
            compliance_client=self._compliance_client,
            on_result=self.apply_deferred_result,
        )

    async def aclose(self) -> None:
        """Close provider clients. Calls still in flight finish on their own timeouts."""
        for client in (self._ocr_client, self._vision_client, self._compliance_client):
            if client is not None:
                await client.aclose()
        if self._audit_sink is not None:
            await self._audit_sink.aclose()


def build_orchestrator(
    settings: Settings,
    store: BaseRecordStore | None = None,
    monitor: ConnectivityMonitor | None = None,
) -> CaptureOrchestrator:
    """Build a CaptureOrchestrator with all required adapters."""
    store = store or RecordStoreFactory.create(settings)
    return CaptureOrchestrator(
        vision=VisionProcessorFactory.create(settings),
        template_engine=TemplateEngine(),
        insights=InsightRepository(store),
        queue=OfflineJobQueue(store),
        ocr_client=CloudClientFactory.create_ocr_client(settings),
        vision_client=CloudClientFactory.create_vision_client(settings),
        compliance_client=CloudClientFactory.create_compliance_client(settings),
        audit_sink=AuditSinkFactory.create(settings),
        monitor=monitor,
        job_priority=settings.offline_job_priority,
    )
