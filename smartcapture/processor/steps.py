import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from smartcapture.cloud.compliance_client import ComplianceAnalysisClient
from smartcapture.cloud.exceptions import CloudClientError
from smartcapture.cloud.ocr_client import CloudOcrClient
from smartcapture.cloud.vision_client import VisionAnalysisClient
from smartcapture.documents.models import CapturedDocument, DocumentType, ProcessingStage
from smartcapture.logging.logger import Log
from smartcapture.offline.models import JobType
from smartcapture.processor.aggregator import aggregate, merged_entities
from smartcapture.processor.concurrency import gather_settled
from smartcapture.processor.deferral import JobDeferrer
from smartcapture.processor.pipeline import PipelineContext, PipelineStep
from smartcapture.processor.redaction import TextRedactor
from smartcapture.templates.engine import TemplateEngine
from smartcapture.vision.exceptions import InvalidInputError
from smartcapture.vision.models import OnDeviceResult
from smartcapture.vision.processor import OnDeviceVisionProcessor

T = TypeVar("T")

CLOUD_LANGUAGE_HINTS = ["en", "ar"]


def combine_pages(results: list[OnDeviceResult]) -> OnDeviceResult:
    """Merge per-page recognition into one result with page separators."""
    text = "\n\n".join(
        f"--- Page {number} ---\n{result.text}" for number, result in enumerate(results, start=1)
    )
    languages = {result.language for result in results}
    return OnDeviceResult(
        text=text,
        text_blocks=[block for result in results for block in result.text_blocks],
        confidence=round(sum(result.confidence for result in results) / len(results), 4),
        language=languages.pop() if len(languages) == 1 else "mixed",
        processing_time_ms=sum(result.processing_time_ms for result in results),
    )


class OnDeviceVisionStep(PipelineStep):
    """Recognize text, classify the document and redact PHI without consent."""

    def __init__(self, vision: OnDeviceVisionProcessor) -> None:
        self._vision = vision

    async def run(self, context: PipelineContext) -> PipelineContext:
        context.report_progress(ProcessingStage.ON_DEVICE_VISION, 0.2)
        document = context.document
        result = await self._recognize(document)
        document.advance_stage(ProcessingStage.ON_DEVICE_VISION)

        if context.document_type is DocumentType.GENERIC:
            detected = self._vision.classify_document_type(result.text)
            if detected is not DocumentType.GENERIC:
                context.document_type = detected
                Log.info(
                    "Document classified",
                    document_id=document.id,
                    document_type=detected.value,
                )

        # NER is CPU bound.
        detections = await asyncio.to_thread(
            self._vision.detect_phi, result.text, context.sensitive_words
        )
        context.phi_detections = detections
        context.redact = bool(detections) and not context.user_consent
        if context.redact:
            redactor = TextRedactor(self._vision, context.sensitive_words)
            result = redactor.apply_to_on_device(
                result, self._vision.redact_phi(result.text, detections)
            )
        context.on_device_result = result

        Log.info(
            "On-device vision completed",
            document_id=document.id,
            chars=len(result.text),
            phi_found=len(detections),
            redacted=context.redact,
        )
        context.report_progress(ProcessingStage.ON_DEVICE_VISION, 0.4)
        return context

    async def _recognize(self, document: CapturedDocument) -> OnDeviceResult:
        images = document.page_images if len(document.page_images) > 1 else [document.image_data]
        results: list[OnDeviceResult] = []
        for number, image in enumerate(images, start=1):
            if not image:
                raise InvalidInputError(f"Page {number} of document {document.id} is empty")
            result = await self._vision.recognize_text(image)
            if not result.is_valid:
                raise InvalidInputError(
                    f"Page {number} of document {document.id} could not be decoded"
                )
            results.append(result)
        return results[0] if len(results) == 1 else combine_pages(results)


class CloudOcrStep(PipelineStep):
    """High-fidelity OCR of the first page; deferred when offline or on transient failure."""

    def __init__(
        self,
        client: CloudOcrClient | None,
        deferrer: JobDeferrer,
        vision: OnDeviceVisionProcessor,
    ) -> None:
        self._client = client
        self._deferrer = deferrer
        self._vision = vision

    async def run(self, context: PipelineContext) -> PipelineContext:
        if self._client is None:
            Log.debug("Cloud OCR not configured", document_id=context.document.id)
        elif not context.online:
            await self._deferrer.defer(context, JobType.CLOUD_OCR)
        else:
            context.report_progress(ProcessingStage.CLOUD_OCR, 0.5)
            try:
                result = await self._client.extract_text(
                    context.cloud_image,
                    context.document_type,
                    CLOUD_LANGUAGE_HINTS,
                )
            except CloudClientError as exc:
                await self._deferrer.defer_on_failure(context, JobType.CLOUD_OCR, exc)
            else:
                if context.redact:
                    redactor = TextRedactor(self._vision, context.sensitive_words)
                    result = await asyncio.to_thread(redactor.apply_to_cloud_ocr, result)
                context.cloud_ocr_result = result
                context.document.advance_stage(ProcessingStage.CLOUD_OCR)

        context.report_progress(ProcessingStage.CLOUD_OCR, 0.6)
        return context


class MultimodalAnalysisStep(PipelineStep):
    """Run both vision analyzers concurrently; each failure is handled on its own."""

    def __init__(
        self,
        vision_client: VisionAnalysisClient | None,
        compliance_client: ComplianceAnalysisClient | None,
        deferrer: JobDeferrer,
    ) -> None:
        self._vision_client = vision_client
        self._compliance_client = compliance_client
        self._deferrer = deferrer

    async def run(self, context: PipelineContext) -> PipelineContext:
        if not context.online:
            if self._vision_client is not None:
                await self._deferrer.defer(context, JobType.VISION_ANALYSIS)
            if self._compliance_client is not None:
                await self._deferrer.defer(context, JobType.COMPLIANCE_ANALYSIS)
        else:
            document_type = context.document_type
            text = context.sanitized_text
            image = context.cloud_image
            calls = []
            if self._vision_client is not None:
                calls.append(
                    self._call(
                        context,
                        JobType.VISION_ANALYSIS,
                        lambda: self._vision_client.analyze(image, document_type, text),
                    )
                )
            if self._compliance_client is not None:
                calls.append(
                    self._call(
                        context,
                        JobType.COMPLIANCE_ANALYSIS,
                        lambda: self._compliance_client.analyze(image, document_type, text),
                    )
                )
            results = iter(await gather_settled(*calls, expected=(CloudClientError,)))
            if self._vision_client is not None:
                context.vision_analysis = next(results)
            if self._compliance_client is not None:
                context.compliance_analysis = next(results)

            if context.vision_analysis is not None or context.compliance_analysis is not None:
                context.document.advance_stage(ProcessingStage.MULTIMODAL_ANALYSIS)

        context.report_progress(ProcessingStage.MULTIMODAL_ANALYSIS, 0.8)
        return context

    async def _call(
        self,
        context: PipelineContext,
        job_type: JobType,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await operation()
        except CloudClientError as exc:
            await self._deferrer.defer_on_failure(context, job_type, exc)
            raise


class TemplateAnalysisStep(PipelineStep):
    def __init__(self, engine: TemplateEngine) -> None:
        self._engine = engine

    async def run(self, context: PipelineContext) -> PipelineContext:
        ocr = context.cloud_ocr_result
        context.template_analysis = self._engine.analyze(
            context.document_type,
            ocr.text if ocr else context.sanitized_text,
            tables=ocr.tables if ocr else [],
            entities=merged_entities(context.vision_analysis, context.compliance_analysis),
        )
        context.report_progress(ProcessingStage.MULTIMODAL_ANALYSIS, 0.9)
        return context


class AggregateStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        document = context.document
        context.insight = aggregate(
            document_id=document.id,
            document_type=context.document_type,
            on_device_result=context.on_device_result,
            template_analysis=context.template_analysis,
            cloud_ocr_result=context.cloud_ocr_result,
            vision_analysis=context.vision_analysis,
            compliance_analysis=context.compliance_analysis,
            phi_redacted=context.redact,
            phi_types=[detection.type for detection in context.phi_detections],
            offline=not context.online,
            pages=document.pages,
        )
        return context
