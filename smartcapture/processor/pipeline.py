from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from smartcapture.cloud.models import CloudOcrResult, ComplianceAnalysis, VisionAnalysis
from smartcapture.documents.models import CapturedDocument, DocumentType, ProcessingStage
from smartcapture.processor.models import CapturedInsight, ProgressUpdate
from smartcapture.templates.models import TemplateAnalysisResult
from smartcapture.vision.models import DetectedPHI, OnDeviceResult


@dataclass(slots=True)
class PipelineContext:
    document: CapturedDocument
    user_consent: bool = False
    sensitive_words: list[str] = field(default_factory=list)
    online: bool = True
    on_device_result: OnDeviceResult | None = None
    phi_detections: list[DetectedPHI] = field(default_factory=list)
    redact: bool = False
    cloud_ocr_result: CloudOcrResult | None = None
    vision_analysis: VisionAnalysis | None = None
    compliance_analysis: ComplianceAnalysis | None = None
    template_analysis: TemplateAnalysisResult | None = None
    insight: CapturedInsight | None = None
    on_progress: Callable[[ProgressUpdate], None] | None = None
    # Starts as the captured type; on-device classification may refine a generic one.
    document_type: DocumentType = field(init=False)

    def __post_init__(self) -> None:
        self.document_type = self.document.document_type

    @property
    def cloud_image(self) -> bytes:
        """The image sent to cloud providers: the first page of a batch."""
        if self.document.page_images:
            return self.document.page_images[0]
        return self.document.image_data

    @property
    def sanitized_text(self) -> str:
        """On-device text as it may leave the device (redacted when required)."""
        return self.on_device_result.text if self.on_device_result else ""

    def report_progress(self, stage: ProcessingStage, fraction: float) -> None:
        if self.on_progress is not None:
            self.on_progress(ProgressUpdate(stage, fraction, self.document.id))


class PipelineStep(ABC):
    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
