import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import TypeAdapter

from smartcapture.cloud.models import (
    ActionItem,
    CloudOcrResult,
    ComplianceAnalysis,
    Entity,
    VisionAnalysis,
)
from smartcapture.documents.models import DocumentType, ProcessingStage
from smartcapture.templates.models import TemplateAnalysisResult
from smartcapture.vision.models import OnDeviceResult, PhiType

PLACEHOLDER_SUMMARY = "Document captured and processed successfully."


class ComplianceStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class ProgressUpdate:
    """One step of pipeline progress for presentation layers."""

    stage: ProcessingStage
    fraction: float
    document_id: str


@dataclass
class CapturedInsight:
    """Aggregated result of one captured document.

    Provider results that did not arrive are ``None``. Only PHI types and
    counts are kept; the on-device text is the redacted copy whenever
    redaction applied.
    """

    document_id: str
    document_type: DocumentType
    on_device_result: OnDeviceResult
    template_analysis: TemplateAnalysisResult
    unified_text: str
    unified_summary: str = PLACEHOLDER_SUMMARY
    cloud_ocr_result: CloudOcrResult | None = None
    vision_analysis: VisionAnalysis | None = None
    compliance_analysis: ComplianceAnalysis | None = None
    action_items: list[ActionItem] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)
    compliance_status: ComplianceStatus = ComplianceStatus.NOT_APPLICABLE
    phi_redacted: bool = False
    phi_types: list[PhiType] = field(default_factory=list)
    deferred_cloud_analysis: bool = False
    pages: int = 1
    audit_log_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def overall_confidence(self) -> float:
        """Mean confidence of the provider results present on this insight."""
        confidences = [self.on_device_result.confidence]
        for result in (self.cloud_ocr_result, self.vision_analysis, self.compliance_analysis):
            if result is not None:
                confidences.append(result.confidence)
        return sum(confidences) / len(confidences)

    def to_record(self) -> dict[str, Any]:
        return _INSIGHT_ADAPTER.dump_python(self, mode="json")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "CapturedInsight":
        """Raises pydantic.ValidationError for malformed records."""
        return _INSIGHT_ADAPTER.validate_python(record)


_INSIGHT_ADAPTER = TypeAdapter(CapturedInsight)
