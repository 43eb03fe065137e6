from smartcapture.cloud.models import (
    CheckStatus,
    CloudOcrResult,
    ComplianceAnalysis,
    Entity,
    VisionAnalysis,
)
from smartcapture.documents.models import DocumentType
from smartcapture.processor.models import PLACEHOLDER_SUMMARY, CapturedInsight, ComplianceStatus
from smartcapture.templates.models import TemplateAnalysisResult
from smartcapture.vision.models import OnDeviceResult, PhiType


def merged_entities(
    vision_analysis: VisionAnalysis | None,
    compliance_analysis: ComplianceAnalysis | None,
) -> list[Entity]:
    """Analyzer entities followed by the coded findings of the compliance analyzer."""
    entities = list(vision_analysis.entities) if vision_analysis else []
    if compliance_analysis is not None:
        entities.extend(compliance_analysis.coded_entities())
    return entities


def compliance_status(compliance_analysis: ComplianceAnalysis | None) -> ComplianceStatus:
    if compliance_analysis is None:
        return ComplianceStatus.NOT_APPLICABLE
    statuses = {check.status for check in compliance_analysis.compliance_checks}
    if CheckStatus.FAILED in statuses:
        return ComplianceStatus.FAILED
    if CheckStatus.WARNING in statuses:
        return ComplianceStatus.WARNING
    return ComplianceStatus.PASSED


def unified_summary(
    vision_analysis: VisionAnalysis | None,
    compliance_analysis: ComplianceAnalysis | None,
) -> str:
    summaries = [
        analysis.summary
        for analysis in (vision_analysis, compliance_analysis)
        if analysis is not None and analysis.summary
    ]
    return "\n\n".join(summaries) if summaries else PLACEHOLDER_SUMMARY


def aggregate(
    *,
    document_id: str,
    document_type: DocumentType,
    on_device_result: OnDeviceResult,
    template_analysis: TemplateAnalysisResult,
    cloud_ocr_result: CloudOcrResult | None = None,
    vision_analysis: VisionAnalysis | None = None,
    compliance_analysis: ComplianceAnalysis | None = None,
    phi_redacted: bool = False,
    phi_types: list[PhiType] | None = None,
    offline: bool = False,
    pages: int = 1,
) -> CapturedInsight:
    """Build the insight for one document from whichever results are present.

    The cloud OCR text wins over the on-device text. Cloud analysis counts as
    deferred when the pipeline ran offline or any cloud result is missing.
    """
    deferred = offline or any(
        result is None for result in (cloud_ocr_result, vision_analysis, compliance_analysis)
    )
    return CapturedInsight(
        document_id=document_id,
        document_type=document_type,
        on_device_result=on_device_result,
        template_analysis=template_analysis,
        unified_text=cloud_ocr_result.text if cloud_ocr_result else on_device_result.text,
        unified_summary=unified_summary(vision_analysis, compliance_analysis),
        cloud_ocr_result=cloud_ocr_result,
        vision_analysis=vision_analysis,
        compliance_analysis=compliance_analysis,
        action_items=list(vision_analysis.action_items) if vision_analysis else [],
        entities=merged_entities(vision_analysis, compliance_analysis),
        compliance_status=compliance_status(compliance_analysis),
        phi_redacted=phi_redacted,
        phi_types=sorted(set(phi_types or []), key=lambda phi_type: phi_type.value),
        deferred_cloud_analysis=deferred,
        pages=pages,
    )
