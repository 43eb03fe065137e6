from typing import ClassVar

from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.logging.logger import Log
from smartcapture.templates.analyzers.food_label import FoodLabelAnalyzer
from smartcapture.templates.analyzers.generic import GenericAnalyzer
from smartcapture.templates.analyzers.insurance_claim import InsuranceClaimAnalyzer
from smartcapture.templates.analyzers.lab_report import LabReportAnalyzer
from smartcapture.templates.analyzers.medical_report import MedicalReportAnalyzer
from smartcapture.templates.analyzers.pharmacy_label import PharmacyLabelAnalyzer
from smartcapture.templates.analyzers.prescription import PrescriptionAnalyzer
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.models import TemplateAnalysisResult


class TemplateEngine:
    """Dispatches to the analyzer registered for a document type."""

    ANALYZERS: ClassVar[dict[DocumentType, BaseTemplateAnalyzer]] = {
        DocumentType.LAB_REPORT: LabReportAnalyzer(),
        DocumentType.PRESCRIPTION: PrescriptionAnalyzer(),
        DocumentType.INSURANCE_CLAIM: InsuranceClaimAnalyzer(),
        DocumentType.MEDICAL_REPORT: MedicalReportAnalyzer(),
        DocumentType.FOOD_LABEL: FoodLabelAnalyzer(),
        DocumentType.PHARMACY_LABEL: PharmacyLabelAnalyzer(),
    }

    _FALLBACK: ClassVar[BaseTemplateAnalyzer] = GenericAnalyzer()

    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure] | None = None,
        entities: list[Entity] | None = None,
    ) -> TemplateAnalysisResult:
        analyzer = self.ANALYZERS.get(document_type, self._FALLBACK)
        result = analyzer.analyze(document_type, text, tables or [], entities or [])
        Log.debug(
            "Template analysis completed",
            template=result.template_type.value,
            findings=len(result.findings),
        )
        return result
