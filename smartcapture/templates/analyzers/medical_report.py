import re

from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.models import TemplateAnalysisResult, TemplateFinding

_DIAGNOSIS_LINE_RE = re.compile(r"^\s*(?:Diagnosis|Impression)[:\s]+(.+)$", re.IGNORECASE | re.MULTILINE)


class MedicalReportAnalyzer(BaseTemplateAnalyzer):
    """Diagnoses and procedures from analyzer entities, else labeled report lines."""

    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        findings = [
            TemplateFinding(category="Diagnosis", key="Diagnosed Condition", value=e.value)
            for e in entities
            if e.type.lower() == "diagnosis"
        ]
        findings.extend(
            TemplateFinding(category="Procedure", key="Performed Procedure", value=e.value)
            for e in entities
            if e.type.lower() == "procedure"
        )
        if not findings:
            findings = [
                TemplateFinding(category="Diagnosis", key="Diagnosed Condition", value=m.strip())
                for m in _DIAGNOSIS_LINE_RE.findall(text)
                if m.strip()
            ]

        return TemplateAnalysisResult(
            template_type=DocumentType.MEDICAL_REPORT,
            findings=findings,
            recommendations=[
                "Discuss this report with your healthcare provider",
                "Keep for your medical records",
                "Share with specialists as needed",
            ],
        )
