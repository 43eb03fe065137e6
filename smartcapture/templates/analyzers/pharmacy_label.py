from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.extraction import first_group
from smartcapture.templates.models import Interpretation, TemplateAnalysisResult, TemplateFinding


class PharmacyLabelAnalyzer(BaseTemplateAnalyzer):
    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        drug_name = first_group(r"(?:Drug|Medication)[:\s]*([A-Za-z][A-Za-z\-]*)", text)
        if drug_name is None:
            drug_name = next((e.value for e in entities if e.type.lower() == "medication"), None)
        strength = first_group(r"(\d+(?:\.\d+)?\s*(?:mg|mcg|ml))\b", text)
        directions = first_group(r"Directions[:\s]*([^.\n]+)", text)

        findings: list[TemplateFinding] = []
        if drug_name:
            findings.append(TemplateFinding(category="Medication", key="Drug Name", value=drug_name))
        if strength:
            findings.append(TemplateFinding(category="Dosage", key="Strength", value=strength))

        interpretations: list[Interpretation] = []
        if directions:
            interpretations.append(
                Interpretation(title="Usage Instructions", description=directions, confidence=0.9)
            )

        return TemplateAnalysisResult(
            template_type=DocumentType.PHARMACY_LABEL,
            findings=findings,
            interpretations=interpretations,
            recommendations=[
                "Follow dosage instructions carefully",
                "Store as directed on the label",
                "Check expiration date before use",
            ],
        )
