import re

from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.extraction import first_group, table_pairs
from smartcapture.templates.models import Interpretation, TemplateAnalysisResult, TemplateFinding

CURRENCY = "SAR"

# (finding key, category, text pattern, table label pattern)
_FIELDS: tuple[tuple[str, str, str, str], ...] = (
    ("Policy Number", "Policy", r"Policy\s*(?:Number|No\.?|#)?[:\s]*(\w*\d\w*)", r"^policy"),
    ("Claim Amount", "Financial", r"Claim\s*Amount[:\s]*(\d+(?:[,.]\d+)*)", r"^claim\s*amount"),
    ("Coverage Amount", "Financial", r"Coverage\s*Amount[:\s]*(\d+(?:[,.]\d+)*)", r"^coverage\s*amount"),
)

_DENIAL_RE = re.compile(r"\b(denied|rejected)\b", re.IGNORECASE)


def extract_claim_details(text: str, tables: list[TableStructure]) -> dict[str, str]:
    details: dict[str, str] = {}
    pairs = table_pairs(tables)
    for key, _, text_pattern, label_pattern in _FIELDS:
        value = first_group(text_pattern, text)
        if value is None:
            value = next(
                (v for label, v in pairs if re.match(label_pattern, label, re.IGNORECASE) and v),
                None,
            )
        if value is not None:
            details[key] = value
    return details


class InsuranceClaimAnalyzer(BaseTemplateAnalyzer):
    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        details = extract_claim_details(text, tables)
        findings = [
            TemplateFinding(
                category=category,
                key=key,
                value=details[key],
                unit=CURRENCY if category == "Financial" else None,
            )
            for key, category, _, _ in _FIELDS
            if key in details
        ]

        interpretations: list[Interpretation] = []
        if _DENIAL_RE.search(text):
            interpretations.append(
                Interpretation(
                    title="Claim Status: Denied",
                    description=(
                        "This claim has been denied. Review the reason codes and "
                        "consider appealing if appropriate."
                    ),
                    confidence=0.9,
                )
            )
            recommendations = [
                "Review the denial reason carefully",
                "Contact insurance provider for clarification",
                "Consider filing an appeal if you believe the denial is incorrect",
            ]
        else:
            recommendations = [
                "Review claim details for accuracy",
                "Keep this document for your records",
            ]

        return TemplateAnalysisResult(
            template_type=DocumentType.INSURANCE_CLAIM,
            findings=findings,
            interpretations=interpretations,
            recommendations=recommendations,
        )
