import re

from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.extraction import to_float
from smartcapture.templates.models import (
    FindingStatus,
    Interpretation,
    TemplateAnalysisResult,
    TemplateFinding,
    Visualization,
    VisualizationType,
)
from smartcapture.templates.reference_ranges import LAB_REFERENCES, classify_value

_CHART_LIMIT = 10
URGENT_RECOMMENDATION = "URGENT: Critical values detected - seek immediate medical attention"
ABNORMAL_RECOMMENDATION = "Consult with your healthcare provider about the abnormal values"
NORMAL_RECOMMENDATION = "All values are within normal range"
UNGRADED_RECOMMENDATION = "Review values without a reference range with your healthcare provider"


def _describe(finding: TemplateFinding) -> str:
    if finding.status.is_critical:
        return (
            f"CRITICAL: {finding.key} is significantly outside the normal range "
            f"({finding.normal_range}). Seek immediate medical attention."
        )
    if finding.status is FindingStatus.UNKNOWN:
        return f"{finding.key} could not be compared with a reference range."
    direction = "below" if finding.status is FindingStatus.ABNORMAL_LOW else "above"
    return (
        f"{finding.key} is {direction} the normal range ({finding.normal_range}). "
        "This may indicate various conditions and should be discussed with your "
        "healthcare provider."
    )


class LabReportAnalyzer(BaseTemplateAnalyzer):
    """Reads known tests from text and result tables and grades them against ranges."""

    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        values = self._from_text(text)
        seen = {finding.key.lower() for finding, _ in values}
        for finding, numeric in self._from_tables(tables):
            if finding.key.lower() not in seen:
                seen.add(finding.key.lower())
                values.append((finding, numeric))

        findings = [finding for finding, _ in values]
        interpretations = [
            Interpretation(
                title=f"{finding.key} {finding.status.label}",
                description=_describe(finding),
                confidence=0.85,
                sources=["Clinical lab reference ranges"],
            )
            for finding in findings
            if finding.status is not FindingStatus.NORMAL
        ]

        abnormal = [f for f in findings if f.status.is_abnormal]
        recommendations: list[str] = []
        if any(f.status.is_critical for f in abnormal):
            recommendations.append(URGENT_RECOMMENDATION)
        if abnormal:
            recommendations.append(ABNORMAL_RECOMMENDATION)
        elif any(f.status is FindingStatus.UNKNOWN for f in findings):
            recommendations.append(UNGRADED_RECOMMENDATION)
        else:
            recommendations.append(NORMAL_RECOMMENDATION)

        visualization = None
        if values:
            visualization = Visualization(
                type=VisualizationType.BAR_CHART,
                title="Lab Test Results",
                data={finding.key: numeric or 0.0 for finding, numeric in values[:_CHART_LIMIT]},
            )

        return TemplateAnalysisResult(
            template_type=DocumentType.LAB_REPORT,
            findings=findings,
            interpretations=interpretations,
            recommendations=recommendations,
            visualization=visualization,
        )

    @staticmethod
    def _from_text(text: str) -> list[tuple[TemplateFinding, float | None]]:
        values: list[tuple[TemplateFinding, float | None]] = []
        for reference in LAB_REFERENCES:
            match = re.search(
                rf"\b{re.escape(reference.name)}[:\s]+(\d+(?:\.\d+)?)", text, re.IGNORECASE
            )
            if match is None:
                continue
            raw = match.group(1)
            numeric = float(raw)
            values.append(
                (
                    TemplateFinding(
                        category=reference.category,
                        key=reference.name,
                        value=raw,
                        status=classify_value(numeric, reference.normal_range),
                        unit=reference.unit,
                        normal_range=reference.normal_range,
                    ),
                    numeric,
                )
            )
        return values

    @staticmethod
    def _from_tables(tables: list[TableStructure]) -> list[tuple[TemplateFinding, float | None]]:
        """Rows of tables whose headers mention a test or result.

        Columns are name, value, then optional unit and range.
        """
        values: list[tuple[TemplateFinding, float | None]] = []
        for table in tables:
            headers = [header.lower() for header in table.headers or []]
            if not any("test" in header or "result" in header for header in headers):
                continue
            for row in table.rows:
                if len(row) < 2 or not row[0].strip():
                    continue
                name, raw = row[0].strip(), row[1].strip()
                normal_range = row[3].strip() if len(row) > 3 and row[3].strip() else None
                numeric = to_float(raw)
                status = (
                    classify_value(numeric, normal_range)
                    if numeric is not None
                    else FindingStatus.UNKNOWN
                )
                values.append(
                    (
                        TemplateFinding(
                            category="Lab",
                            key=name,
                            value=raw,
                            status=status,
                            unit=row[2].strip() if len(row) > 2 else None,
                            normal_range=normal_range,
                        ),
                        numeric,
                    )
                )
        return values
