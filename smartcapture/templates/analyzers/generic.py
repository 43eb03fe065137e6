from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.models import Interpretation, TemplateAnalysisResult, TemplateFinding


class GenericAnalyzer(BaseTemplateAnalyzer):
    """Fallback for spreadsheets, contracts and unclassified documents."""

    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        word_count = len(text.split())
        return TemplateAnalysisResult(
            template_type=document_type,
            findings=[TemplateFinding(category="General", key="Word Count", value=str(word_count))],
            interpretations=[
                Interpretation(
                    title="Document Captured",
                    description=f"Document successfully processed with {word_count} words extracted.",
                    confidence=0.8,
                )
            ],
        )
