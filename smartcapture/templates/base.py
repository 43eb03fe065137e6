from abc import ABC, abstractmethod

from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.models import TemplateAnalysisResult


class BaseTemplateAnalyzer(ABC):
    """Contract for document-type specific analyzers. Must be pure."""

    @abstractmethod
    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        """Derive findings, interpretations and recommendations."""
