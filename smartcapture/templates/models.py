from dataclasses import dataclass, field
from enum import Enum

from smartcapture.documents.models import DocumentType


class FindingStatus(str, Enum):
    NORMAL = "normal"
    ABNORMAL_LOW = "abnormal_low"
    ABNORMAL_HIGH = "abnormal_high"
    CRITICAL_LOW = "critical_low"
    CRITICAL_HIGH = "critical_high"
    UNKNOWN = "unknown"

    @property
    def is_critical(self) -> bool:
        return self in (FindingStatus.CRITICAL_LOW, FindingStatus.CRITICAL_HIGH)

    @property
    def is_abnormal(self) -> bool:
        return self not in (FindingStatus.NORMAL, FindingStatus.UNKNOWN)

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class VisualizationType(str, Enum):
    BAR_CHART = "bar_chart"
    LINE_CHART = "line_chart"
    PIE_CHART = "pie_chart"
    GAUGE = "gauge"


@dataclass(frozen=True)
class TemplateFinding:
    category: str
    key: str
    value: str
    status: FindingStatus = FindingStatus.NORMAL
    unit: str | None = None
    normal_range: str | None = None


@dataclass(frozen=True)
class Interpretation:
    title: str
    description: str
    confidence: float
    sources: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Visualization:
    """Chart payload for presentation layers: label -> numeric value."""

    type: VisualizationType
    title: str
    data: dict[str, float]


@dataclass
class TemplateAnalysisResult:
    template_type: DocumentType
    findings: list[TemplateFinding] = field(default_factory=list)
    interpretations: list[Interpretation] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    visualization: Visualization | None = None

    def finding(self, key: str) -> TemplateFinding | None:
        """First finding whose key matches case-insensitively."""
        wanted = key.lower()
        return next((f for f in self.findings if f.key.lower() == wanted), None)
