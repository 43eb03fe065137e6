from dataclasses import dataclass, field
from enum import Enum

from smartcapture.documents.models import TableStructure, TextBlock


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ActionPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CheckStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"
    NOT_APPLICABLE = "not_applicable"


@dataclass
class CloudOcrResult:
    text: str
    text_blocks: list[TextBlock] = field(default_factory=list)
    tables: list[TableStructure] = field(default_factory=list)
    confidence: float = 0.0
    language: str = "unknown"
    processing_time_ms: int = 0
    model_version: str = ""


@dataclass(frozen=True)
class ActionItem:
    title: str
    description: str
    priority: ActionPriority = ActionPriority.MEDIUM
    category: str = "general"


@dataclass(frozen=True)
class Entity:
    """A typed mention (medication, diagnosis, person...) found by an analyzer."""

    type: str
    value: str
    confidence: float = 0.8


@dataclass
class VisionAnalysis:
    summary: str
    insights: list[str] = field(default_factory=list)
    action_items: list[ActionItem] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)
    confidence: float = 0.0
    processing_time_ms: int = 0
    model: str = ""


@dataclass(frozen=True)
class ComplianceCheck:
    rule: str
    status: CheckStatus
    details: str = ""
    severity: Severity = Severity.LOW


@dataclass(frozen=True)
class MedicalCode:
    system: str
    code: str
    display: str
    confidence: float = 0.0


@dataclass(frozen=True)
class RiskFlag:
    category: str
    description: str
    severity: Severity = Severity.LOW
    recommendations: list[str] = field(default_factory=list)


@dataclass
class ComplianceAnalysis:
    """Bilingual analysis with compliance checks, coded findings and risk flags."""

    summary: str
    secondary_summary: str = ""
    compliance_checks: list[ComplianceCheck] = field(default_factory=list)
    medical_codes: list[MedicalCode] = field(default_factory=list)
    risk_flags: list[RiskFlag] = field(default_factory=list)
    confidence: float = 0.0
    processing_time_ms: int = 0
    model: str = ""

    def coded_entities(self) -> list[Entity]:
        """Coded findings as entities: ICD-10 codes are diagnoses, others procedures."""
        return [
            Entity(
                type="diagnosis" if code.system.upper().startswith("ICD") else "procedure",
                value=f"{code.code}: {code.display}",
                confidence=code.confidence,
            )
            for code in self.medical_codes
        ]
